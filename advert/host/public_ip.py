"""
Public IP lookup for the console host.

A real game server reports its own public IP. The console host has no engine
to ask, so it looks the address up once at startup over HTTP. Ticks never
perform network I/O; they read the cached value.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

FALLBACK_IP = "0.0.0.0"


class PublicIpResolver:
    """Resolves and caches the server's public IPv4 address."""

    def __init__(self, url: str, timeout: float = 5.0, override: Optional[str] = None):
        """
        Initialize resolver.

        Args:
            url: Plain-text IP echo endpoint (e.g. https://api.ipify.org)
            timeout: HTTP timeout in seconds
            override: Fixed address to use instead of looking one up
        """
        self.url = url
        self.timeout = timeout
        self.override = override
        self._address: Optional[str] = None

        # Suppress httpx INFO level logging
        logging.getLogger("httpx").setLevel(logging.WARNING)

    @property
    def address(self) -> str:
        """Cached address (resolves on first access)."""
        if self._address is None:
            self._address = self.resolve()
        return self._address

    def resolve(self) -> str:
        """
        Look up the public IP.

        Returns:
            The override if set, the looked-up address, or 0.0.0.0 on failure
        """
        if self.override:
            return self.override

        try:
            response = httpx.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            address = response.text.strip()
        except httpx.HTTPError as e:
            logger.warning(f"[HOST] Public IP lookup failed ({self.url}): {e}")
            return FALLBACK_IP

        if not address:
            logger.warning(f"[HOST] Public IP lookup returned an empty body ({self.url})")
            return FALLBACK_IP

        logger.info(f"[HOST] Public IP resolved: {address}")
        return address
