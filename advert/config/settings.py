"""
Runtime settings for the Advert broadcaster.

Reads settings from an optional .env file and environment variables with
sensible defaults. These are process-level settings (paths, logging, console
host); the advert rotation itself lives in config.jsonc.
"""

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Default .env file location
DEFAULT_ENV_FILE = Path("/etc/advert/advert.env")

DEFAULT_PUBLIC_IP_URL = "https://api.ipify.org"

logger = logging.getLogger(__name__)


def _load_env_file() -> None:
    """Load environment variables from .env file if it exists."""
    env_file = os.getenv("ADVERT_ENV_FILE", str(DEFAULT_ENV_FILE))
    env_path = Path(env_file)

    if env_path.exists():
        load_dotenv(env_path, override=False)  # Don't override existing env vars
        logger.debug(f"Loaded environment from {env_path}")


def _get_int(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value} (must be an integer)")


def _get_float(name: str, default: str) -> float:
    value = os.getenv(name, default)
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {value} (must be a number)")


@dataclass
class AdvertSettings:
    """Advert runtime settings loaded from .env file and environment variables."""

    # Plugin directories
    plugin_dir: str = "."
    data_dir: str = "./data"
    config_file: str = "config.jsonc"

    # Hot reload
    config_poll_sec: float = 2.0

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Console host
    hostname: Optional[str] = None
    hostport: Optional[int] = None
    map_name: str = "de_dust2"
    public_ip: Optional[str] = None
    public_ip_url: str = DEFAULT_PUBLIC_IP_URL
    public_ip_timeout_sec: float = 5.0
    human_players: int = 2
    bot_players: int = 1
    round_seconds: float = 0.0

    @property
    def config_path(self) -> Path:
        """Absolute path of config.jsonc (relative names live in data_dir)."""
        path = Path(self.config_file)
        if path.is_absolute():
            return path
        return Path(self.data_dir) / path

    def validate(self) -> None:
        """
        Validate settings values.

        Raises:
            ValueError: If any setting is invalid
        """
        if not math.isfinite(self.config_poll_sec) or self.config_poll_sec <= 0:
            raise ValueError(f"ADVERT_CONFIG_POLL_SEC must be a finite number > 0, got {self.config_poll_sec}")
        if not math.isfinite(self.public_ip_timeout_sec) or self.public_ip_timeout_sec <= 0:
            raise ValueError(f"ADVERT_PUBLIC_IP_TIMEOUT_SEC must be a finite number > 0, got {self.public_ip_timeout_sec}")
        if self.human_players < 0 or self.bot_players < 0:
            raise ValueError("Player counts must be >= 0")
        if not math.isfinite(self.round_seconds) or self.round_seconds < 0:
            raise ValueError(f"ADVERT_ROUND_SECONDS must be a finite number >= 0, got {self.round_seconds}")
        if self.hostport is not None and not 0 <= self.hostport <= 65535:
            raise ValueError(f"ADVERT_HOSTPORT out of range: {self.hostport}")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Invalid log level: {self.log_level} "
                f"(must be one of: {', '.join(valid_log_levels)})"
            )

    @classmethod
    def load_config(cls) -> "AdvertSettings":
        """
        Load settings from environment variables.

        Returns:
            AdvertSettings instance with loaded values

        Raises:
            ValueError: If a setting is invalid
        """
        # Load .env file first (if it exists)
        _load_env_file()

        hostport_str = os.getenv("ADVERT_HOSTPORT")
        hostport = _get_int("ADVERT_HOSTPORT", "0") if hostport_str else None

        settings = cls(
            plugin_dir=os.getenv("ADVERT_PLUGIN_DIR", "."),
            data_dir=os.getenv("ADVERT_DATA_DIR", "./data"),
            config_file=os.getenv("ADVERT_CONFIG_FILE", "config.jsonc"),
            config_poll_sec=_get_float("ADVERT_CONFIG_POLL_SEC", "2.0"),
            log_level=os.getenv("ADVERT_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("ADVERT_LOG_FILE") or None,
            hostname=os.getenv("ADVERT_HOSTNAME") or None,
            hostport=hostport,
            map_name=os.getenv("ADVERT_MAP", "de_dust2"),
            public_ip=os.getenv("ADVERT_PUBLIC_IP") or None,
            public_ip_url=os.getenv("ADVERT_PUBLIC_IP_URL", DEFAULT_PUBLIC_IP_URL),
            public_ip_timeout_sec=_get_float("ADVERT_PUBLIC_IP_TIMEOUT_SEC", "5.0"),
            human_players=_get_int("ADVERT_HUMAN_PLAYERS", "2"),
            bot_players=_get_int("ADVERT_BOT_PLAYERS", "1"),
            round_seconds=_get_float("ADVERT_ROUND_SECONDS", "0"),
        )
        settings.validate()
        return settings


def load_settings() -> AdvertSettings:
    """
    Load and validate Advert settings from environment variables.

    Returns:
        AdvertSettings instance with loaded and validated values

    Raises:
        ValueError: If a setting is invalid
    """
    try:
        return AdvertSettings.load_config()
    except ValueError as e:
        logger.error(f"Settings error: {e}")
        raise
