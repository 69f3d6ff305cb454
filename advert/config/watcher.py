"""
Config watcher: applies hot-reloaded configuration to the broadcaster.

On every change notification:
1. swap the config snapshot (resets rotation, clears decoded audio)
2. restart the advert timer with the new interval

A tick already running finishes with the snapshot it captured; the next tick
sees the new config.
"""

import logging
from typing import Callable, Optional

from advert.broadcast_core.scheduler import AdvertScheduler
from advert.config.model import AdvertConfig
from advert.config.provider import JsoncConfigProvider
from advert.state.broadcaster_state import BroadcasterState

logger = logging.getLogger(__name__)


class ConfigWatcher:
    """Subscribes to config changes and applies them to state and scheduler."""

    def __init__(self, provider: JsoncConfigProvider, state: BroadcasterState, scheduler: AdvertScheduler):
        self.provider = provider
        self.state = state
        self.scheduler = scheduler
        self.reload_count = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self) -> None:
        """Start receiving change notifications from the provider."""
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.on_change(self.on_config_changed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    def on_config_changed(self, config: AdvertConfig) -> None:
        """Apply a new config snapshot."""
        try:
            self.state.swap_config(config)
            self.scheduler.restart(config.interval)
            self.reload_count += 1
            logger.info(f"[CONFIG] Reload #{self.reload_count} applied")
        except Exception as e:
            logger.error(f"[CONFIG] Failed to apply config change: {e}", exc_info=True)
