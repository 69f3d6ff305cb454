"""
Broadcaster State

Single owner of the Advert broadcaster's mutable state:
- the active config snapshot
- the ad rotation
- the panel cache
- the decoded audio cache and channel counter

The timer tick, the config-change callback and the round-end hook all share
one BroadcasterState instance.
"""

import logging
import threading
from typing import Optional, Tuple

from advert.broadcast_core.audio_cache import AudioCache, ChannelCounter
from advert.broadcast_core.panel import PanelCache
from advert.broadcast_core.rotation import AdRotation
from advert.config.model import AdGroup, AdvertConfig

logger = logging.getLogger(__name__)


class BroadcasterState:
    """
    Shared broadcaster state.

    The config reference and the rotation are swapped together under one
    lock, so a tick always sees a group that belongs to the snapshot it
    captured.
    """

    def __init__(self, config: AdvertConfig):
        """
        Initialize state.

        Args:
            config: Initial config snapshot
        """
        self._lock = threading.RLock()
        self._config = config
        self.rotation = AdRotation(config.advert_list)
        self.panel_cache = PanelCache()
        self.audio_cache: AudioCache = AudioCache()
        self.channel_counter = ChannelCounter()

    @property
    def config(self) -> AdvertConfig:
        with self._lock:
            return self._config

    def next_tick(self) -> Tuple[AdvertConfig, Optional[AdGroup]]:
        """
        Capture the config snapshot and select the next ad group.

        Returns:
            (config, group); group is None when the ad list is empty
        """
        with self._lock:
            return self._config, self.rotation.select_next()

    def swap_config(self, config: AdvertConfig) -> AdvertConfig:
        """
        Replace the active config.

        Resets the rotation to the first group and clears decoded audio.
        The panel cache is left as is.

        Returns:
            The previous snapshot
        """
        with self._lock:
            previous = self._config
            self._config = config
            self.rotation.reset(config.advert_list)
            self.audio_cache.clear()
        logger.info(
            f"[STATE] Config swapped (interval {previous.interval}s -> {config.interval}s, "
            f"groups {len(previous.advert_list)} -> {len(config.advert_list)})"
        )
        return previous

    def clear_caches(self) -> None:
        """Release decoded audio (used on shutdown)."""
        self.audio_cache.clear()
