"""
Advert plugin orchestrator.

Wires the broadcaster together and owns its lifecycle:
- load(): read config, build state, hook round end and config changes,
  start the advert timer
- unload(): stop the timer and watchers, release decoded audio

A load failure is logged and leaves the plugin disabled (no ticks) instead
of propagating into the host.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from advert.broadcast_core.dispatcher import AdvertDispatcher, SoundPathResolver
from advert.broadcast_core.panel import RoundEndBridge
from advert.broadcast_core.renderer import HostRenderContext, RenderContext, TemplateRenderer
from advert.broadcast_core.scheduler import AdvertScheduler
from advert.broadcast_core.ticker import AdvertTicker
from advert.config.provider import JsoncConfigProvider
from advert.config.watcher import ConfigWatcher
from advert.host.interfaces import (
    AudioApi,
    ConVarAccessor,
    EngineInfo,
    GameEventBus,
    NullAudioApi,
    PlayerDirectory,
)
from advert.state.broadcaster_state import BroadcasterState

logger = logging.getLogger(__name__)


class AdvertPlugin:
    """
    Periodic advert broadcaster.

    Host collaborators are passed in explicitly. The audio subsystem is
    optional; without it Sound adverts are skipped.
    """

    def __init__(
        self,
        provider: JsoncConfigProvider,
        players: PlayerDirectory,
        event_bus: GameEventBus,
        convars: ConVarAccessor,
        engine: EngineInfo,
        data_dir: Union[str, Path],
        plugin_dir: Union[str, Path],
        audio_api: Optional[AudioApi] = None,
        render_context: Optional[RenderContext] = None,
    ):
        self.provider = provider
        self.players = players
        self.event_bus = event_bus
        self.convars = convars
        self.engine = engine
        self.data_dir = Path(data_dir)
        self.plugin_dir = Path(plugin_dir)
        self.audio_api: AudioApi = audio_api if audio_api is not None else NullAudioApi()
        self.render_context = render_context or HostRenderContext(engine, convars, players)

        self.renderer = TemplateRenderer()
        self.scheduler = AdvertScheduler()

        # Built in load()
        self.state: Optional[BroadcasterState] = None
        self.ticker: Optional[AdvertTicker] = None
        self.config_watcher: Optional[ConfigWatcher] = None
        self.round_end_bridge: Optional[RoundEndBridge] = None

        self.enabled = False

    def load(self, hot_reload: bool = False) -> bool:
        """
        Load the plugin and start broadcasting.

        Args:
            hot_reload: True when the host reloads the plugin in place

        Returns:
            True if the plugin is broadcasting, False if it stayed disabled
        """
        if self.enabled:
            logger.warning("Advert already loaded, ignoring duplicate load() call")
            return True

        logger.info(f"=== Advert loading{' (hot reload)' if hot_reload else ''} ===")

        try:
            config = self.provider.load()

            self.state = BroadcasterState(config)

            if not self.audio_api.available:
                logger.warning("Audio subsystem not found. Sound adverts are disabled.")

            dispatcher = AdvertDispatcher(
                players=self.players,
                audio_api=self.audio_api,
                panel_cache=self.state.panel_cache,
                audio_cache=self.state.audio_cache,
                channel_counter=self.state.channel_counter,
                path_resolver=SoundPathResolver(self.data_dir, self.plugin_dir),
            )
            self.ticker = AdvertTicker(self.state, self.renderer, self.render_context, dispatcher)

            self.config_watcher = ConfigWatcher(self.provider, self.state, self.scheduler)
            self.config_watcher.attach()

            self.round_end_bridge = RoundEndBridge(self.state.panel_cache, self.event_bus)
            self.round_end_bridge.attach()

            self.scheduler.start(config.interval, self.ticker.tick)
            self.provider.start()
        except Exception as e:
            logger.error(f"Failed to load plugin: {e}", exc_info=True)
            self._teardown()
            return False

        self.enabled = True
        logger.info(
            f"Advert loaded: {len(config.advert_list)} ad groups every {config.interval}s"
        )
        return True

    def unload(self) -> None:
        """Stop broadcasting and release resources. Safe to call more than once."""
        if not self.enabled and self.state is None:
            return
        logger.info("=== Advert unloading ===")
        self._teardown()
        self.enabled = False
        logger.info("Advert unloaded")

    def _teardown(self) -> None:
        # Config changes must stop before the timer, or a reload restarts it
        self.provider.stop()
        if self.config_watcher is not None:
            self.config_watcher.detach()
        if self.round_end_bridge is not None:
            self.round_end_bridge.detach()

        self.scheduler.cancel(wait=True)
        if self.state is not None:
            self.state.clear_caches()
