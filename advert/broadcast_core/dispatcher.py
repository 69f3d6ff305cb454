"""
Advert dispatch: delivers rendered messages to their location.

- Chat / Center / Html / Alert: sent to every valid player
- Panel: stored in the PanelCache for the next round end
- Sound: resolved to a file, decoded through the AudioCache and played on a
  fresh channel for every valid human player
"""

import logging
import os
from pathlib import Path
from typing import Union

from advert.broadcast_core.audio_cache import AudioCache, ChannelCounter
from advert.broadcast_core.panel import PanelCache
from advert.config.model import AdvertConfig, AdvertLocation
from advert.host.interfaces import AudioApi, AudioSource, Player, PlayerDirectory

logger = logging.getLogger(__name__)


class SoundPathResolver:
    """
    Resolves configured sound paths to absolute files.

    Search order for relative paths: plugin data directory first, then the
    plugin install directory.
    """

    def __init__(self, data_dir: Union[str, Path], plugin_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.plugin_dir = Path(plugin_dir)

    def resolve(self, configured_path: str) -> str:
        if os.path.isabs(configured_path):
            return configured_path

        data_path = os.path.abspath(self.data_dir / configured_path)
        if os.path.isfile(data_path):
            return data_path
        return os.path.abspath(self.plugin_dir / configured_path)


class AdvertDispatcher:
    """Routes rendered advert messages to players, the panel cache or audio."""

    def __init__(
        self,
        players: PlayerDirectory,
        audio_api: AudioApi,
        panel_cache: PanelCache,
        audio_cache: AudioCache,
        channel_counter: ChannelCounter,
        path_resolver: SoundPathResolver,
    ):
        self.players = players
        self.audio_api = audio_api
        self.panel_cache = panel_cache
        self.audio_cache = audio_cache
        self.channel_counter = channel_counter
        self.path_resolver = path_resolver

    def dispatch(self, location: AdvertLocation, message: str, config: AdvertConfig) -> None:
        """
        Deliver one rendered message.

        Args:
            location: Where the message goes
            message: Rendered message (or sound path for Sound)
            config: Config snapshot captured by the tick
        """
        if location == AdvertLocation.PANEL:
            self.panel_cache.set(message)
            logger.debug("[DISPATCH] Panel message cached for next round end")
            return

        if location == AdvertLocation.SOUND:
            self.play_sound(message, config)
            return

        sent = 0
        for player in self.players.get_all_players():
            if not player.is_valid:
                continue
            self._send(player, location, message, config)
            sent += 1
        logger.debug(f"[DISPATCH] {location.value} advert sent to {sent} players")

    def _send(self, player: Player, location: AdvertLocation, message: str, config: AdvertConfig) -> None:
        if location == AdvertLocation.CHAT:
            player.send_chat(message)
        elif location == AdvertLocation.CENTER:
            player.send_center(message)
        elif location == AdvertLocation.HTML:
            player.send_center_html(message, config.html_duration_ms)
        elif location == AdvertLocation.ALERT:
            player.send_alert(message)
        else:
            raise ValueError(f"Unsupported player location: {location}")

    def play_sound(self, sound_path: str, config: AdvertConfig) -> bool:
        """
        Play a sound advert to every human player.

        Missing files and decode failures are logged and skip this advert.

        Returns:
            True if playback was started
        """
        if not self.audio_api.available:
            return False

        if not sound_path or not sound_path.strip():
            return False

        resolved_path = self.path_resolver.resolve(sound_path.strip())

        if not os.path.isfile(resolved_path):
            logger.warning(f"[AUDIO] Audio file not found: {resolved_path}")
            return False

        try:
            source: AudioSource = self.audio_cache.get_or_decode(resolved_path, self.audio_api.decode_from_file)
        except Exception as e:
            logger.error(f"[AUDIO] Failed to decode sound file: {resolved_path}: {e}", exc_info=True)
            return False

        channel_id = self.channel_counter.next_channel_id()
        channel = self.audio_api.use_channel(channel_id)
        channel.set_source(source)
        channel.set_volume_to_all(config.volume)

        listeners = 0
        for player in self.players.get_all_players():
            if not player.is_valid or player.is_fake_client:
                continue
            channel.play(player.player_id)
            listeners += 1

        logger.debug(f"[AUDIO] Playing {resolved_path} on {channel_id} for {listeners} players")
        return True
