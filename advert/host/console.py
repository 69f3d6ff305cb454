"""
Console host for running Advert outside a game server.

Provides log-backed implementations of the host interfaces:
- ConsolePlayerDirectory: fake human and bot players that log what they receive
- InMemoryGameEventBus: round-end hooks and a logged win panel
- MappingConVarAccessor: console variables from settings
- StaticEngineInfo: fixed map and a public IP from PublicIpResolver
- RoundSimulator: fires round ends on a fixed period with a random winner

The console host has no audio subsystem, so Sound adverts are disabled.
"""

import logging
import random
import threading
from typing import Callable, Dict, Iterable, List, Optional, Union

from advert.host.interfaces import (
    ConVarAccessor,
    EngineInfo,
    GameEventBus,
    Player,
    PlayerDirectory,
    RoundEndCallback,
    Team,
)
from advert.host.public_ip import PublicIpResolver

logger = logging.getLogger(__name__)


class ConsolePlayer(Player):
    """A fake player that writes received adverts to the log."""

    def __init__(self, player_id: int, name: str, is_bot: bool = False):
        self._player_id = player_id
        self.name = name
        self._is_bot = is_bot
        self.connected = True
        self.received: List[str] = []

    @property
    def is_valid(self) -> bool:
        return self.connected

    @property
    def is_fake_client(self) -> bool:
        return self._is_bot

    @property
    def player_id(self) -> int:
        return self._player_id

    def _deliver(self, channel: str, message: str) -> None:
        self.received.append(f"{channel}:{message}")
        logger.info(f"[{channel}] -> {self.name}: {message!r}")

    def send_chat(self, message: str) -> None:
        self._deliver("CHAT", message)

    def send_center(self, message: str) -> None:
        self._deliver("CENTER", message)

    def send_center_html(self, message: str, duration_ms: int) -> None:
        self._deliver(f"HTML {duration_ms}ms", message)

    def send_alert(self, message: str) -> None:
        self._deliver("ALERT", message)


class ConsolePlayerDirectory(PlayerDirectory):
    """Fixed set of console players."""

    def __init__(self, human_players: int = 2, bot_players: int = 1):
        self._players: List[ConsolePlayer] = []
        for index in range(human_players):
            self._players.append(ConsolePlayer(index, f"Player{index + 1}"))
        for index in range(bot_players):
            player_id = human_players + index
            self._players.append(ConsolePlayer(player_id, f"Bot{index + 1}", is_bot=True))

    def get_all_players(self) -> Iterable[Player]:
        return list(self._players)

    @property
    def player_count(self) -> int:
        return sum(1 for player in self._players if player.connected)


class InMemoryGameEventBus(GameEventBus):
    """Round-end hooks and win panel events kept in process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._round_end_callbacks: List[RoundEndCallback] = []
        self.win_panels: List[tuple] = []

    def subscribe_round_end(self, callback: RoundEndCallback) -> Callable[[], None]:
        with self._lock:
            self._round_end_callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._round_end_callbacks:
                    self._round_end_callbacks.remove(callback)

        return unsubscribe

    def emit_round_end(self, winner: int) -> None:
        """Deliver a round-end notification to every hook."""
        with self._lock:
            callbacks = list(self._round_end_callbacks)
        logger.info(f"[ROUND] Round ended (winner={winner})")
        for callback in callbacks:
            try:
                callback(winner)
            except Exception as e:
                logger.error(f"[ROUND] Round-end hook failed: {e}", exc_info=True)

    def fire_win_panel(self, final_event: int, funfact_token: str) -> None:
        with self._lock:
            self.win_panels.append((final_event, funfact_token))
        logger.info(f"[PANEL] Win panel (final_event={final_event}): {funfact_token!r}")


class MappingConVarAccessor(ConVarAccessor):
    """Console variables backed by a dict."""

    def __init__(self, values: Optional[Dict[str, Union[int, str, None]]] = None):
        self.values: Dict[str, Union[int, str, None]] = dict(values or {})

    def find_int(self, name: str) -> Optional[int]:
        value = self.values.get(name)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def find_str(self, name: str) -> Optional[str]:
        value = self.values.get(name)
        return None if value is None else str(value)


class StaticEngineInfo(EngineInfo):
    """Engine info with a fixed map name."""

    def __init__(self, ip_resolver: PublicIpResolver, map_name: str):
        self.ip_resolver = ip_resolver
        self._map_name = map_name

    @property
    def server_ip(self) -> str:
        return self.ip_resolver.address

    @property
    def map_name(self) -> str:
        return self._map_name


class RoundSimulator(threading.Thread):
    """Ends a simulated round every `round_seconds` with a random winner."""

    WINNERS = (Team.T, Team.CT, Team.NONE)

    def __init__(self, event_bus: InMemoryGameEventBus, round_seconds: float, seed: Optional[int] = None):
        super().__init__(name="RoundSimulator", daemon=True)
        if round_seconds <= 0:
            raise ValueError(f"Round length must be > 0 seconds, got {round_seconds}")
        self.event_bus = event_bus
        self.round_seconds = round_seconds
        self._random = random.Random(seed)
        self._shutdown_event = threading.Event()

    def run(self) -> None:
        logger.info(f"[ROUND] Round simulator started (round={self.round_seconds}s)")
        while not self._shutdown_event.wait(timeout=self.round_seconds):
            winner = self._random.choice(self.WINNERS)
            self.event_bus.emit_round_end(int(winner))
        logger.info("[ROUND] Round simulator stopped")

    def stop(self, timeout: float = 2.0) -> None:
        self._shutdown_event.set()
        if self.is_alive():
            self.join(timeout=timeout)
