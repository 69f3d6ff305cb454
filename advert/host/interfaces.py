"""
Host collaborator interfaces for the Advert broadcaster.

The game server host owns players, audio, game events and console variables.
The broadcaster only talks to the host through these narrow interfaces, so any
runtime (a real plugin host, the console host, or test doubles) can drive it.
"""

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Callable, Iterable, Optional


class Team(IntEnum):
    """Team numbers as reported by the engine."""
    NONE = 0
    SPECTATOR = 1
    T = 2
    CT = 3


class RoundEndReason(IntEnum):
    """Round end reasons carried by the win panel event (subset used by Advert)."""
    CTS_WIN = 8
    TERRORISTS_WIN = 9
    ROUND_DRAW = 10


class Player(ABC):
    """A player slot exposed by the host."""

    @property
    @abstractmethod
    def is_valid(self) -> bool:
        ...

    @property
    @abstractmethod
    def is_fake_client(self) -> bool:
        """True for bots."""
        ...

    @property
    @abstractmethod
    def player_id(self) -> int:
        ...

    @abstractmethod
    def send_chat(self, message: str) -> None:
        ...

    @abstractmethod
    def send_center(self, message: str) -> None:
        ...

    @abstractmethod
    def send_center_html(self, message: str, duration_ms: int) -> None:
        ...

    @abstractmethod
    def send_alert(self, message: str) -> None:
        ...


class PlayerDirectory(ABC):
    """Enumerates the players currently known to the host."""

    @abstractmethod
    def get_all_players(self) -> Iterable[Player]:
        ...

    @property
    @abstractmethod
    def player_count(self) -> int:
        ...


class AudioSource(ABC):
    """Opaque decoded audio handle."""


class AudioChannel(ABC):
    """A named playback channel of the audio subsystem."""

    @abstractmethod
    def set_source(self, source: AudioSource) -> None:
        ...

    @abstractmethod
    def set_volume_to_all(self, volume: float) -> None:
        ...

    @abstractmethod
    def play(self, player_id: int) -> None:
        ...


class AudioApi(ABC):
    """
    Audio subsystem shared by the host.

    The subsystem is optional. When it is not installed the broadcaster is
    given a NullAudioApi and Sound adverts become no-ops.
    """

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def decode_from_file(self, path: str) -> AudioSource:
        """
        Decode an audio file.

        Raises:
            Exception: Any decoder failure; callers log and skip the dispatch
        """
        ...

    @abstractmethod
    def use_channel(self, channel_id: str) -> AudioChannel:
        """Create or fetch the playback channel with the given id."""
        ...


class NullAudioApi(AudioApi):
    """Stand-in for a missing audio subsystem. Never decodes or plays anything."""

    @property
    def available(self) -> bool:
        return False

    def decode_from_file(self, path: str) -> AudioSource:
        raise RuntimeError("Audio subsystem is not available")

    def use_channel(self, channel_id: str) -> AudioChannel:
        raise RuntimeError("Audio subsystem is not available")


RoundEndCallback = Callable[[int], None]


class GameEventBus(ABC):
    """Subset of the host game-event bus used by Advert."""

    @abstractmethod
    def subscribe_round_end(self, callback: RoundEndCallback) -> Callable[[], None]:
        """
        Register a round-end hook.

        Args:
            callback: Called with the raw winner byte of each round end

        Returns:
            Function that removes the hook
        """
        ...

    @abstractmethod
    def fire_win_panel(self, final_event: int, funfact_token: str) -> None:
        """Fire the round win panel event to all clients."""
        ...


class ConVarAccessor(ABC):
    """Read access to console variables. Missing variables return None."""

    @abstractmethod
    def find_int(self, name: str) -> Optional[int]:
        ...

    @abstractmethod
    def find_str(self, name: str) -> Optional[str]:
        ...


class EngineInfo(ABC):
    """Engine globals needed for message templates."""

    @property
    @abstractmethod
    def server_ip(self) -> str:
        ...

    @property
    @abstractmethod
    def map_name(self) -> str:
        ...
