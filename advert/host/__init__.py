"""
Host module for Advert.

This package contains the host collaborator interfaces and the console host
used to run Advert outside a game server.
"""

from advert.host.interfaces import (
    AudioApi,
    AudioChannel,
    AudioSource,
    ConVarAccessor,
    EngineInfo,
    GameEventBus,
    NullAudioApi,
    Player,
    PlayerDirectory,
    RoundEndReason,
    Team,
)

__all__ = [
    "AudioApi",
    "AudioChannel",
    "AudioSource",
    "ConVarAccessor",
    "EngineInfo",
    "GameEventBus",
    "NullAudioApi",
    "Player",
    "PlayerDirectory",
    "RoundEndReason",
    "Team",
]
