"""
Broadcast Core module for Advert.

This package contains the advert timer, rotation, template renderer,
dispatch sinks, panel bridge and decoded audio cache.
"""

from advert.broadcast_core.audio_cache import AudioCache, ChannelCounter
from advert.broadcast_core.panel import PanelCache, RoundEndBridge, outcome_for_winner
from advert.broadcast_core.rotation import AdRotation
from advert.broadcast_core.renderer import HostRenderContext, RenderContext, TemplateRenderer
from advert.broadcast_core.dispatcher import AdvertDispatcher, SoundPathResolver
from advert.broadcast_core.scheduler import AdvertScheduler, RepeatingTimer

__all__ = [
    "AudioCache",
    "ChannelCounter",
    "PanelCache",
    "RoundEndBridge",
    "outcome_for_winner",
    "AdRotation",
    "HostRenderContext",
    "RenderContext",
    "TemplateRenderer",
    "AdvertDispatcher",
    "SoundPathResolver",
    "AdvertScheduler",
    "RepeatingTimer",
]
