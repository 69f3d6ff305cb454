"""
Panel adverts and the round-end bridge.

Panel messages are not sent when their tick fires. The last rendered Panel
message is kept in the PanelCache and shown on the round win panel at the
next round end.

Bridge states:
- Idle: cache empty, round end does nothing
- Armed: cache holds a message, every round end fires the win panel event

The cache is never cleared by a round end or by a config reload; the same
message is shown at every round end until a later Panel advert replaces it.
"""

import logging
import threading
from typing import Callable, Optional

from advert.host.interfaces import GameEventBus, RoundEndReason, Team

logger = logging.getLogger(__name__)


class PanelCache:
    """Single-slot holder for the latest Panel message. Last write wins."""

    def __init__(self):
        self._lock = threading.Lock()
        self._message: Optional[str] = None

    def set(self, message: str) -> None:
        with self._lock:
            self._message = message

    def get(self) -> Optional[str]:
        with self._lock:
            return self._message

    @property
    def is_armed(self) -> bool:
        with self._lock:
            return bool(self._message)


def outcome_for_winner(winner: int) -> RoundEndReason:
    """
    Map the raw winner byte of a round end to a win panel outcome.

    T and CT map to their win reasons; anything else (no winner, spectators,
    out-of-range values) is shown as a draw.
    """
    if winner == Team.T:
        return RoundEndReason.TERRORISTS_WIN
    if winner == Team.CT:
        return RoundEndReason.CTS_WIN
    return RoundEndReason.ROUND_DRAW


class RoundEndBridge:
    """Fires the win panel event with the cached Panel message at round end."""

    def __init__(self, panel_cache: PanelCache, event_bus: GameEventBus):
        self.panel_cache = panel_cache
        self.event_bus = event_bus
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self) -> None:
        """Subscribe to round-end notifications."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.event_bus.subscribe_round_end(self.on_round_end)
        logger.debug("[PANEL] Round-end hook registered")

    def detach(self) -> None:
        """Remove the round-end subscription."""
        if self._unsubscribe is None:
            return
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        unsubscribe()
        logger.debug("[PANEL] Round-end hook removed")

    def on_round_end(self, winner: int) -> bool:
        """
        Handle a round-end notification.

        Args:
            winner: Raw winner byte from the round-end event

        Returns:
            True if the win panel event was fired
        """
        try:
            message = self.panel_cache.get()
            if not message:
                return False

            outcome = outcome_for_winner(winner)
            self.event_bus.fire_win_panel(int(outcome), message)
            logger.debug(f"[PANEL] Win panel fired (winner={winner}, outcome={outcome.name})")
            return True
        except Exception as e:
            logger.error(f"[PANEL] Failed to fire win panel: {e}", exc_info=True)
            return False
