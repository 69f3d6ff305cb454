"""
Advert rotation for the Advert broadcaster.

Round-robin over the configured ad groups: list[0], list[1], ...,
list[L-1], list[0], ... The index is reset to 0 whenever the group list is
replaced by a config reload.
"""

import logging
import threading
from typing import Optional, Sequence, Tuple

from advert.config.model import AdGroup

logger = logging.getLogger(__name__)


class AdRotation:
    """
    Holds the ordered ad groups and the current rotation index.

    select_next() is called by ticks (which the scheduler serializes);
    reset() is called from config reload. Both take the same lock.
    """

    def __init__(self, groups: Sequence[AdGroup] = ()):
        """
        Initialize rotation.

        Args:
            groups: Ordered ad groups from the current config
        """
        self._lock = threading.Lock()
        self._groups: Tuple[AdGroup, ...] = tuple(groups)
        self._index = 0

    @property
    def index(self) -> int:
        """Index of the group the next tick will select."""
        with self._lock:
            return self._index

    @property
    def groups(self) -> Tuple[AdGroup, ...]:
        with self._lock:
            return self._groups

    def __len__(self) -> int:
        with self._lock:
            return len(self._groups)

    def select_next(self) -> Optional[AdGroup]:
        """
        Return the group at the current index and advance (wrapping).

        Returns:
            Selected group, or None if there are no groups (index unchanged)
        """
        with self._lock:
            if not self._groups:
                return None

            if self._index >= len(self._groups):
                self._index = 0

            group = self._groups[self._index]
            self._index = (self._index + 1) % len(self._groups)
            return group

    def reset(self, groups: Optional[Sequence[AdGroup]] = None) -> None:
        """
        Restart the rotation from the first group.

        Args:
            groups: Replacement group list (keeps the current list if None)
        """
        with self._lock:
            if groups is not None:
                self._groups = tuple(groups)
            self._index = 0
        logger.debug(f"[ROTATION] Reset ({len(self._groups)} groups)")
