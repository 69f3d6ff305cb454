"""
Advert tick logic.

One tick selects the next ad group and emits all of its entries:
sections in document order, entries in document order within a section.
"""

import logging

from advert.broadcast_core.dispatcher import AdvertDispatcher
from advert.broadcast_core.renderer import RenderContext, TemplateRenderer
from advert.state.broadcaster_state import BroadcasterState

logger = logging.getLogger(__name__)


class AdvertTicker:
    """Runs one advert tick against the shared broadcaster state."""

    def __init__(
        self,
        state: BroadcasterState,
        renderer: TemplateRenderer,
        context: RenderContext,
        dispatcher: AdvertDispatcher,
    ):
        self.state = state
        self.renderer = renderer
        self.context = context
        self.dispatcher = dispatcher

    def tick(self) -> int:
        """
        Emit the next ad group.

        Blank messages are skipped. A failing entry is logged and the
        remaining entries still run.

        Returns:
            Number of entries dispatched
        """
        config, group = self.state.next_tick()
        if group is None:
            return 0

        dispatched = 0
        for location, raw_message in group.iter_entries():
            if not raw_message or not raw_message.strip():
                continue

            try:
                message = self.renderer.render(raw_message, config, self.context)
                if not message or not message.strip():
                    continue
                self.dispatcher.dispatch(location, message, config)
                dispatched += 1
            except Exception as e:
                logger.error(f"[TICK] {location.value} advert failed: {e}", exc_info=True)

        logger.debug(f"[TICK] Group {', '.join(group.labels)} emitted {dispatched} entries")
        return dispatched
