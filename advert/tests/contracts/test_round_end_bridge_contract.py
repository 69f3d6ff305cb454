"""
Contract tests for the panel cache and round-end bridge.

- Idle (empty cache): round end fires nothing
- Armed: every round end fires the win panel with the cached message
- Winner mapping: T -> TERRORISTS_WIN, CT -> CTS_WIN, anything else -> ROUND_DRAW
- The cache is sticky across round ends
"""

import logging
from unittest.mock import Mock

import pytest

from advert.broadcast_core.panel import PanelCache, RoundEndBridge, outcome_for_winner
from advert.host.interfaces import RoundEndReason, Team


@pytest.fixture
def bridge(panel_cache, event_bus):
    bridge = RoundEndBridge(panel_cache, event_bus)
    bridge.attach()
    yield bridge
    bridge.detach()


class TestIdle:

    def test_round_end_without_panel_message_does_nothing(self, bridge, event_bus, panel_cache):
        assert not panel_cache.is_armed

        event_bus.end_round(int(Team.CT))

        assert event_bus.win_panels == []

    def test_empty_message_does_not_arm(self, bridge, event_bus, panel_cache):
        panel_cache.set("")

        assert bridge.on_round_end(int(Team.T)) is False
        assert event_bus.win_panels == []


class TestArmed:

    @pytest.mark.parametrize("winner, outcome", [
        (Team.CT, RoundEndReason.CTS_WIN),
        (Team.T, RoundEndReason.TERRORISTS_WIN),
        (Team.NONE, RoundEndReason.ROUND_DRAW),
        (Team.SPECTATOR, RoundEndReason.ROUND_DRAW),
        (42, RoundEndReason.ROUND_DRAW),
    ])
    def test_win_panel_outcome(self, bridge, event_bus, panel_cache, winner, outcome):
        panel_cache.set("Thanks for playing")

        event_bus.end_round(int(winner))

        assert event_bus.win_panels == [(int(outcome), "Thanks for playing")]

    def test_cache_is_sticky_across_round_ends(self, bridge, event_bus, panel_cache):
        panel_cache.set("visit our site")

        event_bus.end_round(int(Team.T))
        event_bus.end_round(int(Team.CT))

        assert [token for _, token in event_bus.win_panels] == ["visit our site", "visit our site"]
        assert panel_cache.get() == "visit our site"

    def test_later_panel_message_replaces_cached_one(self, bridge, event_bus, panel_cache):
        panel_cache.set("old")
        event_bus.end_round(int(Team.T))
        panel_cache.set("new")
        event_bus.end_round(int(Team.T))

        assert [token for _, token in event_bus.win_panels] == ["old", "new"]

    def test_event_bus_failure_is_logged(self, panel_cache, caplog):
        event_bus = Mock()
        event_bus.fire_win_panel.side_effect = RuntimeError("event rejected")
        panel_cache.set("msg")
        bridge = RoundEndBridge(panel_cache, event_bus)

        with caplog.at_level(logging.ERROR):
            assert bridge.on_round_end(int(Team.CT)) is False

        event_bus.fire_win_panel.assert_called_once_with(int(RoundEndReason.CTS_WIN), "msg")
        assert "Failed to fire win panel" in caplog.text


class TestSubscription:

    def test_attach_is_idempotent(self, panel_cache, event_bus):
        bridge = RoundEndBridge(panel_cache, event_bus)

        bridge.attach()
        bridge.attach()

        assert len(event_bus.round_end_callbacks) == 1
        bridge.detach()

    def test_detach_stops_firing(self, panel_cache, event_bus):
        bridge = RoundEndBridge(panel_cache, event_bus)
        bridge.attach()
        panel_cache.set("msg")

        bridge.detach()
        event_bus.end_round(int(Team.CT))

        assert event_bus.round_end_callbacks == []
        assert event_bus.win_panels == []


class TestOutcomeMapping:

    def test_outcome_values(self):
        assert int(outcome_for_winner(Team.CT)) == 8
        assert int(outcome_for_winner(Team.T)) == 9
        assert int(outcome_for_winner(Team.NONE)) == 10

    def test_panel_cache_last_write_wins(self):
        cache = PanelCache()
        cache.set("a")
        cache.set("b")

        assert cache.get() == "b"
        assert cache.is_armed
