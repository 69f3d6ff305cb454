"""
Shared pytest fixtures for Advert contract tests.

Contract tests use test doubles (fakes, stubs) instead of a game server.
Files are only created under pytest's tmp_path.
"""

import threading

import pytest

from advert.broadcast_core.audio_cache import AudioCache, ChannelCounter
from advert.broadcast_core.dispatcher import AdvertDispatcher, SoundPathResolver
from advert.broadcast_core.panel import PanelCache
from advert.broadcast_core.renderer import TemplateRenderer
from advert.broadcast_core.ticker import AdvertTicker
from advert.state.broadcaster_state import BroadcasterState
from advert.tests.contracts.test_doubles import (
    FakeAudioApi,
    FakeGameEventBus,
    FakePlayerDirectory,
    FakeRenderContext,
    make_config,
)


@pytest.fixture
def players():
    """Two humans and one bot."""
    return FakePlayerDirectory()


@pytest.fixture
def audio_api():
    return FakeAudioApi()


@pytest.fixture
def event_bus():
    return FakeGameEventBus()


@pytest.fixture
def render_context(players):
    return FakeRenderContext(player_count=players.player_count)


@pytest.fixture
def renderer():
    return TemplateRenderer()


@pytest.fixture
def plugin_dirs(tmp_path):
    """(data_dir, plugin_dir) pair under tmp_path."""
    data_dir = tmp_path / "data"
    plugin_dir = tmp_path / "plugin"
    data_dir.mkdir()
    plugin_dir.mkdir()
    return data_dir, plugin_dir


@pytest.fixture
def path_resolver(plugin_dirs):
    data_dir, plugin_dir = plugin_dirs
    return SoundPathResolver(data_dir, plugin_dir)


@pytest.fixture
def panel_cache():
    return PanelCache()


@pytest.fixture
def audio_cache():
    return AudioCache()


@pytest.fixture
def dispatcher(players, audio_api, panel_cache, audio_cache, path_resolver):
    return AdvertDispatcher(
        players=players,
        audio_api=audio_api,
        panel_cache=panel_cache,
        audio_cache=audio_cache,
        channel_counter=ChannelCounter(),
        path_resolver=path_resolver,
    )


@pytest.fixture
def scenario_config():
    """Chat group followed by a Panel group."""
    return make_config([{"g1": {"Chat": "hi"}}, {"g2": {"Panel": "bye"}}], interval=15.0)


@pytest.fixture
def state(scenario_config):
    return BroadcasterState(scenario_config)


@pytest.fixture
def ticker(state, players, audio_api, render_context, renderer, path_resolver):
    """Ticker wired to the shared state's caches."""
    dispatcher = AdvertDispatcher(
        players=players,
        audio_api=audio_api,
        panel_cache=state.panel_cache,
        audio_cache=state.audio_cache,
        channel_counter=state.channel_counter,
        path_resolver=path_resolver,
    )
    return AdvertTicker(state, renderer, render_context, dispatcher)


@pytest.fixture(autouse=False)
def thread_leak_guard():
    """
    Optional fixture to detect thread leaks between tests.

    Request it explicitly in tests that start timers or watchers.
    """
    before = set(t.ident for t in threading.enumerate())
    yield
    after = set(t.ident for t in threading.enumerate())
    leaked = after - before
    # Give cancelled daemon timers a moment to exit
    for t in threading.enumerate():
        if t.ident in leaked:
            t.join(timeout=2.0)
    still_alive = [t for t in threading.enumerate() if t.ident in leaked and t.is_alive()]
    if still_alive:
        thread_info = "\n".join(f"  - {t.name} (daemon={t.daemon})" for t in still_alive)
        assert False, f"Thread leak detected - shutdown incomplete.\nLeaked threads:\n{thread_info}"
