"""
Contract tests for the decoded audio cache and channel counter.

- One decode per path, even under concurrent callers
- Failed decodes are not cached
- clear() forces a fresh decode; an in-flight decode is not stored after clear
- Channel ids are unique under concurrency
"""

import threading

import pytest

from advert.broadcast_core.audio_cache import AudioCache, ChannelCounter
from advert.tests.contracts.test_doubles import FakeAudioApi


class TestGetOrDecode:

    def test_second_lookup_reuses_handle(self, audio_cache, audio_api):
        first = audio_cache.get_or_decode("/sounds/a.mp3", audio_api.decode_from_file)
        second = audio_cache.get_or_decode("/sounds/a.mp3", audio_api.decode_from_file)

        assert first is second
        assert audio_api.decode_count("/sounds/a.mp3") == 1
        assert "/sounds/a.mp3" in audio_cache
        assert len(audio_cache) == 1

    def test_concurrent_callers_decode_once(self, audio_cache, audio_api):
        audio_api.decode_gate = threading.Event()
        results = []

        def worker():
            results.append(audio_cache.get_or_decode("/sounds/a.mp3", audio_api.decode_from_file))

        threads = [threading.Thread(target=worker) for _ in range(2)]
        threads[0].start()
        assert audio_api.decode_started.wait(timeout=2.0)
        threads[1].start()
        audio_api.decode_gate.set()
        for thread in threads:
            thread.join(timeout=5.0)

        assert len(results) == 2
        assert results[0] is results[1]
        assert audio_api.decode_count("/sounds/a.mp3") == 1

    def test_failed_decode_is_not_cached(self, audio_cache, audio_api):
        audio_api.fail_paths.add("/sounds/bad.mp3")

        with pytest.raises(RuntimeError):
            audio_cache.get_or_decode("/sounds/bad.mp3", audio_api.decode_from_file)
        assert "/sounds/bad.mp3" not in audio_cache

        audio_api.fail_paths.clear()
        audio_cache.get_or_decode("/sounds/bad.mp3", audio_api.decode_from_file)

        assert audio_api.decode_count("/sounds/bad.mp3") == 2
        assert "/sounds/bad.mp3" in audio_cache


class TestClear:

    def test_clear_forces_fresh_decode(self, audio_cache, audio_api):
        audio_cache.get_or_decode("/sounds/a.mp3", audio_api.decode_from_file)

        audio_cache.clear()
        audio_cache.get_or_decode("/sounds/a.mp3", audio_api.decode_from_file)

        assert audio_api.decode_count("/sounds/a.mp3") == 2

    def test_decode_in_flight_during_clear_is_not_stored(self):
        cache = AudioCache()
        audio_api = FakeAudioApi()
        audio_api.decode_gate = threading.Event()
        results = []

        thread = threading.Thread(
            target=lambda: results.append(cache.get_or_decode("/sounds/a.mp3", audio_api.decode_from_file))
        )
        thread.start()
        assert audio_api.decode_started.wait(timeout=2.0)

        cache.clear()
        audio_api.decode_gate.set()
        thread.join(timeout=5.0)

        assert len(results) == 1, "The in-flight caller still gets its handle"
        assert "/sounds/a.mp3" not in cache


class TestChannelCounter:

    def test_ids_start_at_one(self):
        counter = ChannelCounter()

        assert counter.next_channel_id() == "advert.1"
        assert counter.next_channel_id() == "advert.2"

    def test_ids_unique_under_concurrency(self):
        counter = ChannelCounter()
        ids = []
        lock = threading.Lock()

        def worker():
            for _ in range(200):
                channel_id = counter.next_channel_id()
                with lock:
                    ids.append(channel_id)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5.0)

        assert len(ids) == 800
        assert len(set(ids)) == 800
