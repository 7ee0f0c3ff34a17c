"""Tests for feed rendering and the feed cache."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from conftest import make_content, make_result
from text2podcast.feed import FeedCache, FeedRenderer, PodcastInfo
from text2podcast.feed.renderer import format_duration, validate_feed
from text2podcast.models import Episode, EpisodeSource


def _episode(**overrides):
    data = {
        "id": "abc-123",
        "title": "Rock & Roll <live>",
        "file_name": "episode-abc-123.mp3",
        "file_path": "/data/audio/episode-abc-123.mp3",
        "duration": 3725,
        "file_size": 4096,
        "created_at": datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        "source_kind": EpisodeSource.URL,
        "source_url": "https://example.com/post?a=1&b=2",
    }
    data.update(overrides)
    return Episode(**data)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestFormatDuration:
    def test_minutes_and_seconds(self):
        assert format_duration(0) == "0:00"
        assert format_duration(59) == "0:59"
        assert format_duration(605) == "10:05"

    def test_hours(self):
        assert format_duration(3600) == "1:00:00"
        assert format_duration(3725) == "1:02:05"


class TestFeedRenderer:
    def test_channel_metadata(self):
        podcast = PodcastInfo(title="Letture", base_url="https://pod.example.com")
        xml = FeedRenderer(podcast).render([])

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<title>Letture</title>" in xml
        assert 'href="https://pod.example.com/podcast.xml"' in xml
        assert "<item>" not in xml
        assert validate_feed(xml) == []

    def test_item_fields_are_escaped(self):
        podcast = PodcastInfo(base_url="https://pod.example.com")
        xml = FeedRenderer(podcast).render([_episode()])

        assert "<title>Rock &amp; Roll &lt;live&gt;</title>" in xml
        assert '<guid isPermaLink="false">abc-123</guid>' in xml
        assert (
            '<enclosure url="https://pod.example.com/audio/episode-abc-123.mp3" '
            'length="4096" type="audio/mpeg"/>'
        ) in xml
        assert "<itunes:duration>1:02:05</itunes:duration>" in xml
        assert "Source: https://example.com/post?a=1&amp;b=2" in xml
        assert "Source Type: Web URL" in xml
        assert "Wed, 01 May 2024 12:30:00 +0000" in xml

    def test_items_keep_order(self):
        first = _episode(id="uno", title="Uno")
        second = _episode(id="due", title="Due")
        xml = FeedRenderer(PodcastInfo()).render([first, second])

        assert xml.index("<guid isPermaLink=\"false\">uno</guid>") < xml.index(
            "<guid isPermaLink=\"false\">due</guid>"
        )


class TestValidateFeed:
    def test_reports_missing_parts(self):
        problems = validate_feed("<rss><channel></channel></rss>")
        assert "Dichiarazione XML mancante" in problems
        assert "Namespace iTunes mancante" in problems
        assert any("title" in p for p in problems)


class TestFeedCache:
    def _cache(self, episodes=None, ttl=300.0):
        store = MagicMock()
        store.list_recent.return_value = episodes or []
        store.list_all.return_value = episodes or []
        renderer = MagicMock(wraps=FeedRenderer(PodcastInfo()))
        clock = FakeClock()
        cache = FeedCache(store, renderer, ttl=ttl, episode_limit=10, clock=clock)
        return cache, store, renderer, clock

    def test_serves_cached_copy_within_ttl(self):
        cache, store, renderer, clock = self._cache()

        first = cache.generate()
        clock.now += 299
        second = cache.generate()

        assert first == second
        renderer.render.assert_called_once()
        store.list_recent.assert_called_once_with(10)
        assert cache.stats()["cache_hits"] == 1
        assert cache.stats()["cache_misses"] == 1

    def test_regenerates_after_ttl(self):
        cache, _store, renderer, clock = self._cache(ttl=60)

        cache.generate()
        clock.now += 61
        cache.generate()

        assert renderer.render.call_count == 2

    def test_invalidate_forces_regeneration(self):
        cache, store, renderer, _clock = self._cache()

        cache.generate()
        store.list_recent.return_value = [_episode()]
        cache.invalidate()
        xml = cache.generate()

        assert renderer.render.call_count == 2
        assert "abc-123" in xml

    def test_refresh(self):
        cache, _store, renderer, _clock = self._cache()
        cache.generate()
        cache.refresh()
        assert renderer.render.call_count == 2

    def test_stats(self):
        cache, _store, _renderer, _clock = self._cache()
        assert cache.stats() == {
            "cache_size": 0,
            "last_generated": None,
            "cache_hits": 0,
            "cache_misses": 0,
        }

        cache.generate()
        stats = cache.stats()
        assert stats["cache_size"] == 1
        assert isinstance(stats["last_generated"], datetime)

    def test_episode_helpers(self):
        episode = _episode()
        cache, _store, _renderer, _clock = self._cache([episode])
        assert cache.episode_count() == 1
        assert cache.latest_episode() == episode

        empty, _store, _renderer, _clock = self._cache()
        assert empty.latest_episode() is None

    def test_with_real_store(self, store):
        renderer = FeedRenderer(PodcastInfo())
        cache = FeedCache(store, renderer, clock=FakeClock())
        store.save(make_content("Primo"), make_result(store.audio_dir, "Primo"))

        xml = cache.generate()

        assert "<title>Primo</title>" in xml
        assert validate_feed(xml) == []

    def test_invalidate_during_render_is_not_lost(self):
        cache, store, renderer, _clock = self._cache()
        real_render = FeedRenderer(PodcastInfo()).render

        def render_while_saving(episodes):
            xml = real_render(episodes)
            if renderer.render.call_count == 1:
                # A save lands after the episodes were read
                store.list_recent.return_value = [_episode(id="nuovo", title="Nuovo")]
                cache.invalidate()
            return xml

        renderer.render.side_effect = render_while_saving

        first = cache.generate()
        second = cache.generate()

        assert "Nuovo" not in first
        assert "<title>Nuovo</title>" in second
        assert renderer.render.call_count == 2
        assert cache.stats()["cache_size"] == 1
