"""Podcast feed rendering and caching."""

from text2podcast.feed.cache import FeedCache
from text2podcast.feed.renderer import FeedRenderer, PodcastInfo

__all__ = ["FeedCache", "FeedRenderer", "PodcastInfo"]
