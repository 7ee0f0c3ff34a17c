"""Short-lived cache in front of feed rendering."""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from text2podcast.feed.renderer import FeedRenderer, validate_feed
from text2podcast.models import Episode
from text2podcast.storage.store import EpisodeStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0
DEFAULT_EPISODE_LIMIT = 25


@dataclass
class _Entry:
    xml: str
    created: float
    generated_at: datetime


class FeedCache:
    """Serve the rendered feed from memory for up to ttl seconds.

    The cache is dropped explicitly with invalidate() (after a save or
    delete) or implicitly when the entry is older than ttl.
    """

    def __init__(
        self,
        store: EpisodeStore,
        renderer: FeedRenderer,
        ttl: float = DEFAULT_TTL,
        episode_limit: int = DEFAULT_EPISODE_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.renderer = renderer
        self.ttl = ttl
        self.episode_limit = episode_limit
        self._clock = clock
        self._entry: Optional[_Entry] = None
        self._generation = 0
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def generate(self) -> str:
        """Return the feed document, rendering it if the cache is empty or stale."""
        with self._lock:
            entry = self._entry
            if entry is not None and self._clock() - entry.created < self.ttl:
                self.hits += 1
                return entry.xml
            self.misses += 1
            generation = self._generation

        episodes = self.store.list_recent(self.episode_limit)
        xml = self.renderer.render(episodes)

        problems = validate_feed(xml)
        if problems:
            logger.warning("Avvisi validazione feed: %s", "; ".join(problems))

        with self._lock:
            # An invalidate() during the render makes this document stale
            if generation == self._generation:
                self._entry = _Entry(xml=xml, created=self._clock(), generated_at=datetime.now(timezone.utc))
        logger.debug("Feed rigenerato con %d episodi", len(episodes))
        return xml

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None
            self._generation += 1

    def refresh(self) -> str:
        self.invalidate()
        return self.generate()

    def episode_count(self) -> int:
        return len(self.store.list_all())

    def latest_episode(self) -> Optional[Episode]:
        episodes = self.store.list_recent(1)
        return episodes[0] if episodes else None

    def stats(self) -> dict:
        with self._lock:
            entry = self._entry
            return {
                "cache_size": 1 if entry else 0,
                "last_generated": entry.generated_at if entry else None,
                "cache_hits": self.hits,
                "cache_misses": self.misses,
            }
