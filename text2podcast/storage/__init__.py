"""Episode persistence: metadata document, audio files and the writer lock."""

from text2podcast.storage.lock import file_lock
from text2podcast.storage.store import EpisodeStore

__all__ = ["EpisodeStore", "file_lock"]
