"""Episode pipeline - wires synthesis, storage and the feed cache together."""

import logging
import warnings
from typing import Optional

from text2podcast.config import Settings
from text2podcast.errors import ConfigurationError, IntegrityWarning
from text2podcast.feed import FeedCache, FeedRenderer, PodcastInfo
from text2podcast.models import AudioConfig, Episode, ProcessedContent
from text2podcast.orchestrator import ProgressCallback, SynthesisOrchestrator
from text2podcast.storage import EpisodeStore
from text2podcast.tts import get_engine

logger = logging.getLogger(__name__)


class EpisodePipeline:
    """High-level operations used by the CLI and the web interface."""

    def __init__(
        self,
        orchestrator: SynthesisOrchestrator,
        store: EpisodeStore,
        feed: FeedCache,
        default_voice: str = "neutral-wavenet",
    ):
        self.orchestrator = orchestrator
        self.store = store
        self.feed = feed
        self.default_voice = default_voice

    def create_episode(
        self,
        content: ProcessedContent,
        voice: Optional[str] = None,
        source_url: Optional[str] = None,
        speaking_rate: Optional[float] = None,
        pitch: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Episode:
        """Synthesize content and store it as the newest episode."""
        config = AudioConfig.from_preset(voice or self.default_voice).merged(
            speaking_rate=speaking_rate, pitch=pitch,
        )
        result = self.orchestrator.synthesize(content, config, on_progress=on_progress)
        try:
            episode = self.store.save(content, result, source_url)
        except Exception:
            # Staged audio the store never took over
            result.file_path.unlink(missing_ok=True)
            raise

        self.feed.invalidate()
        self._check_integrity()
        return episode

    def delete_episode(self, episode_id: str) -> bool:
        deleted = self.store.delete(episode_id)
        if deleted:
            self.feed.invalidate()
        return deleted

    def maintenance(self) -> dict:
        """Remove orphaned audio files and report what is still inconsistent."""
        logger.info("Avvio manutenzione storage...")
        removed = self.store.cleanup_orphans()
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IntegrityWarning)
            report = self.store.verify_integrity()
        logger.info("Manutenzione completata. Rimossi %d file orfani.", removed)
        return {
            "orphaned_files_removed": removed,
            "integrity_valid": report.valid,
            "issues": report.issues,
        }

    def _check_integrity(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IntegrityWarning)
            report = self.store.verify_integrity()
        if not report.valid:
            logger.warning("Problemi di integrità storage: %s", ", ".join(report.issues))


def build_pipeline(settings: Settings) -> EpisodePipeline:
    """Construct the pipeline from settings.

    Raises:
        ConfigurationError: If the engine or the default voice is unknown.
    """
    try:
        AudioConfig.from_preset(settings.default_voice)
    except ValueError as e:
        raise ConfigurationError(str(e), original_error=e) from e

    engine = get_engine(settings.tts_engine, timeout=settings.synthesis_timeout)
    engine.initialize()
    if not engine.available:
        logger.warning("Engine TTS '%s' non disponibile: la sintesi è disattivata", settings.tts_engine)

    store = EpisodeStore(
        settings.metadata_file,
        settings.audio_output_dir,
        max_episodes=settings.max_episodes,
        lock_retries=settings.lock_retries,
        lock_retry_delay=settings.lock_retry_delay,
    )
    orchestrator = SynthesisOrchestrator(
        engine,
        settings.audio_output_dir,
        regular_limit=settings.regular_limit,
        long_form_limit=settings.long_form_limit,
    )
    renderer = FeedRenderer(PodcastInfo(
        title=settings.podcast_title,
        description=settings.podcast_description,
        author=settings.podcast_author,
        email=settings.podcast_email,
        language=settings.podcast_language,
        base_url=settings.base_url.rstrip("/"),
    ))
    feed = FeedCache(
        store, renderer,
        ttl=settings.feed_cache_ttl,
        episode_limit=settings.feed_episode_limit,
    )
    return EpisodePipeline(orchestrator, store, feed, default_voice=settings.default_voice)
