"""Synthesis orchestrator - turns processed content into a single audio file."""

import logging
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from text2podcast.audio.audio_utils import probe_duration_seconds
from text2podcast.audio.concat import AudioConcatenator
from text2podcast.errors import CapabilityUnavailable, SubprocessError, SynthesisError
from text2podcast.models import (
    WORDS_PER_MINUTE,
    AudioConfig,
    ProcessedContent,
    SynthesisResult,
    episode_file_name,
)
from text2podcast.text import prepare_text, split_text
from text2podcast.tts.base import LongFormSynthesizer, SpeechSynthesizer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# Single-call limit with a safety margin below the provider's 5000
REGULAR_LIMIT = 4500
LONG_FORM_LIMIT = 1_000_000

# Finished files wait here until the store moves them into the audio directory
STAGING_DIR = ".staging"


class SynthesisOrchestrator:
    """Chooses a synthesis strategy by text length and drives it to a final file."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        output_dir: Path,
        concatenator: Optional[AudioConcatenator] = None,
        long_form: Optional[LongFormSynthesizer] = None,
        default_config: Optional[AudioConfig] = None,
        regular_limit: int = REGULAR_LIMIT,
        long_form_limit: int = LONG_FORM_LIMIT,
        duration_probe: Callable[[Path], int] = probe_duration_seconds,
    ):
        self.synthesizer = synthesizer
        self.output_dir = Path(output_dir)
        self.concatenator = concatenator or AudioConcatenator()
        self.long_form = long_form
        self.default_config = default_config or AudioConfig()
        self.regular_limit = regular_limit
        self.long_form_limit = long_form_limit
        self.duration_probe = duration_probe
        self.staging_dir = self.output_dir / STAGING_DIR
        self.staging_dir.mkdir(parents=True, exist_ok=True)

    def synthesize(
        self,
        content: ProcessedContent,
        config: Optional[AudioConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SynthesisResult:
        """Synthesize content into a staged episode-<id>.<ext> file.

        The file is written under <output_dir>/.staging, outside the set of
        files the store scans, and is moved into the audio directory by
        EpisodeStore.save.

        Args:
            content: Title and text to narrate.
            config: Voice settings; defaults to the orchestrator's default config.
            on_progress: Callback(current, total, label) called after each chunk.

        Raises:
            SynthesisError: On any failure. The partial output file is removed first.
        """
        audio_config = config or self.default_config
        episode_id = str(uuid.uuid4())
        ext = self.synthesizer.output_format
        file_name = episode_file_name(episode_id, ext)
        output_path = self.staging_dir / file_name

        logger.info("Avvio sintesi: '%s'", content.title)
        text = prepare_text(content.text)
        if not text:
            raise SynthesisError(f"Nessun testo da sintetizzare per '{content.title}'")
        logger.info("Lunghezza testo: %d caratteri", len(text))

        try:
            strategy, chunk_count = self._run_strategy(
                text, output_path, audio_config, episode_id, on_progress
            )
            if not output_path.is_file():
                raise SynthesisError(f"Nessun file audio prodotto per '{content.title}'")
            file_size = output_path.stat().st_size
            duration = self._duration(output_path, text)
        except SynthesisError:
            output_path.unlink(missing_ok=True)
            raise
        except Exception as e:
            output_path.unlink(missing_ok=True)
            raise SynthesisError(f"Generazione audio fallita: {e}", original_error=e) from e

        logger.info("Sintesi completata: %s (%s, %d segmenti)", file_name, strategy, chunk_count)

        return SynthesisResult(
            file_path=output_path,
            file_name=file_name,
            file_size=file_size,
            duration=duration,
            episode_id=episode_id,
            title=content.title,
            created_at=datetime.now(timezone.utc),
            chunk_count=chunk_count,
            strategy=strategy,
        )

    def _run_strategy(
        self,
        text: str,
        output_path: Path,
        config: AudioConfig,
        episode_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> tuple[str, int]:
        if len(text) <= self.regular_limit:
            output_path.write_bytes(self.synthesizer.synthesize_speech(text, config))
            if on_progress:
                on_progress(1, 1, output_path.name)
            return "single", 1

        if len(text) <= self.long_form_limit and self.long_form and self.long_form.available:
            try:
                logger.info("Sintesi long-form per %d caratteri", len(text))
                self.long_form.synthesize_to_file(text, output_path, config)
                if on_progress:
                    on_progress(1, 1, output_path.name)
                return "long_form", 1
            except CapabilityUnavailable as e:
                logger.warning("Long-form non disponibile (%s), uso la sintesi a segmenti", e)
                output_path.unlink(missing_ok=True)

        chunk_count = self._synthesize_chunked(text, output_path, config, episode_id, on_progress)
        return "chunked", chunk_count

    def _synthesize_chunked(
        self,
        text: str,
        output_path: Path,
        config: AudioConfig,
        episode_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> int:
        chunks = split_text(text, self.regular_limit)
        ext = self.synthesizer.output_format
        work_dir = self.output_dir / f".chunks-{episode_id}"
        work_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Testo diviso in %d segmenti", len(chunks))

        try:
            chunk_files = []
            for i, chunk in enumerate(chunks):
                logger.info("Sintesi segmento %d/%d (%d caratteri)", i + 1, len(chunks), len(chunk))
                chunk_path = work_dir / f"chunk_{i:04d}.{ext}"
                chunk_path.write_bytes(self.synthesizer.synthesize_speech(chunk, config))
                chunk_files.append(chunk_path)
                if on_progress:
                    on_progress(i + 1, len(chunks), f"segmento {i + 1}")

            self.concatenator.concatenate(chunk_files, output_path)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        return len(chunks)

    def _duration(self, audio_path: Path, text: str) -> int:
        try:
            return self.duration_probe(audio_path)
        except SubprocessError as e:
            logger.warning("Impossibile leggere la durata audio: %s", e)
            words = len(text.split())
            return round(words / WORDS_PER_MINUTE * 60)
