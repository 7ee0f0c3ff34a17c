"""Episode store - JSON metadata document plus one audio file per episode."""

import json
import logging
import os
import tempfile
import warnings
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from text2podcast.errors import FileError, IntegrityWarning
from text2podcast.models import (
    Episode,
    EpisodeSource,
    EpisodesMetadata,
    IntegrityReport,
    ProcessedContent,
    StorageStats,
    SynthesisResult,
    episode_file_name,
)
from text2podcast.storage.lock import DEFAULT_RETRIES, DEFAULT_RETRY_DELAY, file_lock

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3",)


class EpisodeStore:
    """Capped, newest-first collection of episodes persisted as a JSON document.

    Every mutation runs inside the writer lock and rewrites the whole
    document through a temp file and an atomic rename. Reads take no lock.
    """

    def __init__(
        self,
        metadata_file: Path,
        audio_dir: Path,
        max_episodes: int = 25,
        lock_retries: int = DEFAULT_RETRIES,
        lock_retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        if max_episodes < 1:
            raise ValueError(f"max_episodes deve essere almeno 1: {max_episodes}")
        self.metadata_file = Path(metadata_file)
        self.audio_dir = Path(audio_dir)
        self.max_episodes = max_episodes
        self.lock_file = self.metadata_file.with_name(self.metadata_file.name + ".lock")
        self.lock_retries = lock_retries
        self.lock_retry_delay = lock_retry_delay

        self._ensure_directories()
        if not self.metadata_file.exists():
            self._write_metadata(EpisodesMetadata())
            logger.info("Creato file metadati: %s", self.metadata_file)

    # --- Mutations ---

    def save(
        self,
        content: ProcessedContent,
        result: SynthesisResult,
        source_url: Optional[str] = None,
    ) -> Episode:
        """Register a synthesized audio file as the newest episode.

        The file is moved from wherever the synthesis left it to
        <audio_dir>/episode-<id>.<ext> while the lock is held, so it never
        shows up as an orphan. Evicts the oldest episodes beyond
        max_episodes, deleting their audio, before the metadata is written.

        Raises:
            ValueError: If the result's file name does not match its episode id.
            FileError: If the audio file cannot be moved or the metadata written.
            LockTimeout: If the store lock cannot be acquired.
        """
        staged = Path(result.file_path)
        ext = staged.suffix.lstrip(".") or "mp3"
        file_name = episode_file_name(result.episode_id, ext)
        if result.file_name != file_name:
            raise ValueError(
                f"Nome file '{result.file_name}' non corrisponde all'episodio {result.episode_id}"
            )
        target = self.audio_dir / file_name

        episode = Episode(
            id=result.episode_id,
            title=content.title,
            file_name=file_name,
            file_path=str(target.resolve()),
            duration=result.duration,
            file_size=result.file_size,
            created_at=datetime.now(timezone.utc),
            source_kind=EpisodeSource.from_content(content.source_kind),
            source_url=source_url,
        )

        with self._lock():
            metadata = self._load_metadata()
            if any(ep.id == episode.id for ep in metadata.episodes):
                raise ValueError(f"Episodio già presente: {episode.id}")
            self._install_audio(staged, target)
            try:
                metadata.episodes.insert(0, episode)
                self._evict(metadata)
                metadata.touch()
                self._write_metadata(metadata)
            except Exception:
                target.unlink(missing_ok=True)
                raise

        logger.info("Episodio salvato: %s (%s)", episode.title, episode.id)
        return episode

    def delete(self, episode_id: str) -> bool:
        """Remove an episode and its audio file. Returns False if the id is unknown."""
        with self._lock():
            metadata = self._load_metadata()
            episode = next((ep for ep in metadata.episodes if ep.id == episode_id), None)
            if episode is None:
                return False

            self._remove_audio(episode)
            metadata.episodes.remove(episode)
            metadata.touch()
            self._write_metadata(metadata)

        logger.info("Episodio eliminato: %s (%s)", episode.title, episode.id)
        return True

    def record_download(self, episode_id: str) -> Optional[Episode]:
        """Increment an episode's download counter."""
        with self._lock():
            metadata = self._load_metadata()
            episode = next((ep for ep in metadata.episodes if ep.id == episode_id), None)
            if episode is None:
                return None
            episode.download_count += 1
            metadata.touch()
            self._write_metadata(metadata)
        return episode

    # --- Reads ---

    def get(self, episode_id: str) -> Optional[Episode]:
        metadata = self._load_metadata()
        return next((ep for ep in metadata.episodes if ep.id == episode_id), None)

    def list_all(self) -> list[Episode]:
        return self._load_metadata().episodes

    def list_recent(self, limit: int = 10) -> list[Episode]:
        return self._load_metadata().episodes[:limit]

    def metadata(self) -> EpisodesMetadata:
        return self._load_metadata()

    def stats(self) -> StorageStats:
        episodes = self._load_metadata().episodes
        dates = [ep.created_at for ep in episodes]
        return StorageStats(
            total_episodes=len(episodes),
            total_duration=sum(ep.duration for ep in episodes),
            total_size=sum(ep.file_size for ep in episodes),
            oldest=min(dates) if dates else None,
            newest=max(dates) if dates else None,
        )

    # --- Integrity ---

    def verify_integrity(self) -> IntegrityReport:
        """Compare metadata with the audio directory.

        Missing files are episodes whose audio does not exist; orphaned files
        are audio files with no episode. Emits an IntegrityWarning when either
        is found.
        """
        metadata = self._load_metadata()
        issues = []
        missing = []
        orphaned = []

        for episode in metadata.episodes:
            if not Path(episode.file_path).exists():
                missing.append(episode.file_name)
                issues.append(f"File audio mancante per l'episodio {episode.id}: {episode.file_name}")

        known = {ep.file_name for ep in metadata.episodes}
        for audio_file in self._audio_files():
            if audio_file.name not in known:
                orphaned.append(audio_file.name)
                issues.append(f"File audio orfano: {audio_file.name}")

        report = IntegrityReport(
            valid=not issues,
            issues=issues,
            missing_files=missing,
            orphaned_files=orphaned,
        )
        if not report.valid:
            warnings.warn(
                f"Problemi di integrità: {len(missing)} mancanti, {len(orphaned)} orfani",
                IntegrityWarning,
                stacklevel=2,
            )
        return report

    def cleanup_orphans(self) -> int:
        """Delete every orphaned audio file. Returns how many were removed."""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IntegrityWarning)
            report = self.verify_integrity()

        cleaned = 0
        for name in report.orphaned_files:
            try:
                (self.audio_dir / name).unlink()
                logger.info("Rimosso file orfano: %s", name)
                cleaned += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Impossibile rimuovere %s: %s", name, e)
        return cleaned

    # --- Internals ---

    def _lock(self):
        return file_lock(self.lock_file, self.lock_retries, self.lock_retry_delay)

    def _evict(self, metadata: EpisodesMetadata) -> None:
        if len(metadata.episodes) <= self.max_episodes:
            return
        evicted = metadata.episodes[self.max_episodes:]
        for episode in evicted:
            self._remove_audio(episode)
            logger.info("Rimosso episodio vecchio: %s (%s)", episode.title, episode.file_name)
        del metadata.episodes[self.max_episodes:]
        logger.info("Rimossi %d episodi oltre il limite di %d", len(evicted), self.max_episodes)

    def _install_audio(self, staged: Path, target: Path) -> None:
        try:
            os.replace(staged, target)
        except OSError as e:
            raise FileError(
                f"Impossibile spostare il file audio in {target}: {e}", original_error=e
            ) from e

    def _remove_audio(self, episode: Episode) -> None:
        """Delete an episode's audio file; failures are logged, never raised."""
        try:
            Path(episode.file_path).unlink()
            logger.debug("File audio eliminato: %s", episode.file_name)
        except FileNotFoundError:
            logger.warning("File audio già assente: %s", episode.file_name)
        except OSError as e:
            logger.warning("Impossibile eliminare %s: %s", episode.file_name, e)

    def _audio_files(self) -> list[Path]:
        if not self.audio_dir.exists():
            return []
        return sorted(
            p for p in self.audio_dir.iterdir()
            if p.is_file() and p.suffix.lower() in AUDIO_EXTENSIONS
        )

    def _ensure_directories(self) -> None:
        try:
            self.metadata_file.parent.mkdir(parents=True, exist_ok=True)
            self.audio_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileError(f"Impossibile creare le directory dati: {e}", original_error=e) from e

    def _load_metadata(self) -> EpisodesMetadata:
        try:
            raw = self.metadata_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return EpisodesMetadata()
        except OSError as e:
            raise FileError(f"Lettura metadati fallita: {e}", original_error=e) from e

        try:
            return EpisodesMetadata.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            raise FileError(
                f"File metadati corrotto: {self.metadata_file}", original_error=e
            ) from e

    def _write_metadata(self, metadata: EpisodesMetadata) -> None:
        """Write the whole document to a temp file, then rename it into place."""
        data = json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False)
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.metadata_file.parent,
                prefix=self.metadata_file.name + ".",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.metadata_file)
        except OSError as e:
            if tmp_path:
                Path(tmp_path).unlink(missing_ok=True)
            raise FileError(f"Scrittura metadati fallita: {e}", original_error=e) from e
