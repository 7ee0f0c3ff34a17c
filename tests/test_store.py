"""Tests for the episode store."""

import json
import threading
import warnings
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import make_content, make_result
from text2podcast.errors import FileError, IntegrityWarning, LockTimeout
from text2podcast.models import EpisodeSource, SourceKind
from text2podcast.storage import EpisodeStore


def _save(store, title, **kwargs):
    return store.save(make_content(title), make_result(store.audio_dir, title, **kwargs))


class TestEpisodeStoreInit:
    def test_creates_empty_metadata(self, tmp_path, audio_dir):
        metadata_file = tmp_path / "nested" / "episodes.json"
        EpisodeStore(metadata_file, audio_dir)

        data = json.loads(metadata_file.read_text(encoding="utf-8"))
        assert data["episodes"] == []
        assert data["total_count"] == 0
        assert "last_updated" in data

    def test_rejects_invalid_max(self, tmp_path, audio_dir):
        with pytest.raises(ValueError):
            EpisodeStore(tmp_path / "episodes.json", audio_dir, max_episodes=0)

    def test_corrupt_metadata_raises(self, store):
        store.metadata_file.write_text("{non json", encoding="utf-8")
        with pytest.raises(FileError, match="corrotto"):
            store.list_all()


class TestSave:
    def test_newest_first(self, store):
        a = _save(store, "A")
        b = _save(store, "B")

        assert [ep.id for ep in store.list_all()] == [b.id, a.id]
        assert store.list_recent(1)[0].id == b.id

    def test_episode_fields(self, store):
        result = make_result(store.audio_dir, "Articolo", size=2048, duration=95)
        episode = store.save(
            make_content("Articolo", SourceKind.HTML), result, source_url="https://example.com/a"
        )

        assert episode.id == result.episode_id
        assert episode.file_name == result.file_name
        assert Path(episode.file_path).is_absolute()
        assert episode.file_size == 2048
        assert episode.duration == 95
        assert episode.source_kind == EpisodeSource.URL
        assert episode.source_url == "https://example.com/a"
        assert episode.download_count == 0
        assert store.get(episode.id) == episode

    def test_moves_staged_audio_into_audio_dir(self, store):
        result = make_result(store.audio_dir, "A")
        staged = result.file_path

        episode = store.save(make_content("A"), result)

        assert not staged.exists()
        assert Path(episode.file_path) == (store.audio_dir / result.file_name).resolve()
        assert Path(episode.file_path).read_bytes() == b"x" * 100

    def test_staged_audio_is_not_an_orphan(self, store):
        make_result(store.audio_dir, "In sintesi")

        assert store.cleanup_orphans() == 0
        assert store.verify_integrity().valid

    def test_rejects_file_name_not_derived_from_id(self, store):
        result = make_result(store.audio_dir, "A")
        result.file_name = "episode-altro.mp3"

        with pytest.raises(ValueError, match="non corrisponde"):
            store.save(make_content("A"), result)

        assert store.list_all() == []
        assert result.file_path.exists()
        assert not store.lock_file.exists()

    def test_write_failure_leaves_no_installed_audio(self, store):
        result = make_result(store.audio_dir, "A")
        with patch.object(EpisodeStore, "_write_metadata", side_effect=FileError("disco pieno")):
            with pytest.raises(FileError):
                store.save(make_content("A"), result)

        assert list(store.audio_dir.glob("*.mp3")) == []

    def test_evicts_oldest_beyond_max(self, store):
        a = _save(store, "A")
        b = _save(store, "B")
        c = _save(store, "C")
        d = _save(store, "D")

        assert [ep.title for ep in store.list_all()] == ["D", "C", "B"]
        assert not Path(a.file_path).exists()
        for episode in (b, c, d):
            assert Path(episode.file_path).exists()
        assert store.get(a.id) is None

    def test_total_count_matches_episodes(self, store):
        for title in "ABCDE":
            _save(store, title)

        data = json.loads(store.metadata_file.read_text(encoding="utf-8"))
        assert data["total_count"] == len(data["episodes"]) == 3

    def test_eviction_tolerates_missing_audio(self, store):
        a = _save(store, "A")
        Path(a.file_path).unlink()
        for title in "BCD":
            _save(store, title)

        assert [ep.title for ep in store.list_all()] == ["D", "C", "B"]

    def test_no_temp_files_left(self, store):
        _save(store, "A")
        leftovers = [p.name for p in store.metadata_file.parent.iterdir()]
        assert leftovers == ["episodes.json"]

    def test_save_under_held_lock_times_out(self, store):
        store.lock_file.write_text("12345")
        result = make_result(store.audio_dir, "A")

        with pytest.raises(LockTimeout):
            store.save(make_content("A"), result)

        assert store.list_all() == []
        assert store.lock_file.exists()

    def test_lock_released_after_write_failure(self, store):
        with patch.object(EpisodeStore, "_write_metadata", side_effect=FileError("disco pieno")):
            with pytest.raises(FileError):
                _save(store, "A")

        assert not store.lock_file.exists()
        _save(store, "B")
        assert [ep.title for ep in store.list_all()] == ["B"]

    def test_concurrent_saves_keep_count_consistent(self, tmp_path, audio_dir):
        store = EpisodeStore(
            tmp_path / "episodes.json",
            audio_dir,
            max_episodes=5,
            lock_retries=500,
            lock_retry_delay=0.005,
        )
        results = [make_result(audio_dir, f"Ep {i}") for i in range(8)]
        errors = []

        def worker(result):
            try:
                store.save(make_content(result.title), result)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(r,)) for r in results]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        data = json.loads(store.metadata_file.read_text(encoding="utf-8"))
        assert data["total_count"] == len(data["episodes"]) == 5
        assert len({ep["id"] for ep in data["episodes"]}) == 5
        assert len(list(audio_dir.glob("*.mp3"))) == 5


class TestDelete:
    def test_removes_episode_and_audio(self, store):
        a = _save(store, "A")
        b = _save(store, "B")

        assert store.delete(a.id) is True
        assert store.get(a.id) is None
        assert not Path(a.file_path).exists()
        assert [ep.id for ep in store.list_all()] == [b.id]

    def test_unknown_id(self, store):
        _save(store, "A")
        assert store.delete("non-esiste") is False
        assert len(store.list_all()) == 1

    def test_missing_audio_does_not_block_delete(self, store):
        a = _save(store, "A")
        Path(a.file_path).unlink()
        assert store.delete(a.id) is True
        assert store.list_all() == []


class TestRecordDownload:
    def test_increments_counter(self, store):
        a = _save(store, "A")
        store.record_download(a.id)
        updated = store.record_download(a.id)

        assert updated.download_count == 2
        assert store.get(a.id).download_count == 2

    def test_unknown_id(self, store):
        assert store.record_download("non-esiste") is None


class TestStats:
    def test_empty(self, store):
        stats = store.stats()
        assert stats.total_episodes == 0
        assert stats.oldest is None
        assert stats.newest is None
        assert stats.average_duration == 0.0

    def test_totals_and_averages(self, store):
        a = _save(store, "A", size=100, duration=60)
        b = _save(store, "B", size=300, duration=120)

        stats = store.stats()
        assert stats.total_episodes == 2
        assert stats.total_duration == 180
        assert stats.total_size == 400
        assert stats.average_duration == 90
        assert stats.average_size == 200
        assert stats.oldest == a.created_at
        assert stats.newest == b.created_at


class TestIntegrity:
    def test_clean_store_is_valid(self, store):
        _save(store, "A")
        with warnings.catch_warnings():
            warnings.simplefilter("error", IntegrityWarning)
            report = store.verify_integrity()
        assert report.valid
        assert report.issues == []

    def test_reports_missing_and_orphaned(self, store):
        a = _save(store, "A")
        Path(a.file_path).unlink()
        (store.audio_dir / "stray.mp3").write_bytes(b"x")
        (store.audio_dir / "notes.txt").write_text("non audio")

        with pytest.warns(IntegrityWarning):
            report = store.verify_integrity()

        assert not report.valid
        assert report.missing_files == [a.file_name]
        assert report.orphaned_files == ["stray.mp3"]
        assert len(report.issues) == 2

    def test_chunk_directories_are_not_orphans(self, store):
        chunk_dir = store.audio_dir / ".chunks-abc"
        chunk_dir.mkdir()
        (chunk_dir / "chunk_0000.mp3").write_bytes(b"x")

        assert store.verify_integrity().orphaned_files == []

    def test_cleanup_orphans_is_idempotent(self, store):
        a = _save(store, "A")
        (store.audio_dir / "stray-1.mp3").write_bytes(b"x")
        (store.audio_dir / "stray-2.mp3").write_bytes(b"x")

        assert store.cleanup_orphans() == 2
        assert store.cleanup_orphans() == 0
        assert Path(a.file_path).exists()
        assert store.verify_integrity().valid
