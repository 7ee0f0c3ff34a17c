"""Shared fixtures for text2podcast tests."""

import uuid
from datetime import datetime, timezone

import pytest

from text2podcast.models import ProcessedContent, SourceKind, SynthesisResult, episode_file_name
from text2podcast.storage import EpisodeStore


def make_result(audio_dir, title="Episodio", size=100, duration=60):
    """Write a fake staged audio file and return the matching synthesis result."""
    episode_id = str(uuid.uuid4())
    file_name = episode_file_name(episode_id)
    staging_dir = audio_dir / ".staging"
    staging_dir.mkdir(exist_ok=True)
    path = staging_dir / file_name
    path.write_bytes(b"x" * size)
    return SynthesisResult(
        file_path=path,
        file_name=file_name,
        file_size=size,
        duration=duration,
        episode_id=episode_id,
        title=title,
        created_at=datetime.now(timezone.utc),
    )


def make_content(title="Episodio", kind=SourceKind.MARKDOWN):
    return ProcessedContent(title=title, text="Testo di prova.", source_kind=kind)


@pytest.fixture
def audio_dir(tmp_path):
    path = tmp_path / "audio"
    path.mkdir()
    return path


@pytest.fixture
def store(tmp_path, audio_dir):
    return EpisodeStore(
        tmp_path / "data" / "episodes.json",
        audio_dir,
        max_episodes=3,
        lock_retries=3,
        lock_retry_delay=0.01,
    )
