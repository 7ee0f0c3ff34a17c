"""Data models for the text2podcast pipeline."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

# Average narration speed used for duration estimates
WORDS_PER_MINUTE = 150


def episode_file_name(episode_id: str, ext: str = "mp3") -> str:
    """File name of the audio for an episode; derived only from its id."""
    return f"episode-{episode_id}.{ext}"


class SourceKind(str, Enum):
    """Where a piece of processed content came from."""
    MARKDOWN = "markdown"
    HTML = "html"
    ARTIFACT = "artifact"


class EpisodeSource(str, Enum):
    """Source kind recorded on a stored episode."""
    MARKDOWN = "markdown"
    URL = "url"
    ARTIFACT = "artifact"

    @classmethod
    def from_content(cls, kind: SourceKind) -> "EpisodeSource":
        if kind == SourceKind.HTML:
            return cls.URL
        if kind == SourceKind.ARTIFACT:
            return cls.ARTIFACT
        return cls.MARKDOWN


class VoiceGender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class ProcessedContent:
    """Speech-ready text produced by content extraction."""
    title: str
    text: str
    source_kind: SourceKind = SourceKind.MARKDOWN

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def estimated_duration(self) -> int:
        """Estimated narration length in seconds."""
        return round(self.word_count / WORDS_PER_MINUTE * 60)


# Named voice presets: preset → (gender, voice name)
VOICE_PRESETS = {
    "neutral-standard": (VoiceGender.NEUTRAL, "en-US-AriaNeural"),
    "neutral-wavenet": (VoiceGender.NEUTRAL, "en-US-AvaNeural"),
    "male-wavenet": (VoiceGender.MALE, "en-US-GuyNeural"),
    "female-wavenet": (VoiceGender.FEMALE, "en-US-JennyNeural"),
    "male-neural": (VoiceGender.MALE, "en-US-AndrewNeural"),
    "female-neural": (VoiceGender.FEMALE, "en-US-EmmaNeural"),
}


@dataclass(frozen=True)
class AudioConfig:
    """Configuration for a single synthesis request."""
    gender: VoiceGender = VoiceGender.NEUTRAL
    voice: str = "en-US-AvaNeural"
    encoding: str = "MP3"
    pitch: float = 0.0
    speaking_rate: float = 1.0

    def __post_init__(self):
        if not -20.0 <= self.pitch <= 20.0:
            raise ValueError(f"Pitch fuori intervallo [-20, 20]: {self.pitch}")
        if not 0.25 <= self.speaking_rate <= 4.0:
            raise ValueError(
                f"Velocità fuori intervallo [0.25, 4.0]: {self.speaking_rate}"
            )

    @classmethod
    def from_preset(cls, preset: str, **overrides) -> "AudioConfig":
        """Build a config from a named voice preset."""
        if preset not in VOICE_PRESETS:
            available = ", ".join(VOICE_PRESETS)
            raise ValueError(f"Preset voce sconosciuto '{preset}'. Disponibili: {available}")
        gender, voice = VOICE_PRESETS[preset]
        return cls(gender=gender, voice=voice, **overrides)

    def merged(self, **overrides) -> "AudioConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


@dataclass
class SynthesisResult:
    """A finished audio file, not yet registered with the store."""
    file_path: Path
    file_name: str
    file_size: int
    duration: int
    episode_id: str
    title: str
    created_at: datetime
    chunk_count: int = 1
    strategy: str = "single"


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Episode:
    """A stored podcast episode and its audio file."""
    id: str
    title: str
    file_name: str
    file_path: str
    duration: int
    file_size: int
    created_at: datetime
    source_kind: EpisodeSource = EpisodeSource.MARKDOWN
    source_url: Optional[str] = None
    download_count: int = 0

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "file_name": self.file_name,
            "file_path": self.file_path,
            "duration": self.duration,
            "file_size": self.file_size,
            "created_at": self.created_at.isoformat(),
            "source_kind": self.source_kind.value,
            "download_count": self.download_count,
        }
        if self.source_url:
            data["source_url"] = self.source_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Episode":
        return cls(
            id=data["id"],
            title=data["title"],
            file_name=data["file_name"],
            file_path=data["file_path"],
            duration=int(data.get("duration", 0)),
            file_size=int(data.get("file_size", 0)),
            created_at=_parse_datetime(data["created_at"]),
            source_kind=EpisodeSource(data.get("source_kind", "markdown")),
            source_url=data.get("source_url"),
            download_count=int(data.get("download_count", 0)),
        )


@dataclass
class EpisodesMetadata:
    """Root document of the episode store. Episodes are newest first."""
    episodes: list[Episode] = field(default_factory=list)
    total_count: int = 0
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        """Recompute the count and bump the update timestamp after a mutation."""
        self.total_count = len(self.episodes)
        self.last_updated = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        return {
            "episodes": [ep.to_dict() for ep in self.episodes],
            "total_count": self.total_count,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EpisodesMetadata":
        episodes = [Episode.from_dict(ep) for ep in data.get("episodes", [])]
        last_updated = data.get("last_updated")
        return cls(
            episodes=episodes,
            total_count=len(episodes),
            last_updated=(
                _parse_datetime(last_updated) if last_updated
                else datetime.now(timezone.utc)
            ),
        )


@dataclass
class IntegrityReport:
    """Result of comparing the metadata document with the audio directory."""
    valid: bool
    issues: list[str] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)
    orphaned_files: list[str] = field(default_factory=list)


@dataclass
class StorageStats:
    total_episodes: int
    total_duration: int
    total_size: int
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None

    @property
    def average_duration(self) -> float:
        return self.total_duration / self.total_episodes if self.total_episodes else 0.0

    @property
    def average_size(self) -> float:
        return self.total_size / self.total_episodes if self.total_episodes else 0.0
