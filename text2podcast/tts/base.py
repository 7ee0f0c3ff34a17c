"""Abstract base classes for speech synthesis capabilities."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from text2podcast.models import AudioConfig


class SpeechSynthesizer(ABC):
    """Abstract base class that all synthesis engines must implement."""

    @abstractmethod
    def initialize(self) -> None:
        """Check that the engine can be used (dependencies, credentials).

        Raises:
            CapabilityUnavailable: If the engine cannot be used.
        """
        ...

    @abstractmethod
    def synthesize_speech(self, text: str, config: AudioConfig) -> bytes:
        """Synthesize text and return the encoded audio bytes.

        Args:
            text: Speech-ready text, within the provider's single-call limit.
            config: Voice, encoding, pitch and rate settings.

        Raises:
            AuthError: Credentials missing or rejected.
            QuotaError: Provider rate or usage limit reached.
            NetworkError: Transient failure or deadline exceeded.
            CapabilityUnavailable: The engine is not configured.
        """
        ...

    @abstractmethod
    def list_voices(self, language: Optional[str] = None) -> list[dict]:
        """Return available voices, optionally filtered by language.

        Each dict contains at least 'name' and 'language' keys.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable engine name."""
        ...

    @property
    @abstractmethod
    def output_format(self) -> str:
        """File extension of the produced audio, e.g. 'mp3'."""
        ...

    @property
    def available(self) -> bool:
        return True


class LongFormSynthesizer(ABC):
    """Capability that synthesizes long texts in one request, writing to a file."""

    @property
    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    def synthesize_to_file(self, text: str, output_path: Path, config: AudioConfig) -> None:
        """Synthesize text directly into output_path.

        Raises:
            CapabilityUnavailable: The capability needs infrastructure that is
                not configured; callers fall back to chunked synthesis.
        """
        ...
