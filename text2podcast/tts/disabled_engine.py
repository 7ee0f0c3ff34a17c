"""Disabled engine - used when no synthesis provider is configured."""

from typing import Optional

from text2podcast.errors import CapabilityUnavailable
from text2podcast.models import AudioConfig
from text2podcast.tts import register_engine
from text2podcast.tts.base import SpeechSynthesizer

MESSAGE = "Sintesi vocale non disponibile: nessun engine TTS configurato"


@register_engine("disabled")
class DisabledSynthesizer(SpeechSynthesizer):
    """Engine that refuses every request.

    Lets feed and storage features run without a synthesis provider while
    still reporting the missing capability clearly.
    """

    def __init__(self, **_kwargs):
        pass

    def initialize(self) -> None:
        pass

    def synthesize_speech(self, text: str, config: AudioConfig) -> bytes:
        raise CapabilityUnavailable(MESSAGE)

    def list_voices(self, language: Optional[str] = None) -> list[dict]:
        return []

    @property
    def name(self) -> str:
        return "Disabled"

    @property
    def output_format(self) -> str:
        return "mp3"

    @property
    def available(self) -> bool:
        return False
