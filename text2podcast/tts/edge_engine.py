"""Edge TTS engine - free online neural TTS via Microsoft Edge."""

import asyncio
import logging
from threading import Thread
from typing import Optional

from text2podcast.errors import AuthError, CapabilityUnavailable, NetworkError, QuotaError
from text2podcast.models import AudioConfig, VoiceGender
from text2podcast.tts import register_engine
from text2podcast.tts.base import SpeechSynthesizer

logger = logging.getLogger(__name__)

# Fallback voices when a config names no voice
DEFAULT_VOICES = {
    VoiceGender.NEUTRAL: "en-US-AvaNeural",
    VoiceGender.MALE: "en-US-GuyNeural",
    VoiceGender.FEMALE: "en-US-JennyNeural",
}

# Edge takes pitch in Hz; configs carry semitones
PITCH_HZ_PER_SEMITONE = 8

DEFAULT_TIMEOUT = 60.0


def _run_async(coro):
    """Run an async coroutine safely, even if an event loop is already running.

    When called from a sync context (e.g. CLI), uses asyncio.run().
    When called from within an existing event loop (e.g. FastAPI/uvicorn),
    runs the coroutine in a fresh event loop on a separate thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    result = None
    exception = None

    def _target():
        nonlocal result, exception
        try:
            result = asyncio.run(coro)
        except Exception as e:
            exception = e

    t = Thread(target=_target)
    t.start()
    t.join()

    if exception:
        raise exception
    return result


@register_engine("edge")
class EdgeSynthesizer(SpeechSynthesizer):
    """Synthesis engine using Microsoft Edge's free online neural voices."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def initialize(self) -> None:
        try:
            import edge_tts  # noqa: F401
        except ImportError as e:
            raise CapabilityUnavailable(
                "edge-tts non installato. Installa con:\n"
                "  pip install edge-tts",
                original_error=e,
            )

    def synthesize_speech(self, text: str, config: AudioConfig) -> bytes:
        if config.encoding.upper() != "MP3":
            raise CapabilityUnavailable(
                f"Codifica '{config.encoding}' non supportata da Edge TTS (solo MP3)"
            )
        return _run_async(self._synthesize_async(text, config))

    async def _synthesize_async(self, text: str, config: AudioConfig) -> bytes:
        import aiohttp
        from edge_tts import exceptions as edge_errors

        try:
            audio = await asyncio.wait_for(self._stream(text, config), self.timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Sintesi scaduta dopo {self.timeout:.0f}s", original_error=e
            )
        except aiohttp.ClientResponseError as e:
            if e.status in (401, 403):
                raise AuthError(f"Edge TTS ha rifiutato la richiesta ({e.status})", original_error=e)
            if e.status == 429:
                raise QuotaError("Limite di richieste Edge TTS raggiunto", original_error=e)
            raise NetworkError(f"Errore HTTP Edge TTS ({e.status})", original_error=e)
        except (
            aiohttp.ClientError,
            edge_errors.NoAudioReceived,
            edge_errors.UnexpectedResponse,
            edge_errors.UnknownResponse,
            edge_errors.WebSocketError,
        ) as e:
            raise NetworkError(f"Errore di rete Edge TTS: {e}", original_error=e)

        if not audio:
            raise NetworkError(f"Edge TTS non ha prodotto audio (lunghezza testo: {len(text)})")
        return audio

    async def _stream(self, text: str, config: AudioConfig) -> bytes:
        import edge_tts

        voice = self._resolve_voice(config)
        communicate = edge_tts.Communicate(
            text,
            voice,
            rate=self._speed_to_rate(config.speaking_rate),
            pitch=self._pitch_to_hz(config.pitch),
        )
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
        return bytes(audio)

    def list_voices(self, language: Optional[str] = None) -> list[dict]:
        return _run_async(self._list_voices_async(language))

    async def _list_voices_async(self, language: Optional[str] = None) -> list[dict]:
        import edge_tts

        voices = await edge_tts.list_voices()
        result = []
        for v in voices:
            locale = v.get("Locale", "")
            if language and not locale.lower().startswith(language.lower()):
                continue
            result.append({
                "name": v["ShortName"],
                "language": locale,
                "gender": v.get("Gender", ""),
            })
        return result

    @property
    def name(self) -> str:
        return "Edge TTS"

    @property
    def output_format(self) -> str:
        return "mp3"

    @staticmethod
    def _resolve_voice(config: AudioConfig) -> str:
        return config.voice or DEFAULT_VOICES[config.gender]

    @staticmethod
    def _speed_to_rate(speed: float) -> str:
        """Convert speed multiplier (e.g. 1.2) to Edge TTS rate string (e.g. '+20%')."""
        percent = round((speed - 1.0) * 100)
        if percent >= 0:
            return f"+{percent}%"
        return f"{percent}%"

    @staticmethod
    def _pitch_to_hz(semitones: float) -> str:
        """Convert a semitone offset (e.g. 2) to Edge TTS pitch string (e.g. '+16Hz')."""
        hz = round(semitones * PITCH_HZ_PER_SEMITONE)
        if hz >= 0:
            return f"+{hz}Hz"
        return f"{hz}Hz"
