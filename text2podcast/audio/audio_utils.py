"""Audio utility functions - duration probing and ffmpeg paths."""

import json
import subprocess
from pathlib import Path

import static_ffmpeg

from text2podcast.errors import ConfigurationError, SubprocessError


def get_ffmpeg_paths() -> tuple[str, str]:
    """Return (ffmpeg_path, ffprobe_path) using the bundled static-ffmpeg binaries.

    Downloads binaries on first use if not already present.
    """
    ffmpeg_path, ffprobe_path = static_ffmpeg.run.get_or_fetch_platform_executables_else_raise()
    return ffmpeg_path, ffprobe_path


def get_ffmpeg() -> str:
    """Return the path to the ffmpeg executable."""
    ffmpeg, _ = get_ffmpeg_paths()
    return ffmpeg


def get_ffprobe() -> str:
    """Return the path to the ffprobe executable."""
    _, ffprobe = get_ffmpeg_paths()
    return ffprobe


def check_ffmpeg() -> None:
    """Verify that ffmpeg and ffprobe are available (downloads if needed)."""
    try:
        get_ffmpeg_paths()
    except Exception as e:
        raise ConfigurationError(
            f"Impossibile ottenere ffmpeg: {e}\n"
            f"Prova a reinstallare: pip install --force-reinstall static-ffmpeg",
            original_error=e,
        ) from e


def probe_duration_seconds(audio_path: Path) -> int:
    """Get audio file duration in whole seconds using ffprobe.

    Raises:
        SubprocessError: If ffprobe fails or its output cannot be parsed.
    """
    try:
        result = subprocess.run(
            [
                get_ffprobe(), "-v", "quiet",
                "-print_format", "json",
                "-show_format",
                str(audio_path),
            ],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise SubprocessError(
            f"ffprobe fallito su {audio_path.name}",
            returncode=e.returncode,
            stderr=e.stderr or "",
            original_error=e,
        ) from e
    except OSError as e:
        raise SubprocessError(f"ffprobe non eseguibile: {e}", original_error=e) from e

    try:
        data = json.loads(result.stdout)
        duration_seconds = float(data["format"]["duration"])
    except (ValueError, KeyError) as e:
        raise SubprocessError(
            f"Durata non leggibile per {audio_path.name}", original_error=e
        ) from e
    return round(duration_seconds)
