"""Lossless concatenation of ordered audio segments with the ffmpeg concat demuxer."""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Optional

from text2podcast.audio.audio_utils import get_ffmpeg
from text2podcast.errors import FileError, SubprocessError

logger = logging.getLogger(__name__)


def _escape(path: Path) -> str:
    """Quote a path for a concat manifest line."""
    value = str(path)
    if "\n" in value or "\r" in value:
        raise ValueError(f"Percorso non valido per il manifest concat: {value!r}")
    return value.replace("'", "'\\''")


def build_manifest(files: list[Path]) -> str:
    """Generate concat demuxer manifest content, one absolute path per line, in order."""
    lines = [f"file '{_escape(Path(f).resolve())}'" for f in files]
    return "\n".join(lines) + "\n"


class AudioConcatenator:
    """Merge audio files into one output, preserving the given order."""

    def __init__(self, ffmpeg_path: Optional[Callable[[], str]] = None):
        self._ffmpeg_path = ffmpeg_path or get_ffmpeg

    def concatenate(self, ordered_files: list[Path], output_path: Path) -> None:
        """Concatenate ordered_files into output_path without re-encoding.

        Raises:
            ValueError: If no input files are given.
            FileError: If an input file does not exist.
            SubprocessError: If ffmpeg is missing or exits non-zero.
        """
        if not ordered_files:
            raise ValueError("Nessun file audio da concatenare")

        missing = [str(f) for f in ordered_files if not Path(f).is_file()]
        if missing:
            raise FileError(f"File audio mancanti per la concatenazione: {', '.join(missing)}")

        manifest = build_manifest(ordered_files)
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".txt", prefix="concat-", delete=False, encoding="utf-8"
        ) as f:
            f.write(manifest)
            concat_list = f.name

        logger.info("Concatenazione di %d segmenti in %s", len(ordered_files), output_path.name)
        try:
            subprocess.run(
                [
                    self._ffmpeg_path(), "-y",
                    "-f", "concat", "-safe", "0",
                    "-i", concat_list,
                    "-c", "copy",
                    str(output_path),
                ],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise SubprocessError(
                f"ffmpeg concat fallito (codice {e.returncode}): {(e.stderr or '').strip()[-500:]}",
                returncode=e.returncode,
                stderr=e.stderr or "",
                original_error=e,
            ) from e
        except OSError as e:
            raise SubprocessError(f"ffmpeg non eseguibile: {e}", original_error=e) from e
        finally:
            Path(concat_list).unlink(missing_ok=True)
