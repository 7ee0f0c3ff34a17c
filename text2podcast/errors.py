"""Exception hierarchy for text2podcast.

Every failure mode has its own type so that callers (CLI, web layer) can
map it to a retry policy or a user-facing message without string matching.
"""


class Text2PodcastError(Exception):
    """Base exception for all text2podcast errors."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class SynthesisError(Text2PodcastError):
    """Audio synthesis failed and no episode was produced."""


class AuthError(SynthesisError):
    """Synthesis credentials are missing or were rejected."""


class QuotaError(SynthesisError):
    """The synthesis provider refused the request because of rate or usage limits."""


class NetworkError(SynthesisError):
    """A synthesis call failed in transit or exceeded its deadline."""


class CapabilityUnavailable(SynthesisError):
    """The requested synthesis capability is not configured."""


class SubprocessError(SynthesisError):
    """The ffmpeg subprocess is missing or exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.returncode = returncode
        self.stderr = stderr


class FileError(Text2PodcastError):
    """Filesystem I/O on audio or metadata files failed."""


class LockTimeout(Text2PodcastError):
    """The episode store lock could not be acquired in time."""


class ConfigurationError(Text2PodcastError):
    """The application is configured in a way that cannot work."""


class IntegrityWarning(UserWarning):
    """Missing or orphaned audio files were found. The store stays usable."""
