"""Synthesis engine registry and factory."""

from text2podcast.errors import ConfigurationError
from text2podcast.tts.base import SpeechSynthesizer

ENGINE_REGISTRY: dict[str, type[SpeechSynthesizer]] = {}


def register_engine(name: str):
    """Decorator to register a synthesis engine class."""
    def decorator(cls):
        ENGINE_REGISTRY[name] = cls
        return cls
    return decorator


def get_engine(name: str, **kwargs) -> SpeechSynthesizer:
    """Instantiate a synthesis engine by name."""
    _import_engines()
    if name not in ENGINE_REGISTRY:
        available = ", ".join(ENGINE_REGISTRY.keys()) or "(nessuno)"
        raise ConfigurationError(f"Engine sconosciuto '{name}'. Disponibili: {available}")
    return ENGINE_REGISTRY[name](**kwargs)


def list_engines() -> list[str]:
    """Return names of all registered engines."""
    _import_engines()
    return list(ENGINE_REGISTRY.keys())


def _import_engines() -> None:
    """Import all engine modules to trigger registration."""
    import text2podcast.tts.disabled_engine  # noqa: F401
    import text2podcast.tts.edge_engine  # noqa: F401
