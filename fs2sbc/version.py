"""Version resolution for package metadata and runtime engine version."""

from importlib.metadata import PackageNotFoundError, version

from .engine import fs2sbc


def _resolve_version() -> str:
    engine_version = str(getattr(fs2sbc, "ENGINE_VERSION", "")).strip()
    if engine_version:
        return engine_version
    try:
        return version("fs2sbc")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _resolve_version()


__all__ = ["__version__"]
