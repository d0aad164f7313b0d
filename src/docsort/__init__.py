"""docsort: sort documents into category folders with help from a language model."""

from importlib import metadata as _metadata

__all__ = ["__version__"]

_DISTRIBUTION = "docsort"


def __getattr__(name: str) -> str:
    if name != "__version__":
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    try:
        return _metadata.version(_DISTRIBUTION)
    except _metadata.PackageNotFoundError:
        return "0.0.0+unknown"
