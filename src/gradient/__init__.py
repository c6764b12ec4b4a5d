"""Lifecycle status of Gradient notebooks."""

from importlib.metadata import PackageNotFoundError, version

from .models.v1.notebook import (
    DecodedImageUpload,
    ImageUpload,
    Notebook,
    NotebookState,
    NotebookStatus,
)

__all__ = [
    "DecodedImageUpload",
    "ImageUpload",
    "Notebook",
    "NotebookState",
    "NotebookStatus",
    "__version__",
]


__version__: str
"""The application version string (PEP 440 / SemVer compatible)."""

try:
    __version__ = version("gradient-notebook")
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0"
