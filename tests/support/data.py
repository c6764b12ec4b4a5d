"""Utilities for reading test data."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from gradient.models.v1.notebook import Notebook

__all__ = ["data_path", "read_notebook", "read_notebook_data"]


def data_path(*parts: str) -> Path:
    """Return the path to a file under ``tests/data``."""
    return Path(__file__).parent.parent.joinpath("data", *parts)


def read_notebook_data(filename: str) -> Any:
    """Read a notebook fixture and return its decoded form.

    Parameters
    ----------
    filename
        File to read from ``tests/data/notebooks``. May be YAML or JSON.

    Returns
    -------
    typing.Any
        Parsed contents of file.
    """
    return yaml.safe_load(data_path("notebooks", filename).read_text())


def read_notebook(filename: str) -> Notebook:
    """Read a notebook fixture as a `~gradient.models.v1.notebook.Notebook`."""
    return Notebook.model_validate(read_notebook_data(filename))
