"""Test fixtures for gradient-notebook tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
import structlog
from structlog.stdlib import BoundLogger

from gradient.constants import ROOT_LOGGER
from gradient.models.v1.notebook import (
    Notebook,
    NotebookMetadata,
    NotebookSpec,
)


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 17, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def logger() -> BoundLogger:
    return structlog.get_logger(ROOT_LOGGER)


@pytest.fixture
def notebook() -> Notebook:
    """Construct a freshly created notebook."""
    spec = NotebookSpec.model_validate(
        {
            "name": "Test notebook",
            "projectHandle": "prj1",
            "teamHandle": "team1",
            "userHandle": "user1",
            "handle": "nb1",
            "jobHandle": "job1",
            "token": "token",
            "instance": {"machineType": "C5"},
            "details": {
                "image": {"name": "docker.io/example/notebook:latest"},
                "command": "jupyter lab",
            },
        }
    )
    metadata = NotebookMetadata(name="nb-nb1", namespace="notebooks")
    return Notebook.create(metadata, spec)

