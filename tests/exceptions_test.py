"""Tests for exception reporting."""

from __future__ import annotations

import pytest
from safir.slack.blockkit import SlackCodeBlock

from gradient.exceptions import InvalidNotebookError, InvalidStatusError
from gradient.models.v1.notebook import Notebook, NotebookStatus


def test_invalid_status() -> None:
    with pytest.raises(InvalidStatusError) as excinfo:
        NotebookStatus.from_document({"state": "Exploded"})
    exc = excinfo.value
    assert str(exc) == "Unable to parse notebook status"
    assert "ValidationError" in exc.error
    assert "state" in exc.error

    message = exc.to_slack()
    blocks = [b for b in message.blocks if isinstance(b, SlackCodeBlock)]
    assert len(blocks) == 1
    assert blocks[0].heading == "Error"
    assert blocks[0].code == exc.error

    info = exc.to_sentry()
    assert info.contexts["validation"] == {"error": exc.error}


def test_invalid_notebook() -> None:
    with pytest.raises(InvalidNotebookError) as excinfo:
        Notebook.from_document({"metadata": {"name": "nb-1"}})
    assert str(excinfo.value) == "Unable to parse notebook"
    assert "spec" in excinfo.value.error
