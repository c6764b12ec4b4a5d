"""Exceptions for Gradient notebook status handling."""

from __future__ import annotations

from typing import Self, override

from pydantic import ValidationError
from safir.slack.blockkit import SlackCodeBlock, SlackException, SlackMessage
from safir.slack.sentry import SentryEventInfo

__all__ = ["InvalidNotebookError", "InvalidStatusError", "ParseError"]


class ParseError(SlackException):
    """Unable to parse a Gradient resource document.

    Parameters
    ----------
    message
        Summary error message.
    error
        Detailed error message, possibly multi-line.
    """

    summary = "Unable to parse document"

    @classmethod
    def from_exception(cls, exc: ValidationError) -> Self:
        """Create an exception from a Pydantic parse failure.

        Parameters
        ----------
        exc
            Pydantic exception.

        Returns
        -------
        ParseError
            Constructed exception.
        """
        error = f"{type(exc).__name__}: {exc!s}"
        return cls(cls.summary, error)

    def __init__(self, message: str, error: str) -> None:
        super().__init__(message)
        self.error = error

    @override
    def to_slack(self) -> SlackMessage:
        """Convert to a Slack message for Slack alerting.

        Returns
        -------
        safir.slack.blockkit.SlackMessage
            Slack message suitable for posting as an alert.
        """
        message = super().to_slack()
        block = SlackCodeBlock(heading="Error", code=self.error)
        message.blocks.append(block)
        return message

    @override
    def to_sentry(self) -> SentryEventInfo:
        """Return Sentry metadata for this exception."""
        info = super().to_sentry()
        info.contexts["validation"] = {"error": self.error}
        return info


class InvalidStatusError(ParseError):
    """A notebook status document failed validation."""

    summary = "Unable to parse notebook status"


class InvalidNotebookError(ParseError):
    """A notebook manifest failed validation."""

    summary = "Unable to parse notebook"
