"""Interfaces shared by the statuses of Gradient resources."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Protocol, Self, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from safir.pydantic import UtcDatetime

__all__ = ["GradientStatus", "Status"]


@runtime_checkable
class Status(Protocol):
    """Protocol for the status of a resource managed by the controller.

    The reconcile loop only talks to resource statuses through this protocol
    so that it can classify, timestamp and snapshot any of them without
    knowing the concrete resource.
    """

    def get_last_updated_at(self) -> datetime | None: ...

    def set_last_updated_at(self, timestamp: datetime) -> None: ...

    def is_success(self) -> bool: ...

    def is_errored(self) -> bool: ...

    def needs_garbage_collection(self) -> bool: ...

    def copy_to_status(self) -> Status: ...


class GradientStatus(BaseModel):
    """Sub-status tracking what has been reported back to the platform API.

    Each resource carries one of these keyed by the handle of the platform
    object it belongs to, so that state changes are reported once.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    handle: Annotated[
        str,
        Field(
            title="Platform handle",
            description="Handle of the platform object owning this resource",
        ),
    ] = ""

    last_reported_state: Annotated[
        str,
        Field(
            title="Last reported state",
            description="State most recently reported to the platform API",
        ),
    ] = ""

    last_reported_at: Annotated[
        UtcDatetime | None, Field(title="Last report time")
    ] = None

    @classmethod
    def for_handle(cls, handle: str) -> Self:
        """Create the default sub-status for a platform handle.

        Parameters
        ----------
        handle
            Handle of the platform object owning the resource.

        Returns
        -------
        GradientStatus
            Sub-status with nothing reported yet.
        """
        return cls(handle=handle)

    def needs_report(self, state: str) -> bool:
        """Whether ``state`` has not yet been reported to the platform."""
        return state != self.last_reported_state

    def mark_reported(self, state: str, now: datetime) -> None:
        """Record that ``state`` was reported to the platform at ``now``."""
        self.last_reported_state = str(state)
        self.last_reported_at = now
