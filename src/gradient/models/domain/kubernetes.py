"""Data types for the Kubernetes objects tracked by a notebook status."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Self

from kubernetes_asyncio.client import V1Pod
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from safir.pydantic import UtcDatetime

__all__ = [
    "DownloadArtifactState",
    "DownloadArtifactStatus",
    "LegacyJobStatus",
    "PodPhase",
    "PodStatus",
    "is_deleted",
]


class PodPhase(StrEnum):
    """One of the valid phases reported in the status section of a Pod."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class PodStatus(BaseModel):
    """Last observed status of a pod owned by a notebook.

    The controller records one of these for the notebook pod itself and for
    each auxiliary pod (workspace upload, image caching). The status outlives
    the pod: once the pod is gone, ``deleted_at`` is set and the status is
    kept so that garbage collection can tell the pod has been reaped.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Annotated[str, Field(title="Pod name")] = ""

    phase: Annotated[
        PodPhase | None,
        Field(
            title="Pod phase",
            description="Last observed phase, or null if never reported",
        ),
    ] = None

    message: Annotated[
        str, Field(title="Message", description="Human-readable pod message")
    ] = ""

    reason: Annotated[
        str,
        Field(title="Reason", description="Brief reason for the pod status"),
    ] = ""

    node_name: Annotated[
        str, Field(title="Node", description="Node the pod is scheduled on")
    ] = ""

    exit_code: Annotated[
        int | None,
        Field(
            title="Exit code",
            description="Exit code of the main container, once terminated",
        ),
    ] = None

    started_at: Annotated[
        UtcDatetime | None, Field(title="Start time")
    ] = None

    finished_at: Annotated[
        UtcDatetime | None, Field(title="Finish time")
    ] = None

    deleted_at: Annotated[
        UtcDatetime | None,
        Field(
            title="Deletion time",
            description=(
                "When the pod was observed to be deleted. Null means the pod"
                " still exists or its deletion has not been observed yet."
            ),
        ),
    ] = None

    @classmethod
    def from_pod(cls, pod: V1Pod) -> Self:
        """Build a pod status from a Kubernetes ``Pod`` object.

        A deletion timestamp on the pod only means it is terminating, so the
        result is never marked deleted. Use `mark_deleted` once the pod is
        gone.

        Parameters
        ----------
        pod
            Kubernetes API object.

        Returns
        -------
        PodStatus
            Corresponding pod status.
        """
        status = pod.status
        phase = None
        if status and status.phase:
            try:
                phase = PodPhase(status.phase)
            except ValueError:
                phase = PodPhase.UNKNOWN

        exit_code = None
        started_at = status.start_time if status else None
        finished_at = None
        if status and status.container_statuses:
            state = status.container_statuses[0].state
            if state and state.terminated:
                exit_code = state.terminated.exit_code
                started_at = state.terminated.started_at or started_at
                finished_at = state.terminated.finished_at

        return cls(
            name=pod.metadata.name,
            phase=phase,
            message=(status.message or "") if status else "",
            reason=(status.reason or "") if status else "",
            node_name=(pod.spec.node_name or "") if pod.spec else "",
            exit_code=exit_code,
            started_at=started_at,
            finished_at=finished_at,
        )

    @property
    def deleted(self) -> bool:
        """Whether the pod has been observed to be deleted."""
        return self.deleted_at is not None

    def mark_deleted(self, now: datetime) -> None:
        """Record the deletion of the pod.

        The first recorded deletion time wins.

        Parameters
        ----------
        now
            Time at which the deletion was observed.
        """
        if self.deleted_at is None:
            self.deleted_at = now


def is_deleted(status: PodStatus | None) -> bool:
    """Determine whether a possibly-missing pod status is deleted.

    A missing status counts as deleted. Notebook statuses drop pod statuses
    once the pod has been reaped, so absence cannot be distinguished from a
    pod that was never created.

    Parameters
    ----------
    status
        Pod status, if any.

    Returns
    -------
    bool
        `True` if there is no status or the status records a deletion.
    """
    return status is None or status.deleted


class LegacyJobStatus(BaseModel):
    """Status of a Kubernetes ``Job``.

    Only used by deprecated notebook status fields that are kept so that old
    notebook objects still parse. Unknown keys are preserved so that a
    parsed status serializes back to the same document.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, extra="allow", populate_by_name=True
    )

    active: int | None = None

    succeeded: int | None = None

    failed: int | None = None

    start_time: UtcDatetime | None = None

    completion_time: UtcDatetime | None = None

    conditions: list[dict[str, Any]] | None = None


class DownloadArtifactState(StrEnum):
    """Progress of a single artifact download."""

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


class DownloadArtifactStatus(BaseModel):
    """Status of one artifact being fetched for a notebook."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: Annotated[
        DownloadArtifactState, Field(title="Download state")
    ] = DownloadArtifactState.PENDING

    message: Annotated[
        str,
        Field(title="Message", description="Diagnostic message on failure"),
    ] = ""

    pod_status: Annotated[
        PodStatus | None,
        Field(
            title="Download pod",
            description="Status of the pod performing the download, if any",
        ),
    ] = None

    started_at: Annotated[
        UtcDatetime | None, Field(title="Start time")
    ] = None

    finished_at: Annotated[
        UtcDatetime | None, Field(title="Finish time")
    ] = None

    @property
    def done(self) -> bool:
        """Whether the download has stopped, successfully or not."""
        return self.state in (
            DownloadArtifactState.SUCCEEDED,
            DownloadArtifactState.FAILED,
        )

    @property
    def failed(self) -> bool:
        """Whether the download failed."""
        return self.state == DownloadArtifactState.FAILED
