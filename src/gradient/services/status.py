"""Apply controller observations to notebook statuses."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from kubernetes_asyncio.client import V1Pod
from safir.datetime import current_datetime
from structlog.stdlib import BoundLogger

from ..models.domain.kubernetes import DownloadArtifactStatus, PodStatus
from ..models.domain.status import Status
from ..models.v1.notebook import Notebook, NotebookState, NotebookStatus

__all__ = ["NotebookStatusUpdater", "PodKind"]


class PodKind(Enum):
    """Pods whose status is tracked in a notebook status."""

    NOTEBOOK = "notebook"
    WORKSPACE_UPLOAD = "workspace-upload"
    IMAGE_CACHE = "image-cache"


class NotebookStatusUpdater:
    """Update the status of notebooks from observed infrastructure changes.

    This is the only way the controller is expected to modify a notebook
    status. Every change goes through `NotebookStatus.set_state` or
    `NotebookStatus.touch`, so the last update time is always current, and is
    logged with the namespace and name of the notebook.

    Parameters
    ----------
    logger
        Logger to use.
    """

    def __init__(self, logger: BoundLogger) -> None:
        self._logger = logger

    def transition(
        self,
        notebook: Notebook,
        state: NotebookState,
        *,
        message: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Move a notebook to a new state.

        Parameters
        ----------
        notebook
            Notebook to update.
        state
            New state.
        message
            Diagnostic message, normally given with error states.
        now
            Time of the change. Defaults to the current time.
        """
        status = notebook.status
        old_state = status.state
        status.set_state(state, message=message, now=now)
        if old_state == state:
            return
        logger = self._bind(notebook).bind(
            old_state=old_state.value, state=state.value
        )
        if state.is_error:
            logger.warning("Notebook failed", error=status.message)
        else:
            logger.info(f"Notebook is now {state.value}")

    def observe_pod(
        self,
        notebook: Notebook,
        pod: V1Pod,
        *,
        kind: PodKind,
        now: datetime | None = None,
    ) -> PodStatus:
        """Record the observed status of a pod belonging to a notebook.

        Parameters
        ----------
        notebook
            Notebook owning the pod.
        pod
            Kubernetes ``Pod`` object as last observed.
        kind
            Which of the notebook's pods this is.
        now
            Time of the observation. Defaults to the current time.

        Returns
        -------
        PodStatus
            Recorded pod status.
        """
        pod_status = PodStatus.from_pod(pod)
        status = notebook.status

        # A late event for a pod already seen to be gone must not revive it.
        previous = self._pod_status(status, kind)
        if previous and previous.deleted and previous.name == pod_status.name:
            pod_status.deleted_at = previous.deleted_at

        match kind:
            case PodKind.NOTEBOOK:
                status.pod_status = pod_status
                if pod_status.node_name:
                    status.node_name = pod_status.node_name
                if pod_status.exit_code is not None:
                    status.exit_code = pod_status.exit_code
            case PodKind.WORKSPACE_UPLOAD:
                status.workspace_upload_pod_status = pod_status
            case PodKind.IMAGE_CACHE:
                status.image_cache_pod_status = pod_status
        status.touch(now)
        self._bind(notebook).debug(
            "Observed pod",
            kind=kind.value,
            pod=pod_status.name,
            phase=pod_status.phase.value if pod_status.phase else None,
        )
        return pod_status

    def observe_pod_deleted(
        self,
        notebook: Notebook,
        *,
        kind: PodKind,
        now: datetime | None = None,
    ) -> None:
        """Record that a pod belonging to a notebook is gone.

        Does nothing if no status was recorded for that pod.

        Parameters
        ----------
        notebook
            Notebook owning the pod.
        kind
            Which of the notebook's pods was deleted.
        now
            Time of the observation. Defaults to the current time.
        """
        pod_status = self._pod_status(notebook.status, kind)
        if pod_status is None:
            return
        now = now or current_datetime()
        pod_status.mark_deleted(now)
        notebook.status.touch(now)
        self._bind(notebook).info(
            "Pod deleted", kind=kind.value, pod=pod_status.name
        )

    def observe_artifact(
        self,
        notebook: Notebook,
        artifact_id: str,
        artifact_status: DownloadArtifactStatus,
        *,
        now: datetime | None = None,
    ) -> None:
        """Record the status of one artifact download.

        A failed download moves the notebook to
        ``NotebookState.DOWNLOAD_ARTIFACT_ERROR``. Once every download has
        succeeded, a notebook waiting for artifacts moves on to
        ``NotebookState.POD_STARTING``.

        Parameters
        ----------
        notebook
            Notebook the artifact is downloaded for.
        artifact_id
            Identifier of the artifact.
        artifact_status
            New status of the download.
        now
            Time of the observation. Defaults to the current time.
        """
        now = now or current_datetime()
        status = notebook.status
        status.download_artifact_statuses[artifact_id] = artifact_status
        self._bind(notebook).debug(
            "Observed artifact download",
            artifact=artifact_id,
            download_state=artifact_status.state.value,
        )

        downloads = status.download_artifact_statuses
        if artifact_status.failed:
            message = artifact_status.message or (
                f"Download of artifact {artifact_id} failed"
            )
            self.transition(
                notebook,
                NotebookState.DOWNLOAD_ARTIFACT_ERROR,
                message=message,
                now=now,
            )
        elif (
            status.state == NotebookState.WAITING_FOR_ARTIFACT
            and all(d.done and not d.failed for d in downloads.values())
        ):
            self.transition(notebook, NotebookState.POD_STARTING, now=now)
        else:
            status.touch(now)

    def record_service(
        self, notebook: Notebook, name: str, *, now: datetime | None = None
    ) -> None:
        """Record the name of the service created for a notebook."""
        notebook.status.service_name = name
        notebook.status.touch(now)
        self._bind(notebook).info("Service created", service=name)

    def record_ingress(
        self,
        notebook: Notebook,
        name: str,
        endpoint_url: str,
        *,
        now: datetime | None = None,
    ) -> None:
        """Record the ingress created for a notebook and its endpoint.

        Parameters
        ----------
        notebook
            Notebook the ingress routes to.
        name
            Name of the ingress.
        endpoint_url
            URL at which the notebook is now reachable.
        now
            Time of the observation. Defaults to the current time.
        """
        notebook.status.ingress_name = name
        notebook.status.endpoint_url = endpoint_url
        notebook.status.touch(now)
        self._bind(notebook).info(
            "Ingress created", ingress=name, url=endpoint_url
        )

    def begin_teardown(
        self, notebook: Notebook, *, now: datetime | None = None
    ) -> None:
        """Start tearing down a notebook, whether it succeeded or failed."""
        self.transition(notebook, NotebookState.TEARDOWN, now=now)

    def snapshot(self, notebook: Notebook) -> Status:
        """Return a copy of the notebook status safe to hand to observers."""
        return notebook.status.copy_to_status()

    def _bind(self, notebook: Notebook) -> BoundLogger:
        return self._logger.bind(
            namespace=notebook.metadata.namespace,
            notebook=notebook.metadata.name,
        )

    def _pod_status(
        self, status: NotebookStatus, kind: PodKind
    ) -> PodStatus | None:
        match kind:
            case PodKind.NOTEBOOK:
                return status.pod_status
            case PodKind.WORKSPACE_UPLOAD:
                return status.workspace_upload_pod_status
            case PodKind.IMAGE_CACHE:
                return status.image_cache_pod_status
