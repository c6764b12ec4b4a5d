"""Models for the ``Notebook`` custom resource and its status."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from safir.datetime import current_datetime
from safir.pydantic import UtcDatetime, normalize_datetime

from ...constants import API_VERSION, NOTEBOOK_KIND
from ...exceptions import InvalidNotebookError, InvalidStatusError
from ..domain.kubernetes import (
    DownloadArtifactStatus,
    LegacyJobStatus,
    PodStatus,
    is_deleted,
)
from ..domain.status import GradientStatus, Status

__all__ = [
    "DecodedImageUpload",
    "ImageDetails",
    "ImageUpload",
    "Instance",
    "Notebook",
    "NotebookDetails",
    "NotebookList",
    "NotebookMetadata",
    "NotebookSpec",
    "NotebookState",
    "NotebookStatus",
    "NotebookUpload",
    "S3Upload",
    "VolumeMount",
    "Workspace",
    "decode_credentials",
    "has_credentials",
]

_OMIT_EMPTY = frozenset(
    {
        "message",
        "serviceName",
        "ingressName",
        "notebookNodeName",
        "downloadArtifactStatuses",
    }
)
"""Status keys left out of the serialized document when empty."""


class NotebookState(StrEnum):
    """Lifecycle state of a notebook.

    The controller moves a notebook through these states as it observes its
    infrastructure. No transition is rejected here: which transitions are
    legal is decided by the controller. The usual path is waiting for volumes
    or artifacts, then pod starting, running, finished (or one of the error
    states), and finally teardown, which may follow success or failure.
    """

    UNSET = ""
    """Zero value of a freshly created status. Never assigned."""

    ERROR = "Error"
    WAITING_FOR_VOLUME = "WaitingForVolume"
    WAITING_FOR_ARTIFACT = "WaitingForArtifact"
    DOWNLOAD_ARTIFACT_ERROR = "DownloadArtifactError"
    INGRESS_CREATE_ERROR = "IngressCreateError"
    SERVICE_CREATE_ERROR = "ServiceCreateError"
    FINISHED = "Finished"
    POD_STARTING = "PodStarting"
    RUNNING = "Running"
    TEARDOWN = "Teardown"

    @classmethod
    def errors(cls) -> frozenset[NotebookState]:
        """States classified as errored."""
        return frozenset(
            {
                cls.ERROR,
                cls.DOWNLOAD_ARTIFACT_ERROR,
                cls.INGRESS_CREATE_ERROR,
                cls.SERVICE_CREATE_ERROR,
            }
        )

    @classmethod
    def pending(cls) -> frozenset[NotebookState]:
        """States waiting on a precondition.

        These block progress but are not errors: they are expected to
        resolve on their own or be retried by the controller.
        """
        return frozenset(
            {
                cls.WAITING_FOR_VOLUME,
                cls.WAITING_FOR_ARTIFACT,
                cls.POD_STARTING,
            }
        )

    @property
    def is_error(self) -> bool:
        """Whether this state is one of the error states."""
        return self in NotebookState.errors()

    @property
    def is_pending(self) -> bool:
        """Whether this state is waiting on a precondition."""
        return self in NotebookState.pending()


class NotebookStatus(BaseModel):
    """Observed state of a notebook.

    Mutated only by the controller as it observes the notebook's
    infrastructure. The classification methods are pure and safe to call on
    a freshly created status.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    state: Annotated[
        NotebookState, Field(title="State", description="Lifecycle state")
    ] = NotebookState.UNSET

    gradient_status: Annotated[
        GradientStatus,
        Field(
            default_factory=GradientStatus,
            title="Platform report status",
            description="What has been reported back to the platform API",
        ),
    ]

    endpoint_url: Annotated[
        str,
        Field(
            title="Endpoint URL",
            description="URL of the running notebook, empty until routed",
            alias="endpointURL",
        ),
    ] = ""

    message: Annotated[
        str,
        Field(
            title="Message",
            description="Human-readable diagnostic, set on error states",
        ),
    ] = ""

    image_secret_name: Annotated[
        str,
        Field(
            title="Image pull secret",
            description="Name of the registry credential secret, if any",
        ),
    ] = ""

    last_updated_at: Annotated[
        UtcDatetime | None,
        Field(
            title="Last update",
            description="Time of the last observed change",
        ),
    ] = None

    running_at: Annotated[
        UtcDatetime | None,
        Field(
            title="Running since",
            description="Time the notebook first entered the running state",
        ),
    ] = None

    exit_code: Annotated[
        int,
        Field(
            title="Exit code",
            description="Exit code of the notebook, meaningful once exited",
            ge=-(2**31),
            lt=2**31,
        ),
    ] = 0

    pod_status: Annotated[
        PodStatus | None,
        Field(title="Notebook pod", description="Status of the notebook pod"),
    ] = None

    download_artifact_statuses: Annotated[
        dict[str, DownloadArtifactStatus],
        Field(
            title="Artifact downloads",
            description="Status of each artifact download, by artifact ID",
        ),
    ] = {}

    nbconvert_job_status: Annotated[
        LegacyJobStatus | None,
        Field(
            title="nbconvert job (deprecated)",
            description="Retained for backwards compatibility, never set",
            alias="nbconvertJobStatus",
        ),
    ] = None

    workspace_upload_job_status: Annotated[
        LegacyJobStatus | None,
        Field(
            title="Workspace upload job (deprecated)",
            description="Retained for backwards compatibility, never set",
        ),
    ] = None

    image_cache_job_status: Annotated[
        LegacyJobStatus | None,
        Field(
            title="Image cache job (deprecated)",
            description="Retained for backwards compatibility, never set",
        ),
    ] = None

    workspace_upload_pod_status: Annotated[
        PodStatus | None,
        Field(
            title="Workspace upload pod",
            description="Status of the pod uploading the workspace snapshot",
        ),
    ] = None

    image_cache_pod_status: Annotated[
        PodStatus | None,
        Field(
            title="Image cache pod",
            description="Status of the pod caching image layers",
        ),
    ] = None

    service_name: Annotated[
        str, Field(title="Service", description="Name of the service")
    ] = ""

    ingress_name: Annotated[
        str, Field(title="Ingress", description="Name of the ingress")
    ] = ""

    node_name: Annotated[
        str,
        Field(
            title="Node",
            description="Node running the notebook pod",
            alias="notebookNodeName",
        ),
    ] = ""

    workspace_export_job_status: Annotated[
        LegacyJobStatus | None,
        Field(
            title="Workspace export job (deprecated)",
            description="Retained for backwards compatibility, never set",
        ),
    ] = None

    image_export_job_status: Annotated[
        LegacyJobStatus | None,
        Field(
            title="Image export job (deprecated)",
            description="Retained for backwards compatibility, never set",
        ),
    ] = None

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Self:
        """Parse a status from its serialized form.

        Parameters
        ----------
        data
            Status as found in the ``status`` key of a ``Notebook``.

        Returns
        -------
        NotebookStatus
            Parsed status.

        Raises
        ------
        InvalidStatusError
            Raised if the document is not a valid notebook status.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidStatusError.from_exception(e) from e

    def to_document(self) -> dict[str, Any]:
        """Serialize the status with its wire names.

        Empty optional fields are left out, matching what the controller
        writes to Kubernetes.

        Returns
        -------
        dict of Any
            JSON-compatible status.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return {k: v for k, v in data.items() if k not in _OMIT_EMPTY or v}

    def get_last_updated_at(self) -> datetime | None:
        return self.last_updated_at

    def set_last_updated_at(self, timestamp: datetime) -> None:
        self.last_updated_at = normalize_datetime(timestamp)

    def is_success(self) -> bool:
        """Whether the notebook finished successfully."""
        return self.state == NotebookState.FINISHED

    def is_errored(self) -> bool:
        """Whether the notebook is in one of the error states."""
        return self.state.is_error

    def needs_garbage_collection(self) -> bool:
        """Whether any tracked pod still has to be deleted.

        This looks only at the pod statuses, never at the state, so a
        notebook can be errored while its pods are still being torn down. A
        missing pod status counts as already deleted.

        Returns
        -------
        bool
            `True` while the notebook pod, the workspace upload pod or the
            image cache pod has not been observed to be deleted.
        """
        return not (
            is_deleted(self.pod_status)
            and is_deleted(self.workspace_upload_pod_status)
            and is_deleted(self.image_cache_pod_status)
        )

    def copy_to_status(self) -> Status:
        """Return an independent deep copy of the status."""
        return self.model_copy(deep=True)

    def set_state(
        self,
        state: NotebookState,
        *,
        message: str | None = None,
        now: datetime | None = None,
    ) -> None:
        """Move the notebook to a new state.

        Parameters
        ----------
        state
            New state.
        message
            New diagnostic message. If not given, the current message is
            kept.
        now
            Time of the change. Defaults to the current time.
        """
        now = now or current_datetime()
        self.state = state
        if message is not None:
            self.message = message
        if state == NotebookState.RUNNING and self.running_at is None:
            self.running_at = now
        self.set_last_updated_at(now)

    def touch(self, now: datetime | None = None) -> None:
        """Record an observed change that did not alter the state."""
        self.set_last_updated_at(now or current_datetime())


class ImageUpload(BaseModel):
    """Credentials for pushing a snapshot of the notebook image.

    Every field is base64-encoded, since the credentials cross several
    serialization boundaries before reaching the pod that pushes the image.
    """

    model_config = ConfigDict(populate_by_name=True)

    registry: Annotated[str, Field(title="Registry (base64)")] = ""

    repository: Annotated[str, Field(title="Repository (base64)")] = ""

    username: Annotated[str, Field(title="Username (base64)")] = ""

    password: Annotated[str, Field(title="Password (base64)", repr=False)] = ""

    def has_credentials(self) -> bool:
        return has_credentials(self)

    def decode(self) -> DecodedImageUpload:
        """Decode the credentials, see `decode_credentials`."""
        return decode_credentials(self)


class DecodedImageUpload(BaseModel):
    """Plain-text image push credentials.

    Empty fields mean the credential was missing or could not be decoded.
    Whether the credentials actually work is up to the registry client.
    """

    model_config = ConfigDict(frozen=True)

    registry: str = ""

    repository: str = ""

    username: str = ""

    password: Annotated[str, Field(repr=False)] = ""


def has_credentials(upload: ImageUpload | None) -> bool:
    """Whether image push credentials were provided.

    Presence is structural: an `ImageUpload` with empty fields still counts.
    """
    return upload is not None


def _decode_field(value: str) -> str:
    value = value.replace("\r", "").replace("\n", "")
    try:
        return base64.b64decode(value, validate=True).decode().strip()
    except ValueError:
        return ""


def decode_credentials(upload: ImageUpload | None) -> DecodedImageUpload:
    """Decode base64-encoded image push credentials.

    Each field is decoded on its own. A field that is not valid base64, or
    does not decode to UTF-8, becomes the empty string without affecting the
    other fields. Surrounding whitespace is stripped after decoding.

    Parameters
    ----------
    upload
        Encoded credentials, if any.

    Returns
    -------
    DecodedImageUpload
        Decoded credentials, all empty if ``upload`` is `None`.
    """
    if upload is None:
        return DecodedImageUpload()
    return DecodedImageUpload(
        registry=_decode_field(upload.registry),
        repository=_decode_field(upload.repository),
        username=_decode_field(upload.username),
        password=_decode_field(upload.password),
    )


class S3Upload(BaseModel):
    """Destination for uploading the notebook workspace to object storage."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="allow", populate_by_name=True
    )

    bucket: str = ""

    path: str = ""

    endpoint: str = ""


class NotebookUpload(BaseModel):
    """Where the notebook's results are uploaded when it stops."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    s3_upload: Annotated[S3Upload, Field(default_factory=S3Upload)]

    image_upload: ImageUpload | None = None

    def decoded_image_credentials(self) -> DecodedImageUpload:
        """Decode the image push credentials, if any."""
        return decode_credentials(self.image_upload)


class Workspace(BaseModel):
    """Source of the files checked out into the notebook."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="allow", populate_by_name=True
    )

    uri: Annotated[str, Field(title="Workspace URI")]

    ref: Annotated[str, Field(title="Git ref or archive version")] = ""


class Instance(BaseModel):
    """Machine the notebook runs on."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="allow", populate_by_name=True
    )

    machine_type: Annotated[str, Field(title="Machine type")]

    node_selector: Annotated[
        dict[str, str], Field(title="Node selector labels")
    ] = {}


class ImageDetails(BaseModel):
    """Container image the notebook runs."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="allow", populate_by_name=True
    )

    name: Annotated[str, Field(title="Docker reference")]

    pull_secret: Annotated[
        str, Field(title="Registry credentials (base64)", repr=False)
    ] = ""


class NotebookDetails(BaseModel):
    """What to run in the notebook container."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image: ImageDetails

    command: str

    work_dir: str = ""


class VolumeMount(BaseModel):
    """Volume mounted into the notebook container."""

    model_config = ConfigDict(
        alias_generator=to_camel, extra="allow", populate_by_name=True
    )

    name: str

    mount_path: str

    read_only: bool = False


class NotebookSpec(BaseModel):
    """Desired state of a notebook, as requested by the platform API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str

    workspace: Workspace | None = None

    project_handle: str

    team_handle: str

    user_handle: str

    handle: Annotated[
        str,
        Field(
            title="Notebook handle",
            description="Stable identifier of the notebook on the platform",
        ),
    ]

    job_handle: str

    notebook_repo_handle: str = ""

    token: Annotated[str, Field(repr=False)]

    api_key: Annotated[str, Field(repr=False)] = ""

    ttl: Annotated[
        int,
        Field(
            title="Time to live",
            description="Seconds the notebook may run, 0 for no limit",
            alias="TTL",
        ),
    ] = 0

    upload: Annotated[NotebookUpload, Field(default_factory=NotebookUpload)]

    instance: Instance

    details: NotebookDetails

    env: dict[str, str] = {}

    volume_mounts: list[VolumeMount] = []


class NotebookMetadata(BaseModel):
    """The subset of Kubernetes object metadata used for notebooks."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str

    namespace: str = ""

    uid: str = ""

    creation_timestamp: UtcDatetime | None = None

    deletion_timestamp: UtcDatetime | None = None

    labels: dict[str, str] = {}

    annotations: dict[str, str] = {}


def _short_duration(delta: timedelta) -> str:
    """Format a duration the way ``kubectl`` shows ages."""
    seconds = int(delta.total_seconds())
    if seconds < -1:
        return "<invalid>"
    if seconds < 0:
        return "0s"
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    if hours < 24 * 365:
        return f"{hours // 24}d"
    return f"{hours // (24 * 365)}y"


class Notebook(BaseModel):
    """A ``Notebook`` custom resource."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    api_version: str = API_VERSION

    kind: str = NOTEBOOK_KIND

    metadata: NotebookMetadata

    spec: NotebookSpec

    status: Annotated[NotebookStatus, Field(default_factory=NotebookStatus)]

    @classmethod
    def create(cls, metadata: NotebookMetadata, spec: NotebookSpec) -> Self:
        """Create a new notebook with default status.

        Parameters
        ----------
        metadata
            Kubernetes metadata.
        spec
            Desired state of the notebook.

        Returns
        -------
        Notebook
            Notebook whose status is seeded from the notebook handle.
        """
        notebook = cls(metadata=metadata, spec=spec)
        notebook.set_defaults()
        return notebook

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Self:
        """Parse a notebook manifest.

        Raises
        ------
        InvalidNotebookError
            Raised if the document is not a valid notebook.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidNotebookError.from_exception(e) from e

    def set_defaults(self) -> None:
        """Seed the platform report status from the notebook handle.

        Does nothing if the status already carries a handle.
        """
        if not self.status.gradient_status.handle:
            handle = self.spec.handle
            self.status.gradient_status = GradientStatus.for_handle(handle)

    def to_document(self) -> dict[str, Any]:
        """Serialize the notebook with its wire names."""
        data = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"status"}
        )
        data["status"] = self.status.to_document()
        return data

    def columns(self, now: datetime | None = None) -> dict[str, str]:
        """Columns shown when listing notebooks.

        Parameters
        ----------
        now
            Time relative to which ages are shown. Defaults to the current
            time.

        Returns
        -------
        dict of str
            Values of the ``State``, ``LastUpdatedAt``, ``Age`` and
            ``RepoHandle`` columns.
        """
        now = normalize_datetime(now) or current_datetime()
        last_updated_at = self.status.get_last_updated_at()
        created = self.metadata.creation_timestamp
        return {
            "State": self.status.state.value or "<none>",
            "LastUpdatedAt": (
                _short_duration(now - last_updated_at)
                if last_updated_at
                else "<none>"
            ),
            "Age": _short_duration(now - created) if created else "<none>",
            "RepoHandle": self.spec.notebook_repo_handle or "<none>",
        }


class NotebookList(BaseModel):
    """A list of ``Notebook`` custom resources."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    api_version: str = API_VERSION

    kind: str = f"{NOTEBOOK_KIND}List"

    items: list[Notebook] = []
