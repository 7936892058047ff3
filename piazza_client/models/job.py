"""Job status, job creation and job result models."""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import Field

from piazza_client.models.base import PzModel


class JobStatus(str, Enum):
    SUBMITTED = "Submitted"
    RUNNING = "Running"
    PENDING = "Pending"
    SUCCESS = "Success"
    FAIL = "Fail"
    ERROR = "Error"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "JobStatus":
        """Map a raw status string to a member; anything unrecognised is UNKNOWN."""
        for member in cls:
            if member is not cls.UNKNOWN and member.value == value:
                return member
        return cls.UNKNOWN


class JobProgress(PzModel):
    percent_complete: Optional[int] = None
    time_remaining: Optional[str] = None
    time_spent: Optional[str] = None


class JobStatusRecord(PzModel):
    """The ``data`` block of a ``GET /job/{jobId}`` response."""

    status: str
    result: Optional[Any] = None
    message: Optional[str] = None
    job_id: Optional[str] = None
    job_type: Optional[str] = None
    created_by: Optional[str] = None
    progress: Optional[JobProgress] = None

    @property
    def job_status(self) -> JobStatus:
        return JobStatus.parse(self.status)

    @property
    def effective_message(self) -> Optional[str]:
        # The backend reports "Job Not Found." inside the result object.
        if self.message:
            return self.message
        if isinstance(self.result, dict):
            msg = self.result.get("message")
            return msg if isinstance(msg, str) else None
        return None

    @property
    def has_result(self) -> bool:
        return self.result not in (None, {}, [], "")


class JobStatusEnvelope(PzModel):
    data: JobStatusRecord


class JobInitData(PzModel):
    job_id: str = ""


class JobInitResponse(PzModel):
    """Immediate response to every job-creating call."""

    data: JobInitData = Field(default_factory=JobInitData)


class Deployment(PzModel):
    deployment_id: Optional[str] = None
    data_id: Optional[str] = None
    host: Optional[str] = None
    port: Optional[str] = None
    layer: Optional[str] = None
    capabilities_url: Optional[str] = None


class DataResult(PzModel):
    """Typed view over a job's success payload.

    The payload is polymorphic: ingest jobs fill ``data_id``, GeoServer
    deployments fill ``deployment``, failures fill ``message``/``details``.
    """

    data_id: Optional[str] = None
    deployment: Optional[Deployment] = None
    details: Optional[str] = None
    message: Optional[str] = None
    job_id: Optional[str] = None
    text: Optional[str] = None


class DeploymentGroup(PzModel):
    deployment_group_id: str = ""
    created_by: Optional[str] = None
    has_gis_server_layer: Optional[bool] = None


class DeploymentGroupResponse(PzModel):
    type: Optional[str] = None
    data: DeploymentGroup
