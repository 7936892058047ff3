"""Async client helpers for the Piazza geospatial job-processing backend."""

__version__ = "0.1.0"

from piazza_client.client import PiazzaClient, decode_json, get_job_id, read_body_json  # noqa: E402
from piazza_client.errors import (  # noqa: E402
    DecodeFailed,
    HTTPStatusError,
    InvalidArgument,
    JobCancelled,
    JobError,
    JobFailed,
    JobTerminalError,
    JobTimeout,
    MissingJobId,
    MultipartError,
    PiazzaError,
    TransportError,
    UnknownStatus,
)
from piazza_client.jobs import JobPoller, PollOutcome, PollPolicy, classify  # noqa: E402

__all__ = [
    "__version__",
    "PiazzaClient",
    "decode_json",
    "get_job_id",
    "read_body_json",
    "JobPoller",
    "PollOutcome",
    "PollPolicy",
    "classify",
    "DecodeFailed",
    "HTTPStatusError",
    "InvalidArgument",
    "JobCancelled",
    "JobError",
    "JobFailed",
    "JobTerminalError",
    "JobTimeout",
    "MissingJobId",
    "MultipartError",
    "PiazzaError",
    "TransportError",
    "UnknownStatus",
]
