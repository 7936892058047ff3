"""Error taxonomy for piazza-client.

Every error raised by the library derives from :class:`PiazzaError` and carries
the request context needed to diagnose a failure without re-running it: the URL,
the HTTP method, the job id (for polling errors) and the raw response body where
one was received.  Underlying library exceptions are chained via ``__cause__``.

    PiazzaError
    ├── InvalidArgument          malformed caller input, never retried
    ├── TransportError           DNS / connect / TLS / read failures
    ├── HTTPStatusError          non-2xx response (response still attached)
    ├── DecodeFailed             body was not the expected JSON
    │   └── MissingJobId         job-creation response without a jobId
    ├── MultipartError           multipart body could not be assembled
    ├── JobTerminalError         backend reported a terminal failure
    │   ├── JobFailed            status "Fail"
    │   ├── JobError             status "Error"
    │   └── UnknownStatus        any unrecognised status
    ├── JobTimeout               poll budget exhausted
    └── JobCancelled             caller aborted the wait
"""
from __future__ import annotations

from typing import Optional

import httpx

_BODY_PREVIEW_CHARS = 500


def body_preview(body: Optional[bytes], limit: int = _BODY_PREVIEW_CHARS) -> str:
    """Decode a raw body for inclusion in an error message, truncated to *limit* chars."""
    if not body:
        return ""
    text = body.decode("utf-8", errors="replace")
    return text if len(text) <= limit else text[:limit] + "..."


class PiazzaError(Exception):
    """Base class for all piazza-client errors."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        method: Optional[str] = None,
        job_id: Optional[str] = None,
        body: Optional[bytes] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.method = method
        self.job_id = job_id
        self.body = body

    def __str__(self) -> str:
        context = []
        if self.method:
            context.append(f"method={self.method}")
        if self.url:
            context.append(f"url={self.url}")
        if self.job_id:
            context.append(f"job_id={self.job_id}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class InvalidArgument(PiazzaError, ValueError):
    """Raised before any network call when caller input is malformed."""


class TransportError(PiazzaError):
    """Raised when the backend could not be reached at all."""


class HTTPStatusError(PiazzaError):
    """Raised for a response outside [200, 299].

    The response is kept on the error so callers can still pull a
    backend-provided error body out of it.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        response: Optional[httpx.Response] = None,
        **context,
    ) -> None:
        super().__init__(message, **context)
        self.status_code = status_code
        self.response = response


class DecodeFailed(PiazzaError):
    """Raised when a body is empty or not the expected JSON shape."""


class MissingJobId(DecodeFailed):
    """Raised when a job-creating call's response carries no jobId."""


class MultipartError(PiazzaError):
    """Raised when a multipart request cannot be assembled; nothing was sent."""

    def __init__(self, message: str, *, phase: str, **context) -> None:
        super().__init__(message, **context)
        self.phase = phase


class JobTerminalError(PiazzaError):
    """The backend reported a terminal, non-successful job state."""

    def __init__(self, message: str, *, status: str, **context) -> None:
        super().__init__(message, **context)
        self.status = status


class JobFailed(JobTerminalError):
    """Job status "Fail"."""


class JobError(JobTerminalError):
    """Job status "Error" with a message other than a known transient one."""


class UnknownStatus(JobTerminalError):
    """Job status outside the documented set."""


class JobTimeout(PiazzaError, TimeoutError):
    """The poll budget ran out before the job reached a terminal state."""

    def __init__(self, message: str, *, polls: int, **context) -> None:
        super().__init__(message, **context)
        self.polls = polls


class JobCancelled(PiazzaError):
    """The caller's cancel token fired while waiting on a job."""
