"""Job-completion polling for asynchronous backend operations.

Job-creating calls (ingest, deployment, service execution) return a job id
immediately; the result is fetched by polling ``GET /job/{jobId}`` once per
interval until the job reaches a terminal state or the poll budget runs out.

The backend has two known quirks that look terminal but are not:

- ``Success`` is reported a moment before the result object is attached.
- ``Error`` / ``"Job Not Found."`` is reported right after job creation,
  before the job is visible to the status endpoint.

Both are treated as "keep polling".  They are empirical rather than part of the
documented contract, so :class:`PollPolicy` keeps them configurable.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, FrozenSet, Optional, TypeVar

import structlog

from piazza_client.config import settings
from piazza_client.errors import (
    InvalidArgument,
    JobCancelled,
    JobError,
    JobFailed,
    JobTimeout,
    UnknownStatus,
    body_preview,
)
from piazza_client.models.job import JobStatus, JobStatusEnvelope, JobStatusRecord

if TYPE_CHECKING:
    from piazza_client.client import PiazzaClient

log = structlog.get_logger(__name__)

T = TypeVar("T")

JOB_NOT_FOUND = "Job Not Found."


@dataclass(frozen=True)
class PollPolicy:
    """How long to poll and which status/message combinations are non-terminal."""

    max_polls: int = field(default_factory=lambda: settings.PZ_JOB_MAX_POLLS)
    interval_s: float = field(default_factory=lambda: settings.PZ_JOB_POLL_INTERVAL_S)
    pending_statuses: FrozenSet[str] = frozenset(
        {JobStatus.SUBMITTED.value, JobStatus.RUNNING.value, JobStatus.PENDING.value}
    )
    not_found_messages: FrozenSet[str] = frozenset({JOB_NOT_FOUND})
    success_requires_result: bool = True

    def __post_init__(self) -> None:
        if self.max_polls < 1:
            raise InvalidArgument(f"max_polls must be at least 1, got {self.max_polls}")
        if self.interval_s < 0:
            raise InvalidArgument(f"interval_s must not be negative, got {self.interval_s}")


class PollOutcome(str, Enum):
    CONTINUE = "continue"
    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"
    UNKNOWN = "unknown"


def classify(record: JobStatusRecord, policy: PollPolicy) -> PollOutcome:
    """Decide what one status response means for the poll loop."""
    status = record.status
    if status in policy.pending_statuses:
        return PollOutcome.CONTINUE
    if status == JobStatus.SUCCESS.value:
        if policy.success_requires_result and not record.has_result:
            return PollOutcome.CONTINUE
        return PollOutcome.SUCCESS
    if status == JobStatus.FAIL.value:
        return PollOutcome.FAILED
    if status == JobStatus.ERROR.value:
        if record.effective_message in policy.not_found_messages:
            return PollOutcome.CONTINUE
        return PollOutcome.ERROR
    return PollOutcome.UNKNOWN


class JobPoller:
    """Waits on one job at a time.

    A poller holds no state between :meth:`wait` calls, so one instance can
    serve many concurrent waits; each wait keeps its own poll counter.
    """

    def __init__(self, client: "PiazzaClient", policy: Optional[PollPolicy] = None) -> None:
        self._client = client
        self.policy = policy or PollPolicy()

    async def wait(self, job_id: str, cancel_event: Optional[asyncio.Event] = None) -> Any:
        """Poll until *job_id* finishes and return its result payload.

        Args:
            job_id: Handle returned by a job-creating call.
            cancel_event: Optional cancel token.  Setting it aborts the wait
                during a status request or the delay between polls.

        Returns:
            The job's ``result`` object, passed through uninterpreted.

        Raises:
            InvalidArgument: empty *job_id* (no request is made).
            JobFailed / JobError / UnknownStatus: terminal backend failure.
            JobTimeout: ``policy.max_polls`` polls without a terminal state.
            JobCancelled: *cancel_event* was set.
            TransportError / HTTPStatusError / DecodeFailed: a single poll
                failed; the loop is aborted rather than retried.
        """
        if not job_id:
            raise InvalidArgument("Job id not provided. Cannot acquire job result.")

        url = f"/job/{job_id}"
        started = time.perf_counter()

        for attempt in range(1, self.policy.max_polls + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise JobCancelled("Wait cancelled by caller", url=url, job_id=job_id)

            raw, envelope = await self._cancellable(
                self._client.request_known_json("GET", url, JobStatusEnvelope),
                cancel_event,
                url=url,
                job_id=job_id,
            )
            record = envelope.data
            outcome = classify(record, self.policy)
            log.debug(
                "job_poll",
                job_id=job_id,
                attempt=attempt,
                status=record.status,
                outcome=outcome.value,
            )

            if outcome is PollOutcome.SUCCESS:
                log.info(
                    "job_poll_succeeded",
                    job_id=job_id,
                    polls=attempt,
                    latency_ms=int((time.perf_counter() - started) * 1000),
                )
                return record.result

            if outcome is not PollOutcome.CONTINUE:
                raise self._terminal_error(outcome, record, raw, url=url, job_id=job_id)

            if attempt < self.policy.max_polls:
                await self._pause(cancel_event, url=url, job_id=job_id)

        log.warning("job_poll_timeout", job_id=job_id, polls=self.policy.max_polls)
        raise JobTimeout(
            f"Never completed after {self.policy.max_polls} polls",
            polls=self.policy.max_polls,
            url=url,
            job_id=job_id,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _terminal_error(
        self,
        outcome: PollOutcome,
        record: JobStatusRecord,
        raw: bytes,
        **context: Any,
    ) -> Exception:
        log.warning(
            "job_poll_failed",
            job_id=context.get("job_id"),
            status=record.status,
            message=record.effective_message,
        )
        body = body_preview(raw)
        if outcome is PollOutcome.FAILED:
            return JobFailed(
                f"Backend reported job failure. Response json: {body}",
                status=record.status,
                body=raw,
                **context,
            )
        if outcome is PollOutcome.ERROR:
            return JobError(
                f"Backend reported job error. Response json: {body}",
                status=record.status,
                body=raw,
                **context,
            )
        return UnknownStatus(
            f'Unknown status "{record.status}". Response json: {body}',
            status=record.status,
            body=raw,
            **context,
        )

    async def _pause(self, cancel_event: Optional[asyncio.Event], **context: Any) -> None:
        if cancel_event is None:
            await asyncio.sleep(self.policy.interval_s)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.policy.interval_s)
        except asyncio.TimeoutError:
            return
        raise JobCancelled("Wait cancelled by caller", **context)

    async def _cancellable(
        self,
        call: Awaitable[T],
        cancel_event: Optional[asyncio.Event],
        **context: Any,
    ) -> T:
        if cancel_event is None:
            return await call

        call_task = asyncio.ensure_future(call)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({call_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (call_task, cancel_task):
                if not task.done():
                    task.cancel()

        if call_task.done() and not call_task.cancelled():
            return call_task.result()
        # Let the cancelled request tear down before reporting.
        await asyncio.wait({call_task})
        cause = None if call_task.cancelled() else call_task.exception()
        raise JobCancelled("Wait cancelled by caller", **context) from cause
