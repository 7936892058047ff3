"""Async HTTP transport and JSON response decoding for the Piazza REST API.

Every request carries an ``Authorization`` header holding the caller's opaque
credential.  Responses outside [200, 299] raise :class:`HTTPStatusError` with
the response still attached; connection-level failures raise
:class:`TransportError`.

Usage::

    async with PiazzaClient(base_url="https://pz-gateway.example.com", auth_key=key) as pz:
        raw, status = await pz.request_known_json("GET", "/job/123", JobStatusEnvelope)
        result = await pz.wait_for_job("123")
"""
from __future__ import annotations

import asyncio
import json
from typing import IO, TYPE_CHECKING, Any, Dict, Optional, Tuple, Type, TypeVar, Union

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from piazza_client.config import settings
from piazza_client.errors import (
    DecodeFailed,
    HTTPStatusError,
    InvalidArgument,
    MissingJobId,
    MultipartError,
    TransportError,
    body_preview,
)
from piazza_client.models.job import JobInitResponse

if TYPE_CHECKING:
    from piazza_client.jobs import PollPolicy

log = structlog.get_logger(__name__)

T = TypeVar("T")

Body = Union[str, bytes, dict, list, None]
FileData = Union[bytes, bytearray, IO[bytes], None]


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------


def decode_json(raw: bytes, target: Type[T], *, url: Optional[str] = None, method: Optional[str] = None) -> T:
    """Strictly decode *raw* JSON into *target* (a pydantic model or any type
    ``TypeAdapter`` accepts).  Empty bodies fail like any other bad JSON."""
    if not raw:
        raise DecodeFailed("Response body was empty", url=url, method=method, body=raw)
    try:
        return TypeAdapter(target).validate_json(raw)
    except ValidationError as exc:
        raise DecodeFailed(
            f"Could not decode response as {getattr(target, '__name__', target)}: {body_preview(raw)}",
            url=url,
            method=method,
            body=raw,
        ) from exc


def _request_context(response: httpx.Response) -> Dict[str, str]:
    try:
        request = response.request
    except RuntimeError:
        # Response built by hand, with no request attached.
        return {}
    return {"url": str(request.url), "method": request.method}


async def read_body_json(response: httpx.Response, target: Type[T]) -> Tuple[bytes, T]:
    """Drain *response* and decode it into *target*.

    Returns ``(raw_bytes, value)``.  On failure the raw bytes travel on the
    raised :class:`DecodeFailed` as ``.body``.
    """
    context = _request_context(response)
    try:
        raw = await response.aread()
    except httpx.HTTPError as exc:
        raise TransportError(f"Failed reading response body: {exc}", **context) from exc
    return raw, decode_json(raw, target, **context)


async def get_job_id(response: httpx.Response) -> str:
    """Extract the job id from the standard response to a job-creating call."""
    raw, init = await read_body_json(response, JobInitResponse)
    if not init.data.job_id:
        raise MissingJobId(
            f"Response did not contain a job id: {body_preview(raw)}",
            body=raw,
            **_request_context(response),
        )
    return init.data.job_id


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class PiazzaClient:
    """Async client for the Piazza gateway.

    One instance wraps one ``httpx.AsyncClient`` whose connection pool is safe
    to share between concurrent job pollers.  Pass ``transport`` to swap the
    network layer (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_key: Optional[str] = None,
        timeout: Optional[float] = None,
        verify: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.gateway_url).rstrip("/")
        self.auth_key = auth_key if auth_key is not None else settings.PZ_AUTH
        self.timeout = timeout if timeout is not None else settings.PZ_HTTP_TIMEOUT_S
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            verify=settings.PZ_VERIFY_TLS if verify is None else verify,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PiazzaClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Single-part requests
    # ------------------------------------------------------------------

    async def submit_single_part(
        self,
        method: str,
        url: str,
        body: Body = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a GET/POST/PUT/DELETE call and return the response.

        A non-empty *body* is sent as JSON (strings and bytes are passed
        through as already-encoded JSON).
        """
        if not method:
            raise InvalidArgument("HTTP method not provided", url=url)
        if not url:
            raise InvalidArgument("URL not provided", method=method)

        headers = {"Authorization": self.auth_key}
        content: Optional[bytes] = None
        if body not in (None, "", b""):
            headers["Content-Type"] = "application/json"
            if isinstance(body, (dict, list)):
                content = json.dumps(body).encode("utf-8")
            elif isinstance(body, str):
                content = body.encode("utf-8")
            else:
                content = bytes(body)

        request = self._client.build_request(
            method.upper(), url, content=content, headers=headers, params=params
        )
        return await self._send(request)

    async def request_known_json(
        self,
        method: str,
        url: str,
        target: Type[T],
        body: Body = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Tuple[bytes, T]:
        """Submit a request whose response is JSON of a known shape.

        Returns ``(raw_bytes, decoded)``; the raw bytes are handy for logging.
        """
        response = await self.submit_single_part(method, url, body, params)
        return await read_body_json(response, target)

    # ------------------------------------------------------------------
    # Multipart requests
    # ------------------------------------------------------------------

    async def submit_multipart(
        self,
        url: str,
        body: Body,
        filename: str = "",
        file_data: FileData = None,
    ) -> httpx.Response:
        """POST a multipart form: a ``data`` field holding *body* plus an
        optional ``file`` part.  Primarily for ingest calls.

        Any failure while assembling the form raises :class:`MultipartError`
        naming the phase (``field``, ``file``, ``copy`` or ``close``); no
        request is sent in that case.
        """
        if not url:
            raise InvalidArgument("URL not provided", method="POST")

        try:
            if isinstance(body, (dict, list)):
                field_value = json.dumps(body)
            elif isinstance(body, bytes):
                field_value = body.decode("utf-8")
            else:
                field_value = body or ""
        except (TypeError, ValueError) as exc:
            raise MultipartError(f"Could not write form field: {exc}", phase="field", url=url, method="POST") from exc

        files = None
        if file_data is not None:
            if not filename:
                raise MultipartError("File part requires a filename", phase="file", url=url, method="POST")
            try:
                if isinstance(file_data, (bytes, bytearray)):
                    payload = bytes(file_data)
                else:
                    payload = file_data.read()
            except (OSError, AttributeError, TypeError) as exc:
                raise MultipartError(f"Could not copy file data: {exc}", phase="copy", url=url, method="POST") from exc
            files = {"file": (filename, payload, "application/octet-stream")}

        try:
            request = self._client.build_request(
                "POST",
                url,
                data={"data": field_value},
                files=files,
                headers={"Authorization": self.auth_key},
            )
        except (TypeError, ValueError) as exc:
            raise MultipartError(f"Could not finalise multipart body: {exc}", phase="close", url=url, method="POST") from exc

        return await self._send(request)

    # ------------------------------------------------------------------
    # Form requests
    # ------------------------------------------------------------------

    async def submit_form(self, url: str, fields: dict) -> httpx.Response:
        """POST url-encoded form *fields*.  Used for pzsvc-exec calls."""
        if not url:
            raise InvalidArgument("URL not provided", method="POST")
        request = self._client.build_request("POST", url, data=fields)
        return await self._send(request)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def wait_for_job(
        self,
        job_id: str,
        policy: Optional["PollPolicy"] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """Poll ``/job/{job_id}`` until it finishes; see :class:`JobPoller`."""
        from piazza_client.jobs import JobPoller

        return await JobPoller(self, policy=policy).wait(job_id, cancel_event=cancel_event)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _send(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        try:
            response = await self._client.send(request)
        except httpx.TransportError as exc:
            log.warning("pz_transport_error", method=request.method, url=url, error=str(exc))
            raise TransportError(
                f"Could not reach backend: {exc}", url=url, method=request.method
            ) from exc

        if not 200 <= response.status_code <= 299:
            body = await response.aread()
            log.warning(
                "pz_http_status_error",
                method=request.method,
                url=url,
                status=response.status_code,
            )
            raise HTTPStatusError(
                f"Failed in {request.method} call. Status: {response.status_code}: {body_preview(body)}",
                status_code=response.status_code,
                response=response,
                url=url,
                method=request.method,
                body=body,
            )

        log.debug("pz_request_ok", method=request.method, url=url, status=response.status_code)
        return response
