"""Data-resource helpers: ingest, download, metadata and GeoServer deployment.

Ingest and deployment are asynchronous on the backend: each helper submits the
job, extracts the job id, then waits for the job through :class:`JobPoller`
and returns the piece of the result callers care about.
"""
from __future__ import annotations

from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, Optional, Union

import structlog
from pydantic import ValidationError

from piazza_client.client import PiazzaClient, get_job_id, read_body_json
from piazza_client.errors import DecodeFailed, InvalidArgument, body_preview
from piazza_client.jobs import JobPoller, PollPolicy
from piazza_client.models.base import ClassType, ResourceMetadata
from piazza_client.models.data import DataDescriptor, DataResourceResponse, DataType, IngestRequest
from piazza_client.models.job import DataResult, DeploymentGroupResponse

log = structlog.get_logger(__name__)

# file_type -> mime type sent in the ingest request
INGEST_MIME_TYPES: Dict[str, Optional[str]] = {
    "raster": None,
    "geojson": "application/vnd.geo+json",
    "text": "application/text",
}
DEFAULT_CLASSIFICATION = "UNCLASSIFIED"


def _data_result(payload: Any, job_id: str) -> DataResult:
    try:
        return DataResult.model_validate(payload)
    except ValidationError as exc:
        raise DecodeFailed(
            f"Job result is not a data result object: {payload!r:.200}",
            url=f"/job/{job_id}",
            job_id=job_id,
        ) from exc


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


async def download_bytes(client: PiazzaClient, data_id: str) -> bytes:
    """Fetch the hosted file behind *data_id* and return its bytes."""
    if not data_id:
        raise InvalidArgument("Data id not provided")
    response = await client.submit_single_part("GET", f"/file/{data_id}")
    return await response.aread()


def _content_disposition_filename(header: str) -> Optional[str]:
    if not header:
        return None
    msg = EmailMessage()
    msg["Content-Disposition"] = header
    return msg.get_filename()


async def download(
    client: PiazzaClient,
    data_id: str,
    directory: Union[str, Path] = ".",
    filename: Optional[str] = None,
) -> Path:
    """Download the file behind *data_id* into *directory*.

    The file name comes from the response's ``Content-Disposition`` header
    unless *filename* is given.  Returns the path written.
    """
    if not data_id:
        raise InvalidArgument("Data id not provided")
    response = await client.submit_single_part("GET", f"/file/{data_id}")
    content = await response.aread()

    name = filename or _content_disposition_filename(response.headers.get("Content-Disposition", ""))
    if not name:
        raise DecodeFailed(
            f"File for data id {data_id} unnamed. Probable ingest error. "
            f"Initial response characters: {body_preview(content, limit=100)}",
            url=str(response.request.url),
            method="GET",
            body=content,
        )

    out_path = Path(directory) / Path(name).name
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(content)
    log.info("pz_file_downloaded", data_id=data_id, path=str(out_path), size_bytes=len(content))
    return out_path


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------


def build_ingest_request(
    name: str,
    file_type: str,
    data: bytes,
    source_name: str,
    version: str,
    props: Optional[Dict[str, str]] = None,
) -> IngestRequest:
    """Build the ingest job body for *file_type* (raster, geojson or text).

    Text content travels inline in the request; the other types are uploaded
    as a separate file part.
    """
    if file_type not in INGEST_MIME_TYPES:
        raise InvalidArgument(
            f"Unsupported ingest type {file_type!r}; expected one of {sorted(INGEST_MIME_TYPES)}"
        )

    data_type = DataType(type=file_type, mime_type=INGEST_MIME_TYPES[file_type])
    if file_type == "text":
        try:
            data_type.content = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidArgument(f"Text ingest of {name!r} is not valid UTF-8") from exc

    metadata = ResourceMetadata(
        name=name,
        description=f"{file_type} uploaded by {source_name}.",
        class_type=ClassType(classification=DEFAULT_CLASSIFICATION),
        version=version,
        metadata=dict(props or {}),
    )
    return IngestRequest(data=DataDescriptor(data_type=data_type, metadata=metadata))


async def ingest(
    client: PiazzaClient,
    name: str,
    file_type: str,
    data: bytes,
    source_name: str,
    version: str,
    props: Optional[Dict[str, str]] = None,
    policy: Optional[PollPolicy] = None,
) -> str:
    """Ingest *data* to the backend and return the new data id."""
    request = build_ingest_request(name, file_type, data, source_name, version, props)
    body = request.to_wire()

    if file_type == "text":
        response = await client.submit_single_part("POST", "/data", body)
    else:
        response = await client.submit_multipart("/data/file", body, filename=name, file_data=data)

    job_id = await get_job_id(response)
    log.info("pz_ingest_submitted", name=name, file_type=file_type, job_id=job_id)

    result = _data_result(await JobPoller(client, policy).wait(job_id), job_id)
    if not result.data_id:
        log.warning("pz_ingest_no_data_id", job_id=job_id, message=result.message)
    return result.data_id or ""


async def ingest_file(
    client: PiazzaClient,
    path: Union[str, Path],
    file_type: str,
    source_name: str,
    version: str,
    props: Optional[Dict[str, str]] = None,
    policy: Optional[PollPolicy] = None,
) -> str:
    """Read the file at *path* and ingest it; see :func:`ingest`."""
    path = Path(path)
    data = path.read_bytes()
    if not data:
        raise InvalidArgument(f'File "{path.name}" read as empty')
    return await ingest(client, path.name, file_type, data, source_name, version, props, policy)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


async def get_file_meta(client: PiazzaClient, data_id: str) -> DataDescriptor:
    """Retrieve the data resource (type, metadata, location) for *data_id*."""
    if not data_id:
        raise InvalidArgument("Data id not provided")
    _, resp = await client.request_known_json("GET", f"/data/{data_id}", DataResourceResponse)
    return resp.data


async def update_file_meta(client: PiazzaClient, data_id: str, new_meta: Dict[str, str]) -> None:
    """Replace the passthrough metadata map of *data_id*."""
    if not data_id:
        raise InvalidArgument("Data id not provided")
    await client.submit_single_part("POST", f"/data/{data_id}", {"metadata": new_meta})


# ---------------------------------------------------------------------------
# GeoServer deployment
# ---------------------------------------------------------------------------


async def deploy_to_geoserver(
    client: PiazzaClient,
    data_id: str,
    policy: Optional[PollPolicy] = None,
) -> str:
    """Deploy *data_id* to GeoServer and return the deployment id."""
    if not data_id:
        raise InvalidArgument("Data id not provided")
    body = {"dataId": data_id, "deploymentType": "geoserver", "type": "access"}
    response = await client.submit_single_part("POST", "/deployment", body)
    job_id = await get_job_id(response)

    result = _data_result(await JobPoller(client, policy).wait(job_id), job_id)
    deployment_id = result.deployment.deployment_id if result.deployment else None
    log.info("pz_geoserver_deployed", data_id=data_id, job_id=job_id, deployment_id=deployment_id)
    return deployment_id or ""


async def add_geoserver_layer_group(client: PiazzaClient) -> str:
    """Create an empty GeoServer layer group and return its id."""
    response = await client.submit_single_part("POST", "/deployment/group", {})
    _, group = await read_body_json(response, DeploymentGroupResponse)
    return group.data.deployment_group_id
