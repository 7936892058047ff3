"""Service registration and pzsvc-exec invocation."""
from __future__ import annotations

from typing import Dict, List, Optional

import structlog

from piazza_client.client import PiazzaClient, decode_json, read_body_json
from piazza_client.errors import DecodeFailed, InvalidArgument
from piazza_client.models.base import ClassType, ResourceMetadata
from piazza_client.models.service import ExecResult, Service, ServiceList, ServiceResponse

log = structlog.get_logger(__name__)

SERVICE_SEARCH_PAGE_SIZE = 1000


async def find_my_service(client: PiazzaClient, name: str) -> Optional[str]:
    """Return the id of the registered service called *name*, or None.

    The backend search is by keyword, so results are filtered down to an
    exact name match.
    """
    if not name:
        raise InvalidArgument("Service name not provided")
    _, services = await client.request_known_json(
        "GET",
        "/service",
        ServiceList,
        params={"perPage": SERVICE_SEARCH_PAGE_SIZE, "keyword": name},
    )
    for svc in services.data:
        if svc.resource_metadata.name == name:
            return svc.service_id
    return None


async def manage_registration(
    client: PiazzaClient,
    name: str,
    description: str,
    url: str,
    version: str,
    attributes: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Register the service, or update it if one with this name exists.

    Call this every time the service starts.  Returns the service id the
    backend reports, else the id found by name (None for a new service whose
    reply carried no id).
    """
    svc_id = await find_my_service(client, name)

    service = Service(
        service_id=svc_id,
        url=url,
        method="POST",
        resource_metadata=ResourceMetadata(
            name=name,
            description=description,
            class_type=ClassType(),
            version=version,
            metadata=dict(attributes or {}),
        ),
    )

    if svc_id is None:
        log.info("pz_service_registering", name=name, url=url)
        response = await client.submit_single_part("POST", "/service", service.to_wire())
    else:
        log.info("pz_service_updating", name=name, service_id=svc_id)
        response = await client.submit_single_part("PUT", f"/service/{svc_id}", service.to_wire())

    # Any 2xx reply means the registration took; its body may be empty or partial.
    raw = await response.aread()
    if not raw:
        return svc_id
    try:
        registered = decode_json(
            raw, ServiceResponse, url=str(response.request.url), method=response.request.method
        )
    except DecodeFailed as exc:
        log.warning("pz_service_reply_unparsed", name=name, service_id=svc_id, error=str(exc))
        return svc_id
    return registered.data.service_id or svc_id


async def call_pzsvc_exec(
    client: PiazzaClient,
    algo_url: str,
    cmd: str,
    in_files: Optional[List[str]] = None,
    out_geojson: Optional[List[str]] = None,
    out_geotiff: Optional[List[str]] = None,
    out_txt: Optional[List[str]] = None,
) -> Dict[str, str]:
    """Run *cmd* on a pzsvc-exec instance and return its output-file mapping
    (output file name -> data id)."""
    if not algo_url:
        raise InvalidArgument("pzsvc-exec URL not provided")
    fields = {
        "cmd": cmd,
        "inFiles": ",".join(in_files or []),
        "outGeoJson": ",".join(out_geojson or []),
        "outTiffs": ",".join(out_geotiff or []),
        "outTxt": ",".join(out_txt or []),
        "authKey": client.auth_key,
    }
    log.info("pzsvc_exec_call", url=algo_url, cmd=cmd)
    response = await client.submit_form(algo_url, fields)
    _, result = await read_body_json(response, ExecResult)
    if result.errors:
        log.warning("pzsvc_exec_reported_errors", url=algo_url, errors=result.errors)
    return result.out_files
