"""Tests for the HTTP transport and response decoding.

Covers:
- submit_single_part headers, JSON bodies, query params and argument checks
- HTTP status and transport failures
- decode_json / read_body_json / get_job_id
- submit_multipart form layout and per-phase failures
- submit_form
"""
from __future__ import annotations

import io
import json
from typing import Dict

import httpx
import pytest
from pydantic import ValidationError

from conftest import AUTH_KEY, BASE_URL, ScriptedTransport, job_created
from piazza_client.client import PiazzaClient, decode_json, get_job_id, read_body_json
from piazza_client.errors import (
    DecodeFailed,
    HTTPStatusError,
    InvalidArgument,
    MissingJobId,
    MultipartError,
    TransportError,
)
from piazza_client.models.job import JobStatusEnvelope

pytestmark = pytest.mark.unit


# ===========================================================================
# Construction
# ===========================================================================


class TestConstruction:
    def test_base_url_falls_back_to_domain_gateway(self) -> None:
        with pytest.MonkeyPatch.context() as mp:
            mp.setattr("piazza_client.config.settings.PZ_ADDR", "")
            mp.setattr("piazza_client.config.settings.DOMAIN", "geo.example.com")
            client = PiazzaClient(auth_key="k")
        assert client.base_url == "https://pz-gateway.geo.example.com"

    def test_explicit_arguments_win(self) -> None:
        client = PiazzaClient(base_url="http://localhost:8081/", auth_key="abc", timeout=2.5)
        assert client.base_url == "http://localhost:8081"
        assert client.auth_key == "abc"
        assert client.timeout == 2.5


# ===========================================================================
# Single-part requests
# ===========================================================================


class TestSubmitSinglePart:
    @pytest.mark.asyncio
    async def test_sends_auth_header_and_json_body(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({"ok": True})

        response = await pz.submit_single_part("post", "/data", {"name": "scene.tif"})

        assert response.status_code == 200
        request = transport.last
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/data"
        assert request.headers["Authorization"] == AUTH_KEY
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"name": "scene.tif"}

    @pytest.mark.asyncio
    async def test_string_body_is_sent_verbatim(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({})
        await pz.submit_single_part("PUT", "/service/abc", '{"url":"http://svc"}')
        assert transport.last.content == b'{"url":"http://svc"}'

    @pytest.mark.asyncio
    async def test_no_body_means_no_content_type(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({})
        await pz.submit_single_part("GET", "/job/1")
        assert "Content-Type" not in transport.last.headers
        assert transport.last.content == b""

    @pytest.mark.asyncio
    async def test_query_params(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({})
        await pz.submit_single_part("GET", "/service", params={"perPage": 1000, "keyword": "ndwi"})
        assert transport.last.url.params["perPage"] == "1000"
        assert transport.last.url.params["keyword"] == "ndwi"

    @pytest.mark.asyncio
    async def test_absolute_url_overrides_base(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({})
        await pz.submit_single_part("GET", "https://elsewhere.test/health")
        assert str(transport.last.url) == "https://elsewhere.test/health"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, url", [("", "/job/1"), ("GET", "")])
    async def test_missing_method_or_url(
        self, pz: PiazzaClient, transport: ScriptedTransport, method: str, url: str
    ) -> None:
        with pytest.raises(InvalidArgument):
            await pz.submit_single_part(method, url)
        assert transport.calls == 0

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_response_attached(
        self, pz: PiazzaClient, transport: ScriptedTransport
    ) -> None:
        transport.queue((404, {"message": "no such data"}))

        with pytest.raises(HTTPStatusError) as exc_info:
            await pz.submit_single_part("GET", "/data/missing")

        err = exc_info.value
        assert err.status_code == 404
        assert err.response.status_code == 404
        assert err.method == "GET"
        assert err.url == f"{BASE_URL}/data/missing"
        assert b"no such data" in err.body
        assert "404" in str(err)

    @pytest.mark.asyncio
    async def test_connection_failure(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue(httpx.ConnectError("name resolution failed"))

        with pytest.raises(TransportError) as exc_info:
            await pz.submit_single_part("GET", "/job/1")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.url == f"{BASE_URL}/job/1"

    @pytest.mark.asyncio
    async def test_request_known_json(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({"data": {"status": "Running", "jobId": "j"}})

        raw, envelope = await pz.request_known_json("GET", "/job/j", JobStatusEnvelope)

        assert json.loads(raw)["data"]["status"] == "Running"
        assert envelope.data.status == "Running"
        assert envelope.data.job_id == "j"


# ===========================================================================
# Decoding
# ===========================================================================


class TestDecoding:
    def test_decode_model(self) -> None:
        envelope = decode_json(b'{"data": {"status": "Success", "result": {"dataId": "D"}}}', JobStatusEnvelope)
        assert envelope.data.result == {"dataId": "D"}

    def test_decode_plain_type(self) -> None:
        assert decode_json(b'{"a": "b"}', Dict[str, str]) == {"a": "b"}

    def test_empty_body_fails(self) -> None:
        with pytest.raises(DecodeFailed) as exc_info:
            decode_json(b"", JobStatusEnvelope)
        assert exc_info.value.body == b""

    def test_invalid_body_chains_cause(self) -> None:
        with pytest.raises(DecodeFailed) as exc_info:
            decode_json(b"{not json", JobStatusEnvelope, url="/job/1", method="GET")
        err = exc_info.value
        assert isinstance(err.__cause__, ValidationError)
        assert err.body == b"{not json"
        assert err.url == "/job/1"
        assert "{not json" in str(err)

    @pytest.mark.asyncio
    async def test_read_body_json_returns_raw(self) -> None:
        response = httpx.Response(200, content=b'{"data": {"status": "Pending"}}')
        raw, envelope = await read_body_json(response, JobStatusEnvelope)
        assert raw == b'{"data": {"status": "Pending"}}'
        assert envelope.data.status == "Pending"

    @pytest.mark.asyncio
    async def test_get_job_id(self) -> None:
        assert await get_job_id(httpx.Response(200, json=job_created("abc-123"))) == "abc-123"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"data": {}}, {"type": "job"}, {"data": {"jobId": ""}}])
    async def test_get_job_id_missing(self, body: dict) -> None:
        with pytest.raises(MissingJobId) as exc_info:
            await get_job_id(httpx.Response(200, json=body))
        assert isinstance(exc_info.value, DecodeFailed)


# ===========================================================================
# Multipart and form requests
# ===========================================================================


class TestSubmitMultipart:
    @pytest.mark.asyncio
    async def test_data_field_and_file_part(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue(job_created())

        await pz.submit_multipart("/data/file", {"type": "ingest"}, filename="scene.tif", file_data=b"II*\x00")

        request = transport.last
        assert request.method == "POST"
        assert request.url.path == "/data/file"
        assert request.headers["Authorization"] == AUTH_KEY
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        body = request.content
        assert b'name="data"' in body
        assert b'{"type": "ingest"}' in body
        assert b'name="file"; filename="scene.tif"' in body
        assert b"II*\x00" in body

    @pytest.mark.asyncio
    async def test_file_like_object(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue(job_created())
        await pz.submit_multipart("/data/file", "{}", filename="a.geojson", file_data=io.BytesIO(b"{}"))
        assert b'filename="a.geojson"' in transport.last.content

    @pytest.mark.asyncio
    async def test_without_file_part(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue(job_created())
        await pz.submit_multipart("/data", {"type": "ingest"})
        assert b'name="file"' not in transport.last.content

    @pytest.mark.asyncio
    async def test_field_phase(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        with pytest.raises(MultipartError) as exc_info:
            await pz.submit_multipart("/data/file", b"\xff\xfe")
        assert exc_info.value.phase == "field"
        assert transport.calls == 0

    @pytest.mark.asyncio
    async def test_file_phase(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        with pytest.raises(MultipartError) as exc_info:
            await pz.submit_multipart("/data/file", {}, filename="", file_data=b"abc")
        assert exc_info.value.phase == "file"
        assert transport.calls == 0

    @pytest.mark.asyncio
    async def test_copy_phase(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        class BrokenReader(io.RawIOBase):
            def read(self, *args) -> bytes:
                raise OSError("device not ready")

        with pytest.raises(MultipartError) as exc_info:
            await pz.submit_multipart("/data/file", {}, filename="x.tif", file_data=BrokenReader())
        assert exc_info.value.phase == "copy"
        assert isinstance(exc_info.value.__cause__, OSError)
        assert transport.calls == 0


class TestSubmitForm:
    @pytest.mark.asyncio
    async def test_url_encoded_fields(self, pz: PiazzaClient, transport: ScriptedTransport) -> None:
        transport.queue({})
        await pz.submit_form("http://algo.test/execute", {"cmd": "gdalinfo a.tif", "inFiles": "a,b"})

        request = transport.last
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.content == b"cmd=gdalinfo+a.tif&inFiles=a%2Cb"
