import httpx
import pytest

from casedesk.api.client import ApiClient
from casedesk.core.config import Settings
from casedesk.core.errors import ApiError, ApiStatusError, TransportFailure


def test_settings_normalize_urls():
    s = Settings(_env_file=None, api_base_url="http://example.com/ ", api_prefix="api/")
    assert s.api_base_url == "http://example.com"
    assert s.api_prefix == "/api"


@pytest.mark.asyncio
async def test_status_error_carries_server_message(api, backend):
    backend.on("GET", "/cases", {"message": "Forbidden for role"}, status=403)
    with pytest.raises(ApiStatusError) as exc:
        await api.get("/cases")
    assert exc.value.status_code == 403
    assert exc.value.server_message == "Forbidden for role"


@pytest.mark.asyncio
async def test_status_error_without_json_body(api, backend):
    backend.on("GET", "/cases", handler=lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    with pytest.raises(ApiStatusError) as exc:
        await api.get("/cases")
    assert exc.value.server_message is None


@pytest.mark.asyncio
async def test_empty_and_malformed_bodies(api, backend):
    backend.on("DELETE", "/payments/1", handler=lambda request: httpx.Response(204))
    assert await api.delete("/payments/1") is None

    backend.on("GET", "/cases", handler=lambda request: httpx.Response(200, text="{not json"))
    with pytest.raises(ApiError):
        await api.get("/cases")


@pytest.mark.asyncio
async def test_transport_failure(api, backend):
    backend.fail("GET", "/verify")
    with pytest.raises(TransportFailure):
        await api.get("/verify")


@pytest.mark.asyncio
async def test_session_cookie_is_sent(backend):
    config = Settings(_env_file=None, api_base_url="http://testserver", session_token="abc123")
    async with ApiClient(config=config, transport=httpx.MockTransport(backend)) as client:
        backend.on("GET", "/verify", {"user": None})
        await client.get("/verify")
    (request,) = backend.requests
    assert request.headers["cookie"] == "token=abc123"
    assert str(request.url) == "http://testserver/api/verify"


@pytest.mark.asyncio
async def test_undecodable_response_is_a_transport_failure(api, backend):
    def broken(request):
        raise httpx.DecodingError("bad gzip stream", request=request)

    backend.on("GET", "/cases", handler=broken)
    with pytest.raises(TransportFailure, match="bad gzip stream"):
        await api.get("/cases")
