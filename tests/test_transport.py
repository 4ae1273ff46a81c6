import httpx
import pytest

from aggcat_helper.config import AggcatConfig
from aggcat_helper.errors import TransportError
from aggcat_helper.transport import HttpxTransport, TransportResponse


def test_header_lookup_is_case_insensitive() -> None:
    resp = TransportResponse(status_code=200, headers={"ChallengeSessionId": "s1"})
    assert resp.header("challengeSessionId") == "s1"
    assert resp.header("challengeNodeId") is None


@pytest.mark.asyncio
async def test_httpx_transport_passes_request_through() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            401,
            text="<Challenges/>",
            headers={"challengeSessionId": "s1", "challengeNodeId": "n1"},
        )

    async with HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler))) as t:
        resp = await t(
            "POST",
            "https://aggcat.test/v1/institutions/1/logins",
            "<InstitutionLogin/>",
            {"Content-Type": "application/xml", "challengeSessionId": "s0"},
        )

    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "https://aggcat.test/v1/institutions/1/logins"
    assert seen[0].content == b"<InstitutionLogin/>"
    assert seen[0].headers["content-type"] == "application/xml"
    assert seen[0].headers["challengesessionid"] == "s0"
    assert resp.status_code == 401
    assert resp.body == "<Challenges/>"
    assert resp.header("challengeSessionId") == "s1"
    assert resp.header("challengeNodeId") == "n1"


@pytest.mark.asyncio
async def test_httpx_transport_get_has_no_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="")

    async with HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler))) as t:
        resp = await t("GET", "https://aggcat.test/v1/accounts")

    assert seen[0].content == b""
    assert "content-type" not in seen[0].headers
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_httpx_transport_connection_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

    async with HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler))) as t:
        with pytest.raises(TransportError) as exc_info:
            _ = await t("GET", "https://aggcat.test/v1/accounts")
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_from_config_uses_configured_timeout() -> None:
    config = AggcatConfig(customer_id="c1", timeout=12.5)
    transport = HttpxTransport.from_config(config)
    assert transport._client.timeout == httpx.Timeout(12.5)
    await transport.aclose()
