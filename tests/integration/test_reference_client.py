"""Integration tests for the service line reference client over a mocked transport"""

import httpx
import pytest
from recoverability_gateway.domain.exceptions import ReferenceDataError
from recoverability_gateway.infrastructure.clients.reference_data import ServiceLineClient

BASE_URL = "http://reference.test"


def _client(handler) -> ServiceLineClient:
    return ServiceLineClient(base_url=BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler))


async def test_get_service_lines():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(
            200,
            json={
                "service_lines": [
                    {
                        "code": "AUD",
                        "description": "Audit",
                        "sub_group_code": "ASSUR",
                        "sub_group_desc": "Assurance",
                        "master_code": "ASR",
                    },
                    {"code": "TAX", "description": "Tax Compliance", "master_code": None},
                ]
            },
        )

    result = await _client(handler).get_service_lines(["TAX", "AUD", "AUD"])

    assert seen[0].path == "/service-lines"
    assert seen[0].params["codes"] == "AUD,TAX"
    assert result["AUD"].master_code == "ASR"
    assert result["TAX"].sub_group_code == ""
    assert result["TAX"].master_code == ""


async def test_no_codes_skips_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    assert await _client(handler).get_service_lines([]) == {}


async def test_get_master_service_lines():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["active"] == "true"
        return httpx.Response(200, json={"master_service_lines": [{"code": "ASR", "name": "Assurance Services"}]})

    assert await _client(handler).get_master_service_lines() == {"ASR": "Assurance Services"}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"service_lines": [{"description": "missing code"}]}),
    ],
)
async def test_bad_responses_raise_reference_error(response):
    with pytest.raises(ReferenceDataError):
        await _client(lambda request: response).get_service_lines(["AUD"])


async def test_timeout_raises_reference_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ReferenceDataError, match="timeout"):
        await _client(handler).get_master_service_lines()


async def test_connection_error_raises_reference_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ReferenceDataError, match="unreachable"):
        await _client(handler).get_service_lines(["AUD"])
