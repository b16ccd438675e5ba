"""Probe outcome classification."""
import httpx

from urlmon.models import MonitoredEndpoint
from urlmon.services.checker import CheckerService


def endpoint_at(url: str) -> MonitoredEndpoint:
    return MonitoredEndpoint(id=7, name="probe", url=url, monitoring_interval=60, owner_id=1)


async def test_response_is_recorded(checker):
    result = await checker.probe(endpoint_at("https://github.com"))

    assert result.http_code == 200
    assert result.content_type == "text/html; charset=utf-8"
    assert result.payload == "<html>ok</html>"
    assert result.error is None
    assert result.monitored_endpoint_id == 7
    assert result.checked_date is not None
    assert result.id is None


async def test_client_error_is_a_response(checker):
    result = await checker.probe(endpoint_at("https://github.com/missing"))

    assert result.http_code == 404
    assert result.payload == "not found"
    assert result.error is None


async def test_connection_refused(checker):
    result = await checker.probe(endpoint_at("http://down.example.com"))

    assert result.error == "Connection error: Connection refused"
    assert result.http_code is None
    assert result.content_type is None
    assert result.payload is None


async def test_timeout(checker):
    result = await checker.probe(endpoint_at("http://slow.example.com"))

    assert result.error.startswith("Request timeout")
    assert result.http_code is None


async def test_redirect_loop(checker):
    result = await checker.probe(endpoint_at("http://loop.example.com/"))

    assert result.error.startswith("TooManyRedirects")
    assert result.http_code == 302
    assert result.content_type == "text/html"
    assert result.payload == "moved"


async def test_redirect_loop_result_is_storable(repository, endpoint, checker):
    endpoint.url = "http://loop.example.com/"
    result = await repository.save_result(await checker.probe(endpoint))

    assert result.id is not None
    assert result.http_code == 302


async def test_partial_response_is_kept(checker):
    result = await checker.probe(endpoint_at("https://maintenance.example.com"))

    assert result.error.startswith("HTTPStatusError")
    assert result.http_code == 503
    assert result.content_type == "text/plain"
    assert result.payload == "back soon"


async def test_payload_is_capped():
    def big_page(request):
        return httpx.Response(200, headers={"content-type": "text/plain"}, text="a" * 50)

    checker = CheckerService(max_payload_chars=10, transport=httpx.MockTransport(big_page))
    result = await checker.probe(endpoint_at("https://github.com"))

    assert result.payload == "a" * 10
