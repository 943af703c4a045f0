"""Tests for the Stack Exchange search client."""

from __future__ import annotations

import httpx
import pytest
from pydantic import SecretStr

from stackoverflow_plugin.config import DEFAULT_APP_KEY, PluginSettings
from stackoverflow_plugin.services.exceptions import SearchFailed
from stackoverflow_plugin.services.stackexchange import StackExchangeClient


@pytest.mark.asyncio
async def test_search_posts_sends_fixed_parameters(settings, make_post_payload):
    seen: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": [make_post_payload(i) for i in range(8)]})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        posts = await StackExchangeClient(client, settings).search_posts("  spring boot ")

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "GET"
    assert request.url.host == "api.stackexchange.com"
    assert request.url.path == "/2.3/search"
    params = request.url.params
    assert params["page"] == "1"
    assert params["pagesize"] == "8"
    assert params["order"] == "desc"
    assert params["sort"] == "activity"
    assert params["site"] == "stackoverflow"
    assert params["intitle"] == '"spring boot"'
    assert params["access_token"] == "test-token"
    assert params["key"] == DEFAULT_APP_KEY

    assert [post.title for post in posts] == [f"Question {i}" for i in range(8)]
    assert posts[3].link == "https://stackoverflow.com/questions/1003"
    assert posts[0].tags == ("java", "spring-boot")
    assert posts[0].is_answered is True
    assert posts[1].is_answered is False


@pytest.mark.asyncio
async def test_search_posts_applies_request_timeout():
    settings = PluginSettings(access_token=SecretStr("token"), request_timeout_seconds=2.5)
    timeouts: list[dict] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200, json={"items": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        posts = await StackExchangeClient(client, settings).search_posts("query")

    assert posts == []
    assert timeouts[0]["read"] == 2.5
    assert timeouts[0]["connect"] == 2.5


@pytest.mark.asyncio
async def test_search_posts_uses_configured_base_url_and_page_size():
    settings = PluginSettings(
        access_token=SecretStr("token"),
        api_base_url="https://api.example.test/2.3/",
        page_size=3,
        site="superuser",
    )
    urls: list[httpx.URL] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        urls.append(request.url)
        return httpx.Response(200, json={"items": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        await StackExchangeClient(client, settings).search_posts("bash")

    assert urls[0].host == "api.example.test"
    assert urls[0].path == "/2.3/search"
    assert urls[0].params["pagesize"] == "3"
    assert urls[0].params["site"] == "superuser"


@pytest.mark.asyncio
async def test_search_posts_defaults_missing_optional_fields(settings):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "items": [{"title": "Old", "score": 1, "link": "https://so.test/q/1"}],
                "quota_remaining": 9999,
            },
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        posts = await StackExchangeClient(client, settings).search_posts("old")

    assert posts[0].tags == ()
    assert posts[0].is_answered is False


@pytest.mark.asyncio
async def test_search_posts_wraps_http_status_errors(settings):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"error_id": 502, "error_name": "throttle_violation"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SearchFailed) as excinfo:
            await StackExchangeClient(client, settings).search_posts("spring")

    assert "502" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_search_posts_wraps_transport_errors(settings):
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SearchFailed) as excinfo:
            await StackExchangeClient(client, settings).search_posts("spring")

    assert "connection refused" in str(excinfo.value)


@pytest.mark.asyncio
async def test_search_posts_reports_timeouts(settings):
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SearchFailed) as excinfo:
            await StackExchangeClient(client, settings).search_posts("spring")

    assert "timed out" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, httpx.TimeoutException)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        b"<html>not json</html>",
        b'{"quota_remaining": 10}',
        b'{"items": [{"title": "missing link", "score": 1}]}',
        b'{"items": "nope"}',
    ],
)
async def test_search_posts_rejects_malformed_bodies(settings, body):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SearchFailed):
            await StackExchangeClient(client, settings).search_posts("spring")


@pytest.mark.asyncio
async def test_search_posts_rejects_blank_terms(settings):
    calls = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json={"items": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SearchFailed):
            await StackExchangeClient(client, settings).search_posts("   ")

    assert calls == 0
