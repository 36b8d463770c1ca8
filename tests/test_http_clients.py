"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from nutrition_lookup.adapters.open_food_facts_client import HttpxOpenFoodFactsClient
from nutrition_lookup.adapters.openai_text_client import OpenAITextClient
from nutrition_lookup.domain.errors import UpstreamError


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)


def _catalog_client(handler) -> HttpxOpenFoodFactsClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxOpenFoodFactsClient(
        base_url="https://off.test",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_openai_text_client_returns_output() -> None:
    fake = _FakeOpenAI(json.dumps({"isFood": False}))
    client = OpenAITextClient(client=fake)

    text = asyncio.run(
        client.generate(model="gpt-4o", prompt="Is a car food?", temperature=0.2)
    )

    assert json.loads(text) == {"isFood": False}
    assert fake.responses.last_payload == {
        "model": "gpt-4o",
        "input": "Is a car food?",
        "temperature": 0.2,
    }


def test_openai_text_client_empty_output_is_upstream_error() -> None:
    client = OpenAITextClient(client=_FakeOpenAI(""))

    with pytest.raises(UpstreamError):
        asyncio.run(client.generate(model="gpt-4o", prompt="x", temperature=0.2))


def test_catalog_search_sends_query_params() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"count": 0, "products": []})

    client = _catalog_client(handler)

    payload = asyncio.run(client.search_products("banana", page_size=5))

    assert payload == {"count": 0, "products": []}
    request = seen[0]
    assert request.url.path == "/cgi/search.pl"
    assert request.url.params["search_terms"] == "banana"
    assert request.url.params["search_simple"] == "1"
    assert request.url.params["action"] == "process"
    assert request.url.params["json"] == "1"
    assert request.url.params["page_size"] == "5"


def test_catalog_get_product() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v2/product/123.json":
            return httpx.Response(
                200, json={"status": 1, "product": {"code": "123"}}
            )
        if request.url.path == "/api/v2/product/456.json":
            return httpx.Response(200, json={"status": 0, "status_verbose": "nope"})
        return httpx.Response(404, json={})

    client = _catalog_client(handler)

    assert asyncio.run(client.get_product("123")) == {"code": "123"}
    assert asyncio.run(client.get_product("456")) is None
    assert asyncio.run(client.get_product("789")) is None


def test_catalog_non_2xx_is_upstream_error() -> None:
    client = _catalog_client(lambda request: httpx.Response(503, text="down"))

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.search_products("banana"))

    assert excinfo.value.status_code == 503


def test_catalog_unparseable_body_is_upstream_error() -> None:
    client = _catalog_client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(UpstreamError):
        asyncio.run(client.search_products("banana"))


def test_catalog_transport_failure_is_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _catalog_client(handler)

    with pytest.raises(UpstreamError):
        asyncio.run(client.search_products("banana"))
