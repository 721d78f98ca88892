import responses
from pydantic import BaseModel
from pytest import raises

from estyped.cache import KeyedCache
from estyped.client import SearchClient
from estyped.config import Settings
from estyped.errors import RemoteError
from estyped.transport import RequestsTransport
from tests.tools import HOST, request_body, url

CACHE = "/estyped_unittest_cache"


class Stats(BaseModel):
    count: int
    tags: list[str]


def test_setup_creates_index(client, server):
    server.add(responses.HEAD, url(CACHE), status=404)
    server.add(responses.PUT, url(CACHE), json={"acknowledged": True})
    cache = KeyedCache(client)
    assert cache.setup()
    body = request_body(server)
    assert body["mappings"]["enabled"] is False
    assert body["mappings"]["dynamic"] is True
    # only the first call checks the index
    assert not cache.setup()
    assert len(server.calls) == 2


def test_setup_existing(client, server):
    server.add(responses.HEAD, url(CACHE), status=200)
    assert not KeyedCache(client).setup()


def test_setup_created_concurrently(client, server):
    server.add(responses.HEAD, url(CACHE), status=404)
    server.add(
        responses.PUT,
        url(CACHE),
        status=400,
        json={"error": {"type": "resource_already_exists_exception", "reason": "index already exists"}},
    )
    cache = KeyedCache(client)
    assert not cache.setup()
    assert cache._ready


def test_setup_fails(client, server):
    server.add(responses.HEAD, url(CACHE), status=404)
    server.add(responses.PUT, url(CACHE), status=403, json={"error": {"type": "security_exception", "reason": "no"}})
    with raises(RemoteError):
        KeyedCache(client).setup()


def test_disabled(server):
    settings = Settings(host=HOST, enable_keyed_cache=False)
    client = SearchClient(RequestsTransport.from_settings(settings), settings=settings)
    assert not KeyedCache(client).setup()
    assert len(server.calls) == 0


def test_get_set_remove(client, server):
    server.add(responses.HEAD, url(CACHE), status=200)
    server.add(responses.PUT, url(CACHE + "/_doc/stats"), json={"_index": "cache", "_id": "stats", "result": "created"})
    server.add(
        responses.GET,
        url(CACHE + "/_doc/stats"),
        json={"_index": "cache", "_id": "stats", "found": True, "_source": {"value": {"count": 3, "tags": ["a"]}}},
    )
    server.add(responses.GET, url(CACHE + "/_doc/other"), status=404, json={"found": False})
    server.add(responses.DELETE, url(CACHE + "/_doc/other"), status=404, json={"result": "not_found"})

    cache = KeyedCache(client)
    cache.set("stats", Stats(count=3, tags=["a"]))
    assert request_body(server) == {"value": {"count": 3, "tags": ["a"]}}
    assert cache.get("stats", Stats) == Stats(count=3, tags=["a"])
    assert cache.get("stats") == {"count": 3, "tags": ["a"]}
    assert cache.get("other") is None
    cache.remove("other")
