import base64
import json
from unittest import mock

import requests
import responses
from elasticsearch import ConnectionError as ESConnectionError
from pytest import raises

from estyped.config import Settings, TransportOptions
from estyped.errors import ConnectionFailed
from estyped.transport import ElasticTransport, RequestsTransport, transport_from_settings
from tests.tools import HOST, url


def test_requests_headers(server):
    server.add(responses.GET, url("/_cluster/health"), json={"status": "green"})
    transport = RequestsTransport(HOST + "/")
    status, body = transport.send("GET", "/_cluster/health")
    assert status == 200
    assert json.loads(body) == {"status": "green"}
    request = server.calls[0].request
    assert request.headers["Content-Type"] == "application/json"
    assert "Authorization" not in request.headers


def test_requests_auth(server):
    server.add(responses.PUT, url("/news"), json={"acknowledged": True})
    transport = RequestsTransport(HOST, username="admin", password="secret")
    transport.send("PUT", "/news", b'{"settings": {}}')
    request = server.calls[0].request
    expected = base64.b64encode(b"admin:secret").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.body == b'{"settings": {}}'


def test_requests_empty_body(server):
    server.add(responses.HEAD, url("/news"), status=404)
    assert RequestsTransport(HOST).send("HEAD", "/news") == (404, None)


def test_requests_connection_failed(server):
    server.add(responses.GET, url("/news/_doc/1"), body=requests.ConnectionError("refused"))
    with raises(ConnectionFailed):
        RequestsTransport(HOST).send("GET", "/news/_doc/1")


def test_elastic_transport():
    es = mock.MagicMock()
    es.transport.perform_request.return_value = mock.Mock(meta=mock.Mock(status=200), body={"found": True})
    status, body = ElasticTransport(es).send("GET", "/news/_doc/1")
    assert status == 200
    assert json.loads(body) == {"found": True}
    method, path = es.transport.perform_request.call_args.args
    assert (method, path) == ("GET", "/news/_doc/1")

    es.transport.perform_request.return_value = mock.Mock(meta=mock.Mock(status=200), body="")
    assert ElasticTransport(es).send("HEAD", "/news") == (200, None)

    es.transport.perform_request.side_effect = ESConnectionError("refused")
    with raises(ConnectionFailed):
        ElasticTransport(es).send("GET", "/news/_doc/1")


def test_from_settings():
    settings = Settings(host=HOST, password="secret", timeout=3)
    transport = transport_from_settings(settings)
    assert isinstance(transport, RequestsTransport)
    assert transport.timeout == 3
    assert transport.session.auth == ("elastic", "secret")
    assert transport.session.verify is False

    settings = Settings(host=HOST, transport=TransportOptions.elasticsearch)
    assert isinstance(transport_from_settings(settings), ElasticTransport)
