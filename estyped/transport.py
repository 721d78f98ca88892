"""
Transports send a single request to the server and return the status and the raw body.
Interpreting the status (404, errors) is up to the client, see estyped.client.

Two transports are provided:
- RequestsTransport, which uses a requests.Session with basic auth and json content type
- ElasticTransport, which reuses the connection pool of an existing elasticsearch.Elasticsearch client
"""

import json
from typing import Protocol

import requests
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import ConnectionTimeout, Elasticsearch

from estyped.config import Settings
from estyped.errors import ConnectionFailed

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class Transport(Protocol):
    def send(self, method: str, path: str, body: bytes | None = None) -> tuple[int, bytes | None]:
        """
        Send a request to the server

        :param method: The http method, e.g. 'GET'
        :param path: The path including the query string, e.g. '/index/_doc/1?routing=x'
        :param body: The json encoded body, if any
        :return: a tuple of the http status and the response body (None if the body is empty)
        """
        ...

    def close(self) -> None: ...


class RequestsTransport:
    def __init__(
        self,
        host: str,
        username: str | None = None,
        password: str | None = None,
        verify_ssl: bool = True,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(JSON_HEADERS)
        self.session.verify = verify_ssl
        if password:
            self.session.auth = (username or "elastic", password)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RequestsTransport":
        assert settings.host is not None
        return cls(
            settings.host,
            username=settings.username,
            password=settings.password,
            verify_ssl=bool(settings.verify_ssl),
            timeout=settings.timeout,
        )

    def __repr__(self):
        return f"<RequestsTransport {self.host}>"

    def send(self, method: str, path: str, body: bytes | None = None) -> tuple[int, bytes | None]:
        url = f"{self.host}{path}"
        try:
            r = self.session.request(method, url, data=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ConnectionFailed(f"{method} {url} failed: {e}") from e
        return r.status_code, r.content or None

    def close(self) -> None:
        self.session.close()


class ElasticTransport:
    """
    Send requests through the transport of an Elasticsearch client. The client already parses the response body,
    so it is encoded again to keep the contract of returning the raw body.
    """

    def __init__(self, es: Elasticsearch):
        self.es = es

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElasticTransport":
        if settings.password:
            es = Elasticsearch(
                settings.host,
                basic_auth=(settings.username, settings.password),
                verify_certs=bool(settings.verify_ssl),
                request_timeout=settings.timeout,
            )
        else:
            es = Elasticsearch(settings.host, request_timeout=settings.timeout)
        return cls(es)

    def __repr__(self):
        return f"<ElasticTransport {self.es}>"

    def send(self, method: str, path: str, body: bytes | None = None) -> tuple[int, bytes | None]:
        try:
            response = self.es.transport.perform_request(method, path, body=body, headers=JSON_HEADERS)
        except (ESConnectionError, ConnectionTimeout) as e:
            raise ConnectionFailed(f"{method} {path} failed: {e}") from e
        content = response.body
        if content is None or content == "" or content == b"":
            return response.meta.status, None
        if isinstance(content, bytes):
            return response.meta.status, content
        if isinstance(content, str):
            return response.meta.status, content.encode("utf-8")
        return response.meta.status, json.dumps(content).encode("utf-8")

    def close(self) -> None:
        self.es.close()


def transport_from_settings(settings: Settings) -> Transport:
    if settings.transport == "elasticsearch":
        return ElasticTransport.from_settings(settings)
    return RequestsTransport.from_settings(settings)
