"""
The search client: builds paths and bodies, sends them through a transport and decodes the responses

Status handling:
- 404 is a valid 'not found' result and returns None. Operations where absence is an error
  (deleting or updating a document, deleting an index) raise NotFound instead.
- Any other status >= 400 raises RemoteError with the description from the error body
- A body that is not valid json raises InvalidResponse, a missing body raises EmptyResponse
"""

import json
import logging
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from estyped.config import Settings, get_settings
from estyped.errors import EmptyResponse, InvalidResponse, NotFound, RemoteError, UrlConstructionError
from estyped.index import Index
from estyped.search import GetResponse, SearchRequest, SearchResponse, decode_get_response, decode_search_response
from estyped.transport import Transport, transport_from_settings


class WriteResponse(BaseModel):
    """Response of an index, update or delete document request"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    index: str = Field(alias="_index")
    id: str = Field(alias="_id")
    version: int | None = Field(default=None, alias="_version")
    result: str | None = None
    seq_no: int | None = Field(default=None, alias="_seq_no")
    primary_term: int | None = Field(default=None, alias="_primary_term")


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(quote(str(v), safe="") for v in value)
    return quote(str(value), safe="")


def generate_url(
    path: Sequence[str],
    routing: str | None = None,
    version: int | None = None,
    stored_fields: Iterable[str] | None = None,
    realtime: bool | None = None,
    **params: Any,
) -> str:
    """
    Build the path and query string of a request

    :param path: The segments of the path, e.g. [index, "_doc", id]. Each segment is quoted.
    :param routing: Route the request to the shard of this routing value
    :param version: Only succeed if the document has this version
    :param stored_fields: The stored fields to return, joined by commas
    :param realtime: Whether a get is realtime (true) or reads from the last refresh (false)
    :param params: Other query parameters; those that are None are left out
    :return: e.g. /index/_doc/1?routing=user1&stored_fields=a,b
    """
    segments = []
    for segment in path:
        if segment is None or str(segment) == "":
            raise UrlConstructionError(f"Empty path segment in {list(path)}")
        segments.append(quote(str(segment), safe=",_*"))
    url = "/" + "/".join(segments)
    query = {"routing": routing, "version": version, "stored_fields": stored_fields, "realtime": realtime, **params}
    if isinstance(stored_fields, str):
        query["stored_fields"] = [stored_fields]
    elif stored_fields is not None:
        query["stored_fields"] = list(stored_fields)
    parts = [f"{key}={_format_param(value)}" for key, value in query.items() if value is not None]
    if parts:
        url = f"{url}?{'&'.join(parts)}"
    return url


def _index_names(index: str | Sequence[str]) -> str:
    if isinstance(index, str):
        return index
    names = list(index)
    if not names or not all(names):
        raise UrlConstructionError(f"Invalid index list: {names}")
    return ",".join(names)


_BODY = TypeAdapter(Any)


def _encode_body(body: Any) -> bytes | None:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    # dates as ISO 8601, the default date format of the server
    return _BODY.dump_json(body)


class SearchClient:
    """
    Client for the HTTP API of the search server

    :param transport: Sends the requests, see estyped.transport
    :param settings: Configuration; defaults to get_settings()
    :param logger: Requests and responses are logged at DEBUG, failed requests at WARNING
    """

    def __init__(self, transport: Transport, settings: Settings | None = None, logger: logging.Logger | None = None):
        self.transport = transport
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger("estyped")

    @classmethod
    def connect(cls, settings: Settings | None = None, logger: logging.Logger | None = None) -> "SearchClient":
        """Create a client with the transport configured in the settings"""
        settings = settings or get_settings()
        return cls(transport_from_settings(settings), settings=settings, logger=logger)

    def __repr__(self):
        return f"<SearchClient {self.transport!r}>"

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        self.transport.close()

    ######################## REQUESTS #########################

    def _request(self, method: str, path: str, body: Any = None) -> tuple[int, bytes | None]:
        data = _encode_body(body)
        self.logger.debug(f"{method} {path} {data.decode('utf-8') if data else ''}")
        status, content = self.transport.send(method, path, data)
        self.logger.debug(f"{method} {path} -> [{status}] {content[:1000] if content else ''!r}")
        return status, content

    def send(self, method: str, path: str, body: Any = None) -> dict[str, Any] | None:
        """
        Send a request and parse the json response

        :param method: The http method
        :param path: The path including the query string, see generate_url
        :param body: The body: a dict, a pydantic model, raw bytes or None
        :return: The parsed response, or None if the server answered 404
        """
        status, content = self._request(method, path, body)
        if status == 404:
            return None
        if not content:
            raise EmptyResponse(method, path, status)
        try:
            result = json.loads(content)
        except ValueError as e:
            self.logger.warning(f"{method} {path}: cannot parse response with status {status}")
            raise InvalidResponse(str(e), status) from e
        if status >= 400:
            error = result.get("error") if isinstance(result, dict) else None
            if isinstance(error, dict):
                description, error_type = error.get("reason") or json.dumps(error), error.get("type")
            else:
                description, error_type = str(error or result), None
            self.logger.warning(f"{method} {path} failed: [{status}] {error_type}: {description}")
            raise RemoteError(status, description, error_type)
        return result

    ######################## SEARCH #########################

    def search(
        self,
        index: str | Sequence[str],
        request: SearchRequest | None = None,
        hit_type: Any = dict,
        routing: str | None = None,
    ) -> SearchResponse | None:
        """
        Search one or more indices

        :param index: The index name, or a list of index names
        :param request: The query, aggregations etc.; None to match all documents
        :param hit_type: The type to decode the _source of the hits into, e.g. a pydantic model
        :param routing: Only search the shard of this routing value
        :return: The decoded response, or None if the index does not exist
        """
        request = request or SearchRequest()
        path = generate_url([_index_names(index), "_search"], routing=routing)
        result = self.send("POST", path, request.to_body())
        if result is None:
            return None
        return decode_search_response(result, hit_type, request.resolver())

    ######################## DOCUMENTS #########################

    def get(
        self,
        index: str,
        id: str,
        hit_type: Any = dict,
        routing: str | None = None,
        version: int | None = None,
        stored_fields: Iterable[str] | None = None,
        realtime: bool | None = None,
    ) -> GetResponse | None:
        """Get a document by id; returns None if the document (or the index) does not exist"""
        path = generate_url(
            [index, "_doc", id], routing=routing, version=version, stored_fields=stored_fields, realtime=realtime
        )
        result = self.send("GET", path)
        if result is None or result.get("found") is False:
            return None
        return decode_get_response(result, hit_type)

    def index_document(
        self,
        index: str,
        document: Mapping[str, Any] | BaseModel,
        id: str | None = None,
        routing: str | None = None,
        version: int | None = None,
        force_create: bool = False,
        refresh: bool | str | None = None,
    ) -> WriteResponse:
        """
        Store a document

        :param index: The index to store the document in
        :param document: The document, as a dict or a pydantic model
        :param id: The id of the document. If not given, the server assigns an id
        :param routing: Store the document on the shard of this routing value
        :param version: Only overwrite the document if it has this version
        :param force_create: Fail (with status 409) if a document with this id already exists
        :param refresh: Make the document visible to search (true, false or wait_for)
        """
        if force_create:
            if id is None:
                raise UrlConstructionError("force_create requires a document id")
            method, path = "PUT", [index, "_create", id]
        elif id is None:
            method, path = "POST", [index, "_doc"]
        else:
            method, path = "PUT", [index, "_doc", id]
        result = self.send(method, generate_url(path, routing=routing, version=version, refresh=refresh), document)
        if result is None:
            raise NotFound(404, f"Cannot store document in index {index}")
        return WriteResponse.model_validate(result)

    def update_document(
        self,
        index: str,
        id: str,
        update: Mapping[str, Any] | BaseModel,
        routing: str | None = None,
        upsert: bool = False,
        refresh: bool | str | None = None,
    ) -> WriteResponse:
        """
        Update the given fields of a document

        :param update: The fields to update
        :param upsert: If True, create the document if it does not exist. Otherwise a missing document raises NotFound.
        """
        if isinstance(update, BaseModel):
            update = update.model_dump(mode="json", by_alias=True, exclude_unset=True)
        body: dict[str, Any] = {"doc": update}
        if upsert:
            body["doc_as_upsert"] = True
        result = self.send("POST", generate_url([index, "_update", id], routing=routing, refresh=refresh), body)
        if result is None:
            raise NotFound(404, f"Document {index}/{id} does not exist")
        return WriteResponse.model_validate(result)

    def delete_document(
        self,
        index: str,
        id: str,
        routing: str | None = None,
        version: int | None = None,
        ignore_missing: bool = False,
        refresh: bool | str | None = None,
    ) -> WriteResponse | None:
        """Delete a document. If it does not exist, return None if ignore_missing is set, else raise NotFound"""
        path = generate_url([index, "_doc", id], routing=routing, version=version, refresh=refresh)
        result = self.send("DELETE", path)
        if result is None or result.get("result") == "not_found":
            if ignore_missing:
                return None
            raise NotFound(404, f"Document {index}/{id} does not exist")
        return WriteResponse.model_validate(result)

    ######################## INDICES #########################

    def create_index(self, index: Index) -> dict[str, Any]:
        """Create the index with its settings, analysis components and mappings"""
        self.logger.info(f"Creating index {index.name}")
        result = self.send("PUT", generate_url([index.name]), index.create_body())
        if result is None:
            raise NotFound(404, f"Cannot create index {index.name}")
        return result

    def fetch_index(self, name: str) -> Index | None:
        """Get the definition of an index, or None if it does not exist"""
        result = self.send("GET", generate_url([name]))
        if result is None:
            return None
        return Index.decode(name, result)

    def index_exists(self, name: str) -> bool:
        status, _ = self._request("HEAD", generate_url([name]))
        if status == 404:
            return False
        if status >= 400:
            raise RemoteError(status, f"Cannot check whether index {name} exists")
        return True

    def delete_index(self, name: str, ignore_missing: bool = False) -> bool:
        """Delete an index. Returns False if it did not exist and ignore_missing is set, otherwise raises NotFound."""
        self.logger.info(f"Deleting index {name}")
        result = self.send("DELETE", generate_url([name]))
        if result is None:
            if ignore_missing:
                return False
            raise NotFound(404, f"Index {name} does not exist")
        return True

    def refresh_index(self, name: str) -> None:
        if self.send("POST", generate_url([name, "_refresh"])) is None:
            raise NotFound(404, f"Index {name} does not exist")
