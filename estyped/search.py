"""
Search requests and responses
"""

from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_serializer, field_validator

from estyped.aggregate import Aggregation, AggregationResolver, AggregationResponse, named_aggregations
from estyped.codec import encode_named
from estyped.errors import InvalidResponse
from estyped.hits import Hit, HitsContainer, TotalHits, decode_hits
from estyped.query import Query

__all__ = [
    "SearchRequest",
    "SearchResponse",
    "GetResponse",
    "Hit",
    "HitsContainer",
    "TotalHits",
    "decode_search_response",
    "decode_get_response",
]

T = TypeVar("T")


class SearchRequest(BaseModel):
    """
    The body of a search. Immutable; absent parts are left out of the body.

    :param query: The query, or None to match all documents
    :param aggs: Aggregations, as a list of named aggregations or a name -> aggregation dict
    :param size: Number of hits to return
    :param from_: Offset of the first hit to return
    :param sort: Sort specification, e.g. [{"date": "desc"}]
    :param source: Which fields of _source to return (True/False, a list of fields, or an includes/excludes dict)
    :param track_total_hits: True to count all hits, or the number of hits to count accurately
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: Query | None = None
    aggs: dict[str, Aggregation] | None = None
    size: int | None = None
    from_: int | None = Field(default=None, alias="from")
    sort: list[Any] | None = None
    source: bool | list[str] | dict[str, Any] | None = Field(default=None, alias="_source")
    track_total_hits: bool | int | None = None

    @field_validator("aggs", mode="before")
    @classmethod
    def _name_aggs(cls, value: Any) -> Any:
        return None if value is None else named_aggregations(value) or None

    @field_serializer("query")
    def _encode_query(self, value: Query | None) -> Any:
        return None if value is None else value.encode()

    @field_serializer("aggs")
    def _encode_aggs(self, value: dict[str, Aggregation] | None) -> Any:
        return None if value is None else encode_named(value)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def resolver(self) -> AggregationResolver:
        return AggregationResolver.from_aggregations(self.aggs)


class SearchResponse(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    took: int | None = None
    timed_out: bool | None = None
    shards: dict[str, Any] | None = Field(default=None, alias="_shards")
    hits: HitsContainer
    aggregations: dict[str, AggregationResponse] | None = None

    @property
    def total(self) -> int | None:
        return self.hits.total.value if self.hits.total else None

    def sources(self) -> list[T]:
        return self.hits.sources()


class GetResponse(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: str = Field(alias="_index")
    id: str = Field(alias="_id")
    found: bool
    version: int | None = Field(default=None, alias="_version")
    seq_no: int | None = Field(default=None, alias="_seq_no")
    primary_term: int | None = Field(default=None, alias="_primary_term")
    routing: str | None = Field(default=None, alias="_routing")
    source: T | None = Field(default=None, alias="_source")


def decode_search_response(
    payload: Mapping[str, Any], hit_type: Any = dict, resolver: AggregationResolver | None = None
) -> SearchResponse:
    """
    Decode the response of a search

    :param payload: The parsed json response
    :param hit_type: The type to validate the _source of the hits into
    :param resolver: The resolver of the request; needed if the response has aggregations
    """
    aggregations = None
    if payload.get("aggregations") is not None:
        aggregations = (resolver or AggregationResolver()).decode(payload["aggregations"], hit_type)
    try:
        return SearchResponse.model_validate(
            {**payload, "hits": decode_hits(payload.get("hits"), hit_type), "aggregations": aggregations}
        )
    except ValidationError as e:
        raise InvalidResponse(f"cannot decode search response: {e}") from e


def decode_get_response(payload: Mapping[str, Any], hit_type: Any = dict) -> GetResponse:
    data = dict(payload)
    try:
        if data.get("_source") is not None:
            data["_source"] = TypeAdapter(hit_type).validate_python(data["_source"])
        return GetResponse.model_validate(data)
    except ValidationError as e:
        raise InvalidResponse(f"cannot decode document {data.get('_id')}: {e}") from e
