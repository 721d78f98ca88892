"""
Search hits, shared by search responses and top_hits aggregations
"""

from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from estyped.errors import InvalidResponse

T = TypeVar("T")


class Hit(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: str | None = Field(default=None, alias="_index")
    id: str | None = Field(default=None, alias="_id")
    score: float | None = Field(default=None, alias="_score")
    routing: str | None = Field(default=None, alias="_routing")
    sort: list[Any] | None = None
    source: T | None = Field(default=None, alias="_source")
    fields: dict[str, Any] | None = None


class TotalHits(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int
    relation: str = "eq"


class HitsContainer(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    total: TotalHits | None = None
    max_score: float | None = None
    hits: list[Hit] = []

    def sources(self) -> list[T]:
        return [hit.source for hit in self.hits if hit.source is not None]


def decode_hit(raw: Mapping[str, Any], adapter: TypeAdapter) -> Hit:
    data = dict(raw)
    if data.get("_source") is not None:
        try:
            data["_source"] = adapter.validate_python(data["_source"])
        except ValidationError as e:
            raise InvalidResponse(f"cannot decode _source of document {data.get('_id')}: {e}") from e
    return Hit.model_validate(data)


def decode_hits(raw: Mapping[str, Any] | None, hit_type: Any = dict) -> HitsContainer:
    """Decode the 'hits' element of a response, validating each _source into hit_type"""
    if raw is None:
        return HitsContainer()
    adapter = TypeAdapter(hit_type)
    total = raw.get("total")
    if isinstance(total, int):
        # track_total_hits with rest_total_hits_as_int
        total = {"value": total}
    return HitsContainer(
        total=total,
        max_score=raw.get("max_score"),
        hits=[decode_hit(hit, adapter) for hit in raw.get("hits", [])],
    )
