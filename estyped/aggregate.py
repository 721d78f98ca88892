"""
Aggregate queries

Aggregation requests are named variants with an implicit tag, with optional sub-aggregations next to the kind:
    {"by_category": {"terms": {"field": "category"}, "aggs": {"avg_price": {"avg": {"field": "price"}}}}}

The response of an aggregation has no tag, e.g. {"by_category": {"buckets": [...]}}, and several kinds share the
same fields. So responses are decoded with an AggregationResolver built from the request, which knows the kind
(and the sub-aggregations) of every aggregation name.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Iterable, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily, decode_named, encode_named, malformed
from estyped.errors import InvalidResponse, UnresolvedAggregationKind
from estyped.hits import HitsContainer, decode_hits

AGGREGATIONS = VariantFamily("aggregation", tag=None, named=True, siblings=("aggs", "aggregations", "meta"))

######################## RESPONSES #########################


class AggregationResponse(BaseModel):
    """The result of a single aggregation. Fields that are not modelled (e.g. value_as_string) are kept as extras."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    meta: dict[str, Any] | None = None

    @classmethod
    def decode(cls, name: str, raw: dict[str, Any], child: "AggregationResolver", hit_type: Any) -> Self:
        return cls.model_validate({**raw, "name": name})


class SingleValueResponse(AggregationResponse):
    value: float | None = None
    value_as_string: str | None = None


class StatsResponse(AggregationResponse):
    count: int
    min: float | None = None
    max: float | None = None
    avg: float | None = None
    sum: float | None = None


class StdDeviationBounds(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    upper: float | None = None
    lower: float | None = None
    upper_population: float | None = None
    lower_population: float | None = None
    upper_sampling: float | None = None
    lower_sampling: float | None = None


class ExtendedStatsResponse(StatsResponse):
    sum_of_squares: float | None = None
    variance: float | None = None
    variance_population: float | None = None
    variance_sampling: float | None = None
    std_deviation: float | None = None
    std_deviation_population: float | None = None
    std_deviation_sampling: float | None = None
    std_deviation_bounds: StdDeviationBounds | None = None


class Bucket(BaseModel):
    """A bucket of a bucket aggregation. Sub-aggregations are decoded into 'aggregations'."""

    model_config = ConfigDict(frozen=True, extra="allow")

    key: Any
    key_as_string: str | None = None
    doc_count: int
    aggregations: dict[str, AggregationResponse] = {}

    @classmethod
    def decode(cls, raw: Mapping[str, Any], child: "AggregationResolver", hit_type: Any) -> Self:
        own = {k: v for k, v in raw.items() if k in cls.model_fields and k != "aggregations"}
        nested = {k: v for k, v in raw.items() if k not in own}
        return cls.model_validate({**own, "aggregations": child.decode(nested, hit_type)})


class HistogramBucket(Bucket):
    key: float


class DateHistogramBucket(Bucket):
    key: int

    @property
    def date(self) -> datetime:
        """The start of the bucket; the key is in milliseconds since the epoch"""
        return datetime.fromtimestamp(self.key / 1000.0, tz=timezone.utc)


class TermsBucket(Bucket):
    key: str | int | float | bool
    doc_count_error_upper_bound: int | None = None


def _decode_buckets(bucket_type: type[Bucket], raw: Any, child: "AggregationResolver", hit_type: Any) -> list:
    if isinstance(raw, Mapping):
        # keyed=true returns the buckets as an object
        raw = [{"key": key, **bucket} if "key" not in bucket else bucket for key, bucket in raw.items()]
    return [bucket_type.decode(bucket, child, hit_type) for bucket in raw or []]


class _BucketsResponse(AggregationResponse):
    bucket_type: ClassVar[type[Bucket]] = Bucket

    @classmethod
    def decode(cls, name: str, raw: dict[str, Any], child: "AggregationResolver", hit_type: Any) -> Self:
        buckets = _decode_buckets(cls.bucket_type, raw.get("buckets"), child, hit_type)
        return cls.model_validate({**raw, "name": name, "buckets": buckets})


class HistogramResponse(_BucketsResponse):
    bucket_type = HistogramBucket

    buckets: list[HistogramBucket] = []


class DateHistogramResponse(_BucketsResponse):
    bucket_type = DateHistogramBucket

    buckets: list[DateHistogramBucket] = []


class TermsResponse(_BucketsResponse):
    bucket_type = TermsBucket

    doc_count_error_upper_bound: int | None = None
    sum_other_doc_count: int | None = None
    buckets: list[TermsBucket] = []


class TopHitsResponse(AggregationResponse):
    hits: HitsContainer

    @classmethod
    def decode(cls, name: str, raw: dict[str, Any], child: "AggregationResolver", hit_type: Any) -> Self:
        return cls.model_validate({**raw, "name": name, "hits": decode_hits(raw.get("hits"), hit_type)})


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class GeoBounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    top_left: GeoPoint
    bottom_right: GeoPoint


class GeoBoundsResponse(AggregationResponse):
    bounds: GeoBounds | None = None


class GeoCentroidResponse(AggregationResponse):
    location: GeoPoint | None = None
    count: int = 0


######################## REQUESTS #########################


def named_aggregations(
    aggs: "Iterable[Aggregation] | Mapping[str, Aggregation] | None",
) -> dict[str, "Aggregation"]:
    """Turn a list or mapping of aggregations into a name -> aggregation dict"""
    if aggs is None:
        return {}
    if isinstance(aggs, Mapping):
        return {key: agg if agg.name == key else agg.model_copy(update={"name": key}) for key, agg in aggs.items()}
    result = {}
    for agg in aggs:
        if agg.name is None:
            raise ValueError(f"Aggregation {agg!r} needs a name")
        if agg.name in result:
            raise ValueError(f"Duplicate aggregation name: {agg.name}")
        result[agg.name] = agg
    return result


class Aggregation(Variant):
    """
    Base class for aggregation requests

    :param name: The name of the aggregation, used as key in the request and the response
    :param aggs: Sub-aggregations, as a list of named aggregations or a name -> aggregation dict
    :param meta: Metadata that the server will return with the response
    """

    family = AGGREGATIONS
    response: ClassVar[type[AggregationResponse] | None] = None

    aggs: dict[str, "Aggregation"] | None = Field(default=None, exclude=True)
    meta: dict[str, Any] | None = Field(default=None, exclude=True)

    @field_validator("aggs", mode="before")
    @classmethod
    def _name_aggs(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, Mapping) and not all(isinstance(v, Aggregation) for v in value.values()):
            return value
        return named_aggregations(value) or None

    def encode(self) -> dict[str, Any]:
        result: dict[str, Any] = {self.kind: self.payload()}
        if self.aggs:
            result["aggs"] = encode_named(self.aggs)
        if self.meta:
            result["meta"] = self.meta
        return result

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        siblings = siblings or {}
        data = dict(body)
        nested = siblings.get("aggs", siblings.get("aggregations"))
        if nested is not None:
            data["aggs"] = decode_named(AGGREGATIONS, nested, context=context, path=f"{path}.aggs")
        if siblings.get("meta") is not None:
            data["meta"] = siblings["meta"]
        return super().decode(data, name=name, context=context, path=path)


class _Metric(Aggregation):
    response = SingleValueResponse

    field: str | None = None
    script: Any = None
    missing: Any = None
    format: str | None = None


@AGGREGATIONS.register
class Avg(_Metric):
    kind = "avg"


@AGGREGATIONS.register
class Sum(_Metric):
    kind = "sum"


@AGGREGATIONS.register
class Min(_Metric):
    kind = "min"


@AGGREGATIONS.register
class Max(_Metric):
    kind = "max"


@AGGREGATIONS.register
class ValueCount(_Metric):
    kind = "value_count"


@AGGREGATIONS.register
class Cardinality(_Metric):
    """Approximate count of distinct values"""

    kind = "cardinality"

    precision_threshold: int | None = None


@AGGREGATIONS.register
class Stats(_Metric):
    kind = "stats"
    response = StatsResponse


@AGGREGATIONS.register
class ExtendedStats(_Metric):
    kind = "extended_stats"
    response = ExtendedStatsResponse

    sigma: float | None = None


@AGGREGATIONS.register
class Histogram(Aggregation):
    kind = "histogram"
    response = HistogramResponse

    field: str | None = None
    script: Any = None
    interval: float
    offset: float | None = None
    min_doc_count: int | None = None
    extended_bounds: dict[str, float] | None = None
    hard_bounds: dict[str, float] | None = None
    missing: Any = None
    keyed: bool | None = None
    order: dict[str, str] | list[dict[str, str]] | None = None


@AGGREGATIONS.register
class DateHistogram(Aggregation):
    kind = "date_histogram"
    response = DateHistogramResponse

    field: str | None = None
    script: Any = None
    calendar_interval: str | None = None
    fixed_interval: str | None = None
    format: str | None = None
    time_zone: str | None = None
    offset: str | None = None
    min_doc_count: int | None = None
    extended_bounds: dict[str, Any] | None = None
    missing: Any = None
    keyed: bool | None = None
    order: dict[str, str] | list[dict[str, str]] | None = None

    @model_validator(mode="after")
    def validate_interval(self) -> Self:
        if (self.calendar_interval is None) == (self.fixed_interval is None):
            raise ValueError("Specify exactly one of calendar_interval and fixed_interval")
        return self


@AGGREGATIONS.register
class Terms(Aggregation):
    kind = "terms"
    response = TermsResponse

    field: str | None = None
    script: Any = None
    size: int | None = None
    shard_size: int | None = None
    min_doc_count: int | None = None
    missing: Any = None
    order: dict[str, str] | list[dict[str, str]] | None = None
    include: str | list[str] | None = None
    exclude: str | list[str] | None = None
    collect_mode: Literal["depth_first", "breadth_first"] | None = None
    show_term_doc_count_error: bool | None = None


@AGGREGATIONS.register
class TopHits(Aggregation):
    """The best matching documents per bucket; decoded into the hit type of the search"""

    kind = "top_hits"
    response = TopHitsResponse

    size: int | None = None
    from_: int | None = Field(default=None, alias="from")
    sort: list[Any] | None = None
    source: Any = Field(default=None, alias="_source")


@AGGREGATIONS.register
class GeoBoundsAggregation(Aggregation):
    kind = "geo_bounds"
    response = GeoBoundsResponse

    field: str
    wrap_longitude: bool | None = None


@AGGREGATIONS.register
class GeoCentroidAggregation(Aggregation):
    kind = "geo_centroid"
    response = GeoCentroidResponse

    field: str


def aggregation_dsl(aggs: Iterable[Aggregation] | Mapping[str, Aggregation]) -> dict[str, Any]:
    """Get the aggregation DSL dict for a list of aggregations"""
    return encode_named(named_aggregations(aggs))


def decode_aggregations(payload: Any, path: str = "aggs") -> dict[str, Aggregation]:
    return decode_named(AGGREGATIONS, payload, path=path)  # type: ignore[return-value]


######################## RESOLVER #########################


class AggregationResolver:
    """
    Side table of aggregation name -> (kind, resolver of the sub-aggregations), built from the request.
    Used to decode the untagged aggregation responses.
    """

    def __init__(self, kinds: Mapping[str, tuple[str, "AggregationResolver"]] | None = None):
        self._kinds = dict(kinds or {})

    @classmethod
    def from_aggregations(cls, aggs: Iterable[Aggregation] | Mapping[str, Aggregation] | None) -> "AggregationResolver":
        table = named_aggregations(aggs)
        return cls({name: (agg.kind, cls.from_aggregations(agg.aggs)) for name, agg in table.items()})

    def __repr__(self):
        return f"<AggregationResolver {self.kinds()}>"

    def __contains__(self, name: str) -> bool:
        return name in self._kinds

    def kinds(self) -> dict[str, str]:
        return {name: kind for name, (kind, _) in self._kinds.items()}

    def kind(self, name: str) -> str:
        if name not in self._kinds:
            raise UnresolvedAggregationKind(name)
        return self._kinds[name][0]

    def child(self, name: str) -> "AggregationResolver":
        if name not in self._kinds:
            raise UnresolvedAggregationKind(name)
        return self._kinds[name][1]

    def decode(self, raw: Mapping[str, Any] | None, hit_type: Any = dict) -> dict[str, AggregationResponse]:
        """
        Decode the aggregations element of a response (or the sub-aggregations of a bucket)

        :param raw: The name -> response mapping
        :param hit_type: The type to decode the _source of top_hits documents into
        """
        return {name: self.decode_one(name, payload, hit_type) for name, payload in (raw or {}).items()}

    def decode_one(self, name: str, payload: Any, hit_type: Any = dict) -> AggregationResponse:
        kind = self.kind(name)
        if kind not in AGGREGATIONS or AGGREGATIONS.lookup(kind).response is None:
            raise UnresolvedAggregationKind(name, kind)
        response_type = AGGREGATIONS.lookup(kind).response
        if not isinstance(payload, Mapping):
            raise InvalidResponse(f"aggregation '{name}' should be an object, got {type(payload).__name__}")
        try:
            return response_type.decode(name, dict(payload), self.child(name), hit_type)
        except ValidationError as e:
            raise malformed(kind, f"aggregations.{name}", e) from e
