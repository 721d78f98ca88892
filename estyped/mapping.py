"""
Field mappings: the types of the fields of an index

Mappings use the explicit 'type' tag. Unlike analysis components they are always written as objects,
but the bare type name (e.g. "keyword") is accepted when decoding. Fields without type but with properties
are objects, as returned by the server.

Text, keyword, token_count and completion fields can refer to analyzers or normalizers. These are written by
name; Index.create_body collects the referred definitions into the analysis block of the index.

See https://www.elastic.co/guide/en/elasticsearch/reference/current/mapping-types.html
"""

from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from typing_extensions import Self

from estyped.analysis.analyzers import ANALYZERS, Analyzer
from estyped.analysis.normalizers import NORMALIZERS, Normalizer
from estyped.codec import Variant, VariantFamily, decode_named, encode_named, resolve_reference

MAPPINGS = VariantFamily("mapping", default_kind="object")

Dynamic = bool | Literal["strict", "runtime", "true", "false"]


class FieldMapping(Variant):
    family = MAPPINGS

    def dependencies(self) -> list[Variant]:
        return []


def _nested_dependencies(fields: Mapping[str, FieldMapping] | None) -> list[Variant]:
    return [dependency for field in (fields or {}).values() for dependency in field.dependencies()]


def _decode_fields(body: dict[str, Any], key: str, context, path: str) -> None:
    if body.get(key) is not None:
        body[key] = decode_named(MAPPINGS, body[key], context=context, path=f"{path}.{key}")


def _decode_reference(body: dict[str, Any], key: str, family: VariantFamily, context, path: str) -> None:
    if body.get(key) is not None:
        body[key] = resolve_reference(family, body[key], context, f"{path}.{key}")


class _Stored(FieldMapping):
    index: bool | None = None
    store: bool | None = None
    doc_values: bool | None = None
    copy_to: list[str] | str | None = None
    meta: dict[str, str] | None = None


class _Numeric(_Stored):
    coerce: bool | None = None
    ignore_malformed: bool | None = None
    null_value: float | None = None
    boost: float | None = None


class _Range(FieldMapping):
    coerce: bool | None = None
    index: bool | None = None
    store: bool | None = None
    boost: float | None = None


class _MultiFields(_Stored):
    fields: dict[str, FieldMapping] | None = None

    @field_serializer("fields")
    def _encode_fields(self, value: dict[str, FieldMapping] | None) -> dict[str, Any] | None:
        return None if value is None else encode_named(value)


######################## STRING FIELDS #########################


@MAPPINGS.register
class MapText(_MultiFields):
    kind = "text"

    analyzer: Analyzer | None = None
    search_analyzer: Analyzer | None = None
    search_quote_analyzer: Analyzer | None = None
    eager_global_ordinals: bool | None = None
    fielddata: bool | None = None
    index_options: Literal["docs", "freqs", "positions", "offsets"] | None = None
    index_phrases: bool | None = None
    norms: bool | None = None
    position_increment_gap: int | None = None
    similarity: str | None = None
    term_vector: str | None = None
    boost: float | None = None

    @field_serializer("analyzer", "search_analyzer", "search_quote_analyzer")
    def _analyzer_name(self, value: Analyzer | None) -> str | None:
        return None if value is None else value.name

    def dependencies(self) -> list[Variant]:
        analyzers = [self.analyzer, self.search_analyzer, self.search_quote_analyzer]
        return [a for a in analyzers if a is not None] + _nested_dependencies(self.fields)

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        for key in ("analyzer", "search_analyzer", "search_quote_analyzer"):
            _decode_reference(data, key, ANALYZERS, context, path)
        _decode_fields(data, "fields", context, path)
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)


@MAPPINGS.register
class MapMatchOnlyText(FieldMapping):
    kind = "match_only_text"

    meta: dict[str, str] | None = None


@MAPPINGS.register
class MapKeyword(_MultiFields):
    kind = "keyword"

    normalizer: Normalizer | None = None
    eager_global_ordinals: bool | None = None
    ignore_above: int | None = None
    index_options: Literal["docs", "freqs"] | None = None
    norms: bool | None = None
    null_value: str | None = None
    similarity: str | None = None
    split_queries_on_whitespace: bool | None = None
    boost: float | None = None

    @field_serializer("normalizer")
    def _normalizer_name(self, value: Normalizer | None) -> str | None:
        return None if value is None else value.name

    def dependencies(self) -> list[Variant]:
        return ([self.normalizer] if self.normalizer is not None else []) + _nested_dependencies(self.fields)

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        _decode_reference(data, "normalizer", NORMALIZERS, context, path)
        _decode_fields(data, "fields", context, path)
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)


@MAPPINGS.register
class MapBinary(FieldMapping):
    kind = "binary"

    doc_values: bool | None = None
    store: bool | None = None


@MAPPINGS.register
class MapBoolean(_Stored):
    kind = "boolean"

    boost: float | None = None
    null_value: bool | None = None


######################## NUMERIC FIELDS #########################


@MAPPINGS.register
class MapByte(_Numeric):
    kind = "byte"

    null_value: int | None = None


@MAPPINGS.register
class MapShort(_Numeric):
    kind = "short"

    null_value: int | None = None


@MAPPINGS.register
class MapInteger(_Numeric):
    kind = "integer"

    null_value: int | None = None


@MAPPINGS.register
class MapLong(_Numeric):
    kind = "long"

    null_value: int | None = None


@MAPPINGS.register
class MapUnsignedLong(_Numeric):
    kind = "unsigned_long"

    null_value: int | None = None


@MAPPINGS.register
class MapFloat(_Numeric):
    kind = "float"


@MAPPINGS.register
class MapHalfFloat(_Numeric):
    kind = "half_float"


@MAPPINGS.register
class MapDouble(_Numeric):
    kind = "double"


@MAPPINGS.register
class MapScaledFloat(_Numeric):
    kind = "scaled_float"

    scaling_factor: float


######################## DATE FIELDS #########################


@MAPPINGS.register
class MapDate(_Stored):
    kind = "date"

    format: str | None = None
    locale: str | None = None
    ignore_malformed: bool | None = None
    null_value: str | None = None
    boost: float | None = None


@MAPPINGS.register
class MapDateNanos(_Stored):
    kind = "date_nanos"

    format: str | None = None
    ignore_malformed: bool | None = None
    null_value: str | None = None


######################## RANGE FIELDS #########################


@MAPPINGS.register
class MapIntegerRange(_Range):
    kind = "integer_range"


@MAPPINGS.register
class MapFloatRange(_Range):
    kind = "float_range"


@MAPPINGS.register
class MapLongRange(_Range):
    kind = "long_range"


@MAPPINGS.register
class MapDoubleRange(_Range):
    kind = "double_range"


@MAPPINGS.register
class MapDateRange(_Range):
    kind = "date_range"

    format: str | None = None


@MAPPINGS.register
class MapIPRange(_Range):
    kind = "ip_range"


######################## OTHER FLAT FIELDS #########################


@MAPPINGS.register
class MapIPAddress(_Stored):
    kind = "ip"

    ignore_malformed: bool | None = None
    null_value: str | None = None
    boost: float | None = None


@MAPPINGS.register
class MapGeoPoint(FieldMapping):
    kind = "geo_point"

    ignore_malformed: bool | None = None
    ignore_z_value: bool | None = None
    null_value: Any = None


@MAPPINGS.register
class MapGeoShape(FieldMapping):
    kind = "geo_shape"

    orientation: Literal["right", "ccw", "counterclockwise", "left", "cw", "clockwise"] | None = None
    ignore_malformed: bool | None = None
    ignore_z_value: bool | None = None
    coerce: bool | None = None


@MAPPINGS.register
class MapTokenCount(_Stored):
    """Counts the tokens the analyzer produces for the value"""

    kind = "token_count"

    analyzer: Analyzer
    enable_position_increments: bool | None = None
    null_value: int | None = None
    boost: float | None = None

    @field_serializer("analyzer")
    def _analyzer_name(self, value: Analyzer) -> str | None:
        return value.name

    def dependencies(self) -> list[Variant]:
        return [self.analyzer]

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        _decode_reference(data, "analyzer", ANALYZERS, context, path)
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)


@MAPPINGS.register
class MapCompletion(FieldMapping):
    kind = "completion"

    analyzer: Analyzer | None = None
    search_analyzer: Analyzer | None = None
    preserve_separators: bool | None = None
    preserve_position_increments: bool | None = None
    max_input_length: int | None = None

    @field_serializer("analyzer", "search_analyzer")
    def _analyzer_name(self, value: Analyzer | None) -> str | None:
        return None if value is None else value.name

    def dependencies(self) -> list[Variant]:
        return [a for a in (self.analyzer, self.search_analyzer) if a is not None]

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        for key in ("analyzer", "search_analyzer"):
            _decode_reference(data, key, ANALYZERS, context, path)
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)


@MAPPINGS.register
class MapJoin(FieldMapping):
    """Parent/child relations within an index, e.g. relations={"question": ["answer", "comment"]}"""

    kind = "join"

    relations: dict[str, list[str] | str]
    eager_global_ordinals: bool | None = None


@MAPPINGS.register
class MapPercolator(FieldMapping):
    kind = "percolator"


@MAPPINGS.register
class MapFlattened(FieldMapping):
    kind = "flattened"

    depth_limit: int | None = None
    doc_values: bool | None = None
    eager_global_ordinals: bool | None = None
    ignore_above: int | None = None
    index: bool | None = None
    null_value: str | None = None


@MAPPINGS.register
class MapDenseVector(FieldMapping):
    kind = "dense_vector"

    dims: int | None = None
    element_type: Literal["float", "byte", "bit"] | None = None
    index: bool | None = None
    similarity: Literal["l2_norm", "dot_product", "cosine", "max_inner_product"] | None = None


######################## OBJECT FIELDS #########################


class _Properties(FieldMapping):
    properties: dict[str, FieldMapping] | None = None
    dynamic: Dynamic | None = None
    enabled: bool | None = None

    @field_serializer("properties")
    def _encode_properties(self, value: dict[str, FieldMapping] | None) -> dict[str, Any] | None:
        return None if value is None else encode_named(value)

    def dependencies(self) -> list[Variant]:
        return _nested_dependencies(self.properties)

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        _decode_fields(data, "properties", context, path)
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)


@MAPPINGS.register
class MapObject(_Properties):
    """A field containing a json object (not an array of objects, see MapNested)"""

    kind = "object"


@MAPPINGS.register
class MapNested(_Properties):
    """A field containing an array of objects that should be queried independently"""

    kind = "nested"

    include_in_parent: bool | None = None
    include_in_root: bool | None = None


# Helper functions to create object and nested fields without too much boilerplate


def object_field(**properties: FieldMapping) -> MapObject:
    return MapObject(dynamic="strict", properties=properties)


def nested_field(**properties: FieldMapping) -> MapNested:
    return MapNested(dynamic="strict", properties=properties)


class Mappings(BaseModel):
    """
    The mappings of an index: its fields (properties) and the handling of unmapped fields.
    Other top level elements (_source, _routing, dynamic_templates, ...) are kept as they are in options.
    The _meta element is managed by Index, see estyped.index.
    """

    model_config = ConfigDict(frozen=True)

    properties: dict[str, FieldMapping] = Field(default_factory=dict)
    dynamic: Dynamic | None = None
    enabled: bool | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    def dependencies(self) -> list[Variant]:
        return _nested_dependencies(self.properties)

    def encode(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.dynamic is not None:
            body["dynamic"] = self.dynamic
        if self.enabled is not None:
            body["enabled"] = self.enabled
        body.update(self.options)
        body["properties"] = encode_named(self.properties)
        return body

    @classmethod
    def decode(cls, body: Mapping[str, Any] | None, context=None, path: str = "mappings") -> "Mappings":
        body = body or {}
        options = {k: v for k, v in body.items() if k not in ("properties", "dynamic", "enabled")}
        properties = decode_named(MAPPINGS, body.get("properties", {}), context=context, path=f"{path}.properties")
        return cls(properties=properties, dynamic=body.get("dynamic"), enabled=body.get("enabled"), options=options)
