"""
All things query

Query nodes are variants with an implicit tag: {"match": {"title": {"query": "x"}}}.
Field level queries (match, term, range, ...) are written as {kind: {field: {options}}}, and also accept the
short form {kind: {field: value}} when decoding.
"""

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, field_serializer
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily, decode_variant
from estyped.errors import MalformedVariant

QUERIES = VariantFamily("query", tag=None)


class Query(Variant):
    family = QUERIES


class FieldQuery(Query):
    """A query on a single field. value_key is the option used for the short form {kind: {field: value}}"""

    value_key: ClassVar[str | None] = None

    field: str

    def encode(self) -> dict[str, Any]:
        body = self.payload()
        field = body.pop("field")
        return {self.kind: {field: body}}

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        fields = list(body)
        if len(fields) != 1:
            raise MalformedVariant(cls.kind, path, f"expected a single field, got {fields}")
        field = fields[0]
        options = body[field]
        if not isinstance(options, dict):
            if cls.value_key is None:
                raise MalformedVariant(cls.kind, f"{path}.{field}", "expected an object")
            options = {cls.value_key: options}
        return cls.validate_payload({**options, "field": field}, path)


@QUERIES.register
class MatchAll(Query):
    kind = "match_all"

    boost: float | None = None


@QUERIES.register
class MatchNone(Query):
    kind = "match_none"


@QUERIES.register
class Match(FieldQuery):
    kind = "match"
    value_key = "query"

    query: str | int | float | bool
    operator: Literal["or", "and", "OR", "AND"] | None = None
    fuzziness: str | int | None = None
    analyzer: str | None = None
    minimum_should_match: str | int | None = None
    zero_terms_query: Literal["none", "all"] | None = None
    boost: float | None = None


@QUERIES.register
class MatchPhrase(FieldQuery):
    kind = "match_phrase"
    value_key = "query"

    query: str
    slop: int | None = None
    analyzer: str | None = None
    boost: float | None = None


@QUERIES.register
class Term(FieldQuery):
    kind = "term"
    value_key = "value"

    value: str | int | float | bool
    case_insensitive: bool | None = None
    boost: float | None = None


@QUERIES.register
class Prefix(FieldQuery):
    kind = "prefix"
    value_key = "value"

    value: str
    case_insensitive: bool | None = None
    boost: float | None = None


@QUERIES.register
class Wildcard(FieldQuery):
    kind = "wildcard"
    value_key = "value"

    value: str
    case_insensitive: bool | None = None
    boost: float | None = None


@QUERIES.register
class Range(FieldQuery):
    kind = "range"

    gt: Any = None
    gte: Any = None
    lt: Any = None
    lte: Any = None
    format: str | None = None
    time_zone: str | None = None
    relation: Literal["INTERSECTS", "CONTAINS", "WITHIN"] | None = None
    boost: float | None = None


@QUERIES.register
class Terms(Query):
    """Documents where the field has one or more of the values: {"terms": {field: [values], "boost": ...}}"""

    kind = "terms"

    field: str
    values: list[str | int | float | bool]
    boost: float | None = None

    def encode(self) -> dict[str, Any]:
        body: dict[str, Any] = {self.field: list(self.values)}
        if self.boost is not None:
            body["boost"] = self.boost
        return {self.kind: body}

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        options = {k: v for k, v in body.items() if k in ("boost", "_name")}
        fields = [k for k in body if k not in options]
        if len(fields) != 1:
            raise MalformedVariant(cls.kind, path, f"expected a single field, got {fields}")
        return cls.validate_payload({**options, "field": fields[0], "values": body[fields[0]]}, path)


@QUERIES.register
class Exists(Query):
    kind = "exists"

    field: str


@QUERIES.register
class Ids(Query):
    kind = "ids"

    values: list[str]


@QUERIES.register
class QueryString(Query):
    """A query in the lucene query syntax, e.g. 'title:(quick OR brown) AND fox'"""

    kind = "query_string"

    query: str
    default_field: str | None = None
    fields: list[str] | None = None
    default_operator: Literal["OR", "AND"] | None = None
    analyzer: str | None = None
    analyze_wildcard: bool | None = None
    boost: float | None = None


@QUERIES.register
class MultiMatch(Query):
    kind = "multi_match"

    query: str
    fields: list[str] | None = None
    type: Literal["best_fields", "most_fields", "cross_fields", "phrase", "phrase_prefix", "bool_prefix"] | None = None
    operator: Literal["or", "and", "OR", "AND"] | None = None
    tie_breaker: float | None = None
    boost: float | None = None


def _decode_clauses(value: Any, context, path: str) -> list[Query] | None:
    if value is None:
        return None
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        raise MalformedVariant(Bool.kind, path, f"expected a list of queries, got {type(value).__name__}")
    return [decode_variant(QUERIES, clause, context=context, path=f"{path}.{i}") for i, clause in enumerate(value)]


@QUERIES.register
class Bool(Query):
    """Combination of queries: must and filter clauses must match, must_not clauses must not match"""

    kind = "bool"

    must: list[Query] | None = None
    should: list[Query] | None = None
    must_not: list[Query] | None = None
    filter: list[Query] | None = None
    minimum_should_match: str | int | None = None
    boost: float | None = None

    @field_serializer("must", "should", "must_not", "filter")
    def _encode_clauses(self, value: list[Query] | None) -> list[Any] | None:
        return None if value is None else [clause.encode() for clause in value]

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        for key in ("must", "should", "must_not", "filter"):
            if key in data:
                data[key] = _decode_clauses(data[key], context, f"{path}.{key}")
        return cls.validate_payload(data, path)


def decode_query(payload: Any, path: str = "query") -> Query:
    return decode_variant(QUERIES, payload, path=path)


class FilterSpec(BaseModel):
    """Form for filter specification."""

    values: list[str | int | float | bool] | None = None
    value: str | int | float | bool | None = None
    gt: Any = None
    lt: Any = None
    gte: Any = None
    lte: Any = None
    exists: bool | None = None


def build_query(
    queries: dict[str, str] | list[str] | None = None,
    filters: dict[str, FilterSpec] | None = None,
    ids: list[str] | None = None,
) -> Query:
    """
    Build a query from query strings, field filters and document ids.

    :param queries: if not None, query strings (or a dict of label: query string); documents match any of them
    :param filters: if not None, a dict where the key is the field and the value is a FilterSpec
    :param ids: if not None, only match the documents with these ids
    """

    def parse_filter(field: str, spec: FilterSpec) -> Query:
        field_filters: list[Query] = []
        for value in spec.values or []:
            field_filters.append(Term(field=field, value=value))
        if spec.value is not None:
            field_filters.append(Term(field=field, value=spec.value))
        if spec.exists is not None:
            if spec.exists:
                field_filters.append(Exists(field=field))
            else:
                field_filters.append(Bool(must_not=[Exists(field=field)]))
        ranges = {k: getattr(spec, k) for k in ("gt", "gte", "lt", "lte") if getattr(spec, k) is not None}
        if ranges:
            field_filters.append(Range(field=field, **ranges))
        return Bool(should=field_filters)

    if not (queries or filters or ids):
        return MatchAll()

    if isinstance(queries, dict):
        queries = list(queries.values())

    clauses: list[Query] = [parse_filter(field, spec) for field, spec in (filters or {}).items()]
    if queries:
        if len(queries) == 1:
            clauses.append(QueryString(query=queries[0]))
        else:
            clauses.append(Bool(should=[QueryString(query=q) for q in queries]))
    if ids:
        clauses.append(Ids(values=list(ids)))
    return Bool(filter=clauses)
