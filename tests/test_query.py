import json

from pytest import raises

from estyped.codec import decode_variant
from estyped.errors import MalformedVariant, UnknownVariantKind
from estyped.query import (
    QUERIES,
    Bool,
    Exists,
    FilterSpec,
    Ids,
    Match,
    MatchAll,
    MultiMatch,
    QueryString,
    Range,
    Term,
    Terms,
    build_query,
    decode_query,
)


def test_field_queries():
    assert Match(field="title", query="a test").encode() == {"match": {"title": {"query": "a test"}}}
    assert Term(field="tag", value="x", boost=2).encode() == {"term": {"tag": {"value": "x", "boost": 2.0}}}
    assert Range(field="date", gte="2020-01-01", lt="2021-01-01").encode() == {
        "range": {"date": {"gte": "2020-01-01", "lt": "2021-01-01"}}
    }
    assert Terms(field="tag", values=["a", "b"]).encode() == {"terms": {"tag": ["a", "b"]}}


def test_short_form():
    assert decode_query({"match": {"title": "a test"}}) == Match(field="title", query="a test")
    assert decode_query({"term": {"tag": "x"}}) == Term(field="tag", value="x")
    with raises(MalformedVariant):
        decode_query({"range": {"date": "2020"}})
    with raises(MalformedVariant):
        decode_query({"match": {"title": "a", "text": "b"}})


def test_decode_tree():
    raw = {
        "bool": {
            "must": [{"query_string": {"query": "fox AND dog", "default_field": "text"}}],
            "filter": [
                {"terms": {"tag": ["a", "b"], "boost": 1.5}},
                {"exists": {"field": "date"}},
                {"range": {"date": {"gte": "2020-01-01"}}},
            ],
            "must_not": {"ids": {"values": ["1", "2"]}},
        }
    }
    query = decode_query(raw)
    assert query == Bool(
        must=[QueryString(query="fox AND dog", default_field="text")],
        filter=[Terms(field="tag", values=["a", "b"], boost=1.5), Exists(field="date"), Range(field="date", gte="2020-01-01")],
        must_not=[Ids(values=["1", "2"])],
    )
    encoded = json.loads(json.dumps(query.encode()))
    assert encoded["bool"]["must_not"] == [{"ids": {"values": ["1", "2"]}}]
    assert decode_query(encoded) == query


def test_unknown_fields_survive():
    raw = {"multi_match": {"query": "fox", "fields": ["title^2", "text"], "fuzziness": "AUTO"}}
    query = decode_variant(QUERIES, raw)
    assert isinstance(query, MultiMatch)
    assert query.encode() == raw


def test_bad_queries():
    with raises(UnknownVariantKind):
        decode_query({"no_such_query": {}})
    with raises(MalformedVariant):
        decode_query({"match": {"title": "x"}, "term": {"tag": "y"}})
    assert decode_query({"match_all": {}}) == MatchAll()


def test_build_query():
    assert build_query() == MatchAll()
    assert build_query(queries=["fox"]).encode() == {"bool": {"filter": [{"query_string": {"query": "fox"}}]}}
    query = build_query(
        queries={"a": "fox", "b": "dog"},
        filters={"tag": FilterSpec(values=["x", "y"]), "date": FilterSpec(gte="2020-01-01")},
    )
    assert query.encode() == {
        "bool": {
            "filter": [
                {"bool": {"should": [{"term": {"tag": {"value": "x"}}}, {"term": {"tag": {"value": "y"}}}]}},
                {"bool": {"should": [{"range": {"date": {"gte": "2020-01-01"}}}]}},
                {"bool": {"should": [{"query_string": {"query": "fox"}}, {"query_string": {"query": "dog"}}]}},
            ]
        }
    }
    assert build_query(ids=["1"]) == Bool(filter=[Ids(values=["1"])])
    missing = build_query(filters={"date": FilterSpec(exists=False)})
    assert missing.encode() == {"bool": {"filter": [{"bool": {"should": [{"bool": {"must_not": [{"exists": {"field": "date"}}]}}]}}]}}
