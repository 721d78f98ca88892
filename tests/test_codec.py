import json

import pytest
from pydantic import ValidationError
from pytest import raises

from estyped.analysis import (
    ANALYZERS,
    TOKEN_FILTERS,
    TOKENIZERS,
    KeywordAnalyzer,
    NGramTokenizer,
    StandardAnalyzer,
    StandardTokenizer,
    StopFilter,
    WhitespaceAnalyzer,
)
from estyped.analysis.filters import ASCIIFoldingFilter, LowercaseFilter, StemmerFilter, StemmerLanguage
from estyped.codec import Variant, VariantFamily, decode_named, decode_variant, encode_named, encode_variant
from estyped.errors import MalformedVariant, UnknownVariantKind
from tests.tools import roundtrip


@pytest.mark.parametrize(
    "family,variant",
    [
        (ANALYZERS, StandardAnalyzer()),
        (ANALYZERS, KeywordAnalyzer()),
        (ANALYZERS, WhitespaceAnalyzer()),
        (TOKENIZERS, StandardTokenizer()),
        (TOKEN_FILTERS, LowercaseFilter()),
        (TOKEN_FILTERS, ASCIIFoldingFilter()),
    ],
)
def test_builtin_is_bare_string(family, variant):
    assert variant.is_builtin_default()
    assert encode_variant(variant) == variant.kind
    assert decode_variant(family, variant.kind) == variant


def test_override_is_object():
    analyzer = StandardAnalyzer(name="std_english", stopwords="_english_", max_token_length=100)
    assert analyzer.encode() == {"type": "standard", "stopwords": "_english_", "max_token_length": 100}
    assert roundtrip(ANALYZERS, analyzer) == analyzer

    tokenizer = NGramTokenizer(name="trigrams", min_gram=3, max_gram=3)
    assert tokenizer.encode() == {"type": "ngram", "min_gram": 3, "max_gram": 3}
    assert roundtrip(TOKENIZERS, tokenizer) == tokenizer


def test_configured_builtin_needs_a_name():
    with raises(ValidationError):
        StandardAnalyzer(stopwords="_english_")
    with raises(ValidationError):
        StandardAnalyzer(name="standard", stopwords="_english_")
    with raises(MalformedVariant):
        decode_variant(ANALYZERS, {"type": "standard", "stopwords": "_english_"}, name="standard")


def test_builtin_under_other_name():
    # an unconfigured builtin stored under another name is a definition in its own right
    analyzer = StandardAnalyzer(name="my_standard")
    assert not analyzer.is_builtin_default()
    assert analyzer.encode() == {"type": "standard"}


def test_decode_object_without_overrides():
    assert decode_variant(ANALYZERS, {"type": "standard"}) == StandardAnalyzer()


def test_unknown_fields_survive():
    raw = {"type": "stop", "stopwords": ["de", "het"], "ignore_case": True, "some_future_option": 3}
    stop = decode_variant(TOKEN_FILTERS, raw, name="dutch_stop")
    assert stop.name == "dutch_stop"
    assert stop.encode() == raw


def test_unknown_kind():
    with raises(UnknownVariantKind) as e:
        decode_variant(ANALYZERS, {"type": "no_such_analyzer"})
    assert e.value.kind == "no_such_analyzer"
    with raises(UnknownVariantKind):
        decode_variant(ANALYZERS, "no_such_analyzer")


def test_malformed():
    with raises(MalformedVariant) as e:
        decode_variant(TOKENIZERS, {"type": "ngram", "min_gram": "three"}, name="trigrams")
    assert e.value.kind == "ngram"
    assert e.value.path == "trigrams.min_gram"

    with raises(MalformedVariant):
        decode_variant(ANALYZERS, {"stopwords": ["a"]})
    with raises(MalformedVariant):
        decode_variant(ANALYZERS, 12)


def test_exclusive_fields():
    with raises(ValidationError):
        StopFilter(name="stop", stopwords=["a"], stopwords_path="stopwords.txt")
    with raises(MalformedVariant):
        decode_variant(TOKEN_FILTERS, {"type": "stop", "stopwords": ["a"], "stopwords_path": "x"}, name="stop")


def test_default_name():
    stemmer = StemmerFilter(language=StemmerLanguage.dutch)
    assert stemmer.name == "stemmer_dutch"
    assert stemmer.encode() == {"type": "stemmer", "language": "dutch"}
    # the server also accepts the language under 'name'
    assert decode_variant(TOKEN_FILTERS, {"type": "stemmer", "name": "dutch"}, name="stemmer_dutch") == stemmer


def test_named_collection():
    filters = {
        "my_stop": StopFilter(name="my_stop", stopwords=["a", "the"]),
        "lowercase": LowercaseFilter(),
        "stemmer_english": StemmerFilter(language="english"),
    }
    encoded = encode_named(filters)
    assert list(encoded) == ["my_stop", "lowercase", "stemmer_english"]
    decoded = decode_named(TOKEN_FILTERS, json.loads(json.dumps(encoded)))
    assert decoded == filters
    assert {name: f.name for name, f in decoded.items()} == {n: n for n in filters}
    # same logical state gives the same bytes
    assert json.dumps(encode_named(decoded)) == json.dumps(encoded)


def test_register():
    widgets = VariantFamily("widget")

    class Widget(Variant):
        family = widgets

    @widgets.register
    class Gear(Widget):
        kind = "gear"
        builtin = True

        teeth: int | None = None

    assert "gear" in widgets
    assert decode_variant(widgets, "gear") == Gear()
    assert decode_variant(widgets, {"type": "gear", "teeth": 12}) == Gear(teeth=12)

    class OtherGear(Widget):
        kind = "gear"

    with raises(ValueError):
        widgets.register(OtherGear)

    class Nameless(Widget):
        pass

    with raises(ValueError):
        widgets.register(Nameless)

    widgets.freeze()

    class Spring(Widget):
        kind = "spring"

    with raises(RuntimeError):
        widgets.register(Spring)
    assert widgets.kinds() == ["gear"]
