"""
Analyzers turn text into tokens: zero or more character filters, one tokenizer and zero or more token filters.

The builtin analyzers (standard, simple, ...) can be used by name. Configured builtins (e.g. a standard analyzer
with a stopword list) and custom analyzers need a name and are written to the analysis block of the index.
https://www.elastic.co/guide/en/elasticsearch/reference/current/analysis-analyzers.html
"""

from typing import Any

from pydantic import field_serializer, model_validator
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily, resolve_reference, resolve_references

from estyped.analysis.char_filters import CHAR_FILTERS, CharacterFilter
from estyped.analysis.filters import TOKEN_FILTERS, Stopwords, TokenFilter, check_exclusive
from estyped.analysis.tokenizers import TOKENIZERS, Tokenizer

ANALYZERS = VariantFamily("analyzer", named=True)


class Analyzer(Variant):
    family = ANALYZERS


class _StopwordsMixin(Analyzer):
    stopwords: Stopwords | None = None
    stopwords_path: str | None = None

    @model_validator(mode="after")
    def validate_stopwords(self) -> Self:
        check_exclusive(self, "stopwords", "stopwords_path")
        return self


@ANALYZERS.register
class StandardAnalyzer(_StopwordsMixin):
    """The default analyzer: grammar based tokenization, lowercased, no stopwords unless configured"""

    kind = "standard"
    builtin = True

    max_token_length: int | None = None


@ANALYZERS.register
class SimpleAnalyzer(Analyzer):
    """Splits on anything that is not a letter, and lowercases"""

    kind = "simple"
    builtin = True


@ANALYZERS.register
class WhitespaceAnalyzer(Analyzer):
    kind = "whitespace"
    builtin = True


@ANALYZERS.register
class StopAnalyzer(_StopwordsMixin):
    """The simple analyzer with stopword removal"""

    kind = "stop"
    builtin = True


@ANALYZERS.register
class KeywordAnalyzer(Analyzer):
    """A noop analyzer that returns the entire input as a single token"""

    kind = "keyword"
    builtin = True


@ANALYZERS.register
class PatternAnalyzer(_StopwordsMixin):
    kind = "pattern"
    builtin = True

    pattern: str | None = None
    flags: str | None = None
    lowercase: bool | None = None


@ANALYZERS.register
class FingerprintAnalyzer(_StopwordsMixin):
    """
    Lowercases, normalizes, sorts, deduplicates and concatenates the input into a single token.
    Useful for clustering (as in OpenRefine).
    """

    kind = "fingerprint"
    builtin = True

    separator: str | None = None
    max_output_size: int | None = None


@ANALYZERS.register
class CustomAnalyzer(Analyzer):
    """
    An analyzer built from a tokenizer, and optionally character filters and token filters.
    The components are written by name; when the analyzer is added to an index, all components that are not
    unconfigured builtins are added to the analysis block of the index as well.
    """

    kind = "custom"

    tokenizer: Tokenizer
    filter: list[TokenFilter] | None = None
    char_filter: list[CharacterFilter] | None = None
    position_increment_gap: int | None = None

    @field_serializer("tokenizer")
    def _tokenizer_name(self, value: Tokenizer) -> str | None:
        return value.name

    @field_serializer("filter", "char_filter")
    def _names(self, value: list[Variant] | None) -> list[str] | None:
        return None if value is None else [v.name for v in value]

    def dependencies(self) -> list[Variant]:
        return [*(self.char_filter or []), self.tokenizer, *(self.filter or [])]

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        if "tokenizer" in data:
            data["tokenizer"] = resolve_reference(TOKENIZERS, data["tokenizer"], context, f"{path}.tokenizer")
        data["filter"] = resolve_references(TOKEN_FILTERS, data.get("filter"), context, f"{path}.filter")
        data["char_filter"] = resolve_references(CHAR_FILTERS, data.get("char_filter"), context, f"{path}.char_filter")
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)
