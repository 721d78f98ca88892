"""
Tokenizers split a stream of characters into tokens
https://www.elastic.co/guide/en/elasticsearch/reference/current/analysis-tokenizers.html
"""

from typing import Literal

from pydantic import model_validator
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily

TOKENIZERS = VariantFamily("tokenizer", named=True)

TokenChars = Literal["letter", "digit", "whitespace", "punctuation", "symbol", "custom"]


class Tokenizer(Variant):
    family = TOKENIZERS


@TOKENIZERS.register
class StandardTokenizer(Tokenizer):
    """Grammar based tokenization (Unicode Text Segmentation)"""

    kind = "standard"
    builtin = True

    max_token_length: int | None = None


@TOKENIZERS.register
class LetterTokenizer(Tokenizer):
    kind = "letter"
    builtin = True


@TOKENIZERS.register
class LowercaseTokenizer(Tokenizer):
    kind = "lowercase"
    builtin = True


@TOKENIZERS.register
class WhitespaceTokenizer(Tokenizer):
    kind = "whitespace"
    builtin = True

    max_token_length: int | None = None


@TOKENIZERS.register
class UAXURLEmailTokenizer(Tokenizer):
    """Like the standard tokenizer, but keeps URLs and email addresses as single tokens"""

    kind = "uax_url_email"
    builtin = True

    max_token_length: int | None = None


@TOKENIZERS.register
class ClassicTokenizer(Tokenizer):
    kind = "classic"
    builtin = True

    max_token_length: int | None = None


@TOKENIZERS.register
class KeywordTokenizer(Tokenizer):
    """Emits the whole input as a single token"""

    kind = "keyword"
    builtin = True

    buffer_size: int | None = None


@TOKENIZERS.register
class PatternTokenizer(Tokenizer):
    """Splits on matches of a (java) regular expression, by default \\W+"""

    kind = "pattern"
    builtin = True

    pattern: str | None = None
    flags: str | None = None
    group: int | None = None


@TOKENIZERS.register
class SimplePatternTokenizer(Tokenizer):
    kind = "simple_pattern"

    pattern: str


class _NGramTokenizerBase(Tokenizer):
    min_gram: int | None = None
    max_gram: int | None = None
    token_chars: list[TokenChars] | None = None
    custom_token_chars: str | None = None

    @model_validator(mode="after")
    def validate_grams(self) -> Self:
        if self.min_gram is not None and self.max_gram is not None and self.min_gram > self.max_gram:
            raise ValueError(f"min_gram ({self.min_gram}) cannot be larger than max_gram ({self.max_gram})")
        return self


@TOKENIZERS.register
class NGramTokenizer(_NGramTokenizerBase):
    kind = "ngram"
    builtin = True


@TOKENIZERS.register
class EdgeNGramTokenizer(_NGramTokenizerBase):
    kind = "edge_ngram"
    builtin = True


@TOKENIZERS.register
class CharGroupTokenizer(Tokenizer):
    """Splits on any of the given characters or character classes, e.g. ["whitespace", "-"]"""

    kind = "char_group"

    tokenize_on_chars: list[str]
    max_token_length: int | None = None


@TOKENIZERS.register
class PathHierarchyTokenizer(Tokenizer):
    kind = "path_hierarchy"
    builtin = True

    delimiter: str | None = None
    replacement: str | None = None
    buffer_size: int | None = None
    reverse: bool | None = None
    skip: int | None = None
