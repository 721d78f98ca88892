"""
Token filters add, remove or change the tokens produced by a tokenizer
https://www.elastic.co/guide/en/elasticsearch/reference/current/analysis-tokenfilters.html
"""

from enum import Enum
from typing import Any, Literal

from pydantic import model_validator
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily

TOKEN_FILTERS = VariantFamily("filter", named=True)

Stopwords = list[str] | str


def check_exclusive(model: Variant, *fields: str) -> None:
    """Raise a ValueError if more than one of the fields is set"""
    present = [f for f in fields if getattr(model, f) is not None]
    if len(present) > 1:
        raise ValueError(f"{' and '.join(present)} are mutually exclusive")


class TokenFilter(Variant):
    family = TOKEN_FILTERS


@TOKEN_FILTERS.register
class LowercaseFilter(TokenFilter):
    kind = "lowercase"
    builtin = True

    language: Literal["greek", "irish", "turkish"] | None = None


@TOKEN_FILTERS.register
class UppercaseFilter(TokenFilter):
    kind = "uppercase"
    builtin = True


@TOKEN_FILTERS.register
class ASCIIFoldingFilter(TokenFilter):
    """Converts characters outside the Basic Latin block to their ascii equivalent, if there is one"""

    kind = "asciifolding"
    builtin = True

    preserve_original: bool | None = None


@TOKEN_FILTERS.register
class LengthFilter(TokenFilter):
    kind = "length"
    builtin = True

    min: int | None = None
    max: int | None = None


@TOKEN_FILTERS.register
class StopFilter(TokenFilter):
    kind = "stop"
    builtin = True

    stopwords: Stopwords | None = None
    stopwords_path: str | None = None
    ignore_case: bool | None = None
    remove_trailing: bool | None = None

    @model_validator(mode="after")
    def validate_stopwords(self) -> Self:
        check_exclusive(self, "stopwords", "stopwords_path")
        return self


class StemmerLanguage(str, Enum):
    arabic = "arabic"
    armenian = "armenian"
    basque = "basque"
    bengali = "bengali"
    light_bengali = "light_bengali"
    brazilian = "brazilian"
    bulgarian = "bulgarian"
    catalan = "catalan"
    czech = "czech"
    danish = "danish"
    dutch = "dutch"
    dutch_kp = "dutch_kp"
    english = "english"
    light_english = "light_english"
    minimal_english = "minimal_english"
    possessive_english = "possessive_english"
    porter2 = "porter2"
    lovins = "lovins"
    finnish = "finnish"
    light_finnish = "light_finnish"
    french = "french"
    light_french = "light_french"
    minimal_french = "minimal_french"
    galician = "galician"
    minimal_galician = "minimal_galician"
    german = "german"
    german2 = "german2"
    light_german = "light_german"
    minimal_german = "minimal_german"
    greek = "greek"
    hindi = "hindi"
    hungarian = "hungarian"
    light_hungarian = "light_hungarian"
    indonesian = "indonesian"
    irish = "irish"
    italian = "italian"
    light_italian = "light_italian"
    sorani = "sorani"
    latvian = "latvian"
    lithuanian = "lithuanian"
    norwegian = "norwegian"
    light_norwegian = "light_norwegian"
    minimal_norwegian = "minimal_norwegian"
    light_nynorsk = "light_nynorsk"
    minimal_nynorsk = "minimal_nynorsk"
    portuguese = "portuguese"
    light_portuguese = "light_portuguese"
    minimal_portuguese = "minimal_portuguese"
    portuguese_rslp = "portuguese_rslp"
    romanian = "romanian"
    russian = "russian"
    light_russian = "light_russian"
    spanish = "spanish"
    light_spanish = "light_spanish"
    swedish = "swedish"
    light_swedish = "light_swedish"
    turkish = "turkish"


@TOKEN_FILTERS.register
class StemmerFilter(TokenFilter):
    """
    Access to (almost) all stemmers through a single filter.
    Unless a name is given, the filter is called stemmer_<language>.
    """

    kind = "stemmer"

    language: StemmerLanguage

    @classmethod
    def default_name(cls, data: dict) -> str | None:
        language = data.get("language")
        if isinstance(language, StemmerLanguage):
            language = language.value
        return f"{cls.kind}_{language}" if language else None

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        # the server also accepts the language under the 'name' key
        if "language" not in body and "name" in body:
            body = {**body, "language": body["name"]}
            del body["name"]
        return super().decode(body, name=name, context=context, siblings=siblings, path=path)


@TOKEN_FILTERS.register
class SynonymFilter(TokenFilter):
    kind = "synonym"

    synonyms: list[str] | None = None
    synonyms_path: str | None = None
    expand: bool | None = None
    lenient: bool | None = None
    updateable: bool | None = None
    format: Literal["solr", "wordnet"] | None = None

    @model_validator(mode="after")
    def validate_synonyms(self) -> Self:
        check_exclusive(self, "synonyms", "synonyms_path")
        if self.synonyms is None and self.synonyms_path is None:
            raise ValueError("Specify synonyms or synonyms_path")
        return self


class _NGramFilterBase(TokenFilter):
    min_gram: int | None = None
    max_gram: int | None = None
    preserve_original: bool | None = None


@TOKEN_FILTERS.register
class NGramFilter(_NGramFilterBase):
    kind = "ngram"
    builtin = True


@TOKEN_FILTERS.register
class EdgeNGramFilter(_NGramFilterBase):
    kind = "edge_ngram"
    builtin = True

    side: Literal["front", "back"] | None = None


@TOKEN_FILTERS.register
class ShingleFilter(TokenFilter):
    kind = "shingle"
    builtin = True

    min_shingle_size: int | None = None
    max_shingle_size: int | None = None
    output_unigrams: bool | None = None
    output_unigrams_if_no_shingles: bool | None = None
    token_separator: str | None = None
    filler_token: str | None = None


@TOKEN_FILTERS.register
class TrimFilter(TokenFilter):
    kind = "trim"
    builtin = True


@TOKEN_FILTERS.register
class TruncateFilter(TokenFilter):
    kind = "truncate"
    builtin = True

    length: int | None = None


@TOKEN_FILTERS.register
class UniqueFilter(TokenFilter):
    kind = "unique"
    builtin = True

    only_on_same_position: bool | None = None


@TOKEN_FILTERS.register
class ReverseFilter(TokenFilter):
    kind = "reverse"
    builtin = True


@TOKEN_FILTERS.register
class ElisionFilter(TokenFilter):
    """Removes elisions such as l' in l'avion"""

    kind = "elision"
    builtin = True

    articles: list[str] | None = None
    articles_path: str | None = None
    articles_case: bool | None = None

    @model_validator(mode="after")
    def validate_articles(self) -> Self:
        check_exclusive(self, "articles", "articles_path")
        return self


@TOKEN_FILTERS.register
class KeywordMarkerFilter(TokenFilter):
    """Marks tokens as keywords, so they are not stemmed"""

    kind = "keyword_marker"

    keywords: list[str] | None = None
    keywords_path: str | None = None
    keywords_pattern: str | None = None
    ignore_case: bool | None = None

    @model_validator(mode="after")
    def validate_keywords(self) -> Self:
        check_exclusive(self, "keywords", "keywords_path", "keywords_pattern")
        return self


@TOKEN_FILTERS.register
class PatternReplaceFilter(TokenFilter):
    kind = "pattern_replace"

    pattern: str
    replacement: str | None = None
    all: bool | None = None


@TOKEN_FILTERS.register
class PorterStemFilter(TokenFilter):
    kind = "porter_stem"
    builtin = True


@TOKEN_FILTERS.register
class KStemFilter(TokenFilter):
    kind = "kstem"
    builtin = True


@TOKEN_FILTERS.register
class ApostropheFilter(TokenFilter):
    kind = "apostrophe"
    builtin = True


@TOKEN_FILTERS.register
class DecimalDigitFilter(TokenFilter):
    kind = "decimal_digit"
    builtin = True


# Language specific normalization, none of these take any parameters


@TOKEN_FILTERS.register
class ArabicNormalizationFilter(TokenFilter):
    kind = "arabic_normalization"
    builtin = True


@TOKEN_FILTERS.register
class GermanNormalizationFilter(TokenFilter):
    kind = "german_normalization"
    builtin = True


@TOKEN_FILTERS.register
class HindiNormalizationFilter(TokenFilter):
    kind = "hindi_normalization"
    builtin = True


@TOKEN_FILTERS.register
class IndicNormalizationFilter(TokenFilter):
    kind = "indic_normalization"
    builtin = True


@TOKEN_FILTERS.register
class PersianNormalizationFilter(TokenFilter):
    kind = "persian_normalization"
    builtin = True


@TOKEN_FILTERS.register
class ScandinavianNormalizationFilter(TokenFilter):
    kind = "scandinavian_normalization"
    builtin = True


@TOKEN_FILTERS.register
class SerbianNormalizationFilter(TokenFilter):
    kind = "serbian_normalization"
    builtin = True


@TOKEN_FILTERS.register
class SoraniNormalizationFilter(TokenFilter):
    kind = "sorani_normalization"
    builtin = True
