"""
Character filters preprocess the stream of characters before it is passed to the tokenizer.
https://www.elastic.co/guide/en/elasticsearch/reference/current/analysis-charfilters.html
"""

from typing import Any

from pydantic import model_validator
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily

CHAR_FILTERS = VariantFamily("char_filter", named=True)


class CharacterFilter(Variant):
    family = CHAR_FILTERS


@CHAR_FILTERS.register
class HTMLStripCharacterFilter(CharacterFilter):
    """Strips HTML elements and decodes HTML entities (e.g. &amp; becomes &)"""

    kind = "html_strip"
    builtin = True

    escaped_tags: list[str] | None = None


@CHAR_FILTERS.register
class MappingCharacterFilter(CharacterFilter):
    """Replaces occurrences of the given keys with their values, e.g. mappings=["٠ => 0", "١ => 1"]"""

    kind = "mapping"

    mappings: list[str] | None = None
    mappings_path: str | None = None

    @model_validator(mode="after")
    def validate_mappings(self) -> Self:
        if self.mappings is not None and self.mappings_path is not None:
            raise ValueError("Specify either mappings or mappings_path, not both")
        if self.mappings is None and self.mappings_path is None:
            raise ValueError("Specify mappings or mappings_path")
        return self

    @classmethod
    def from_dict(cls, name: str, mappings: dict[str, Any]) -> "MappingCharacterFilter":
        return cls(name=name, mappings=[f"{k} => {v}" for k, v in mappings.items()])


@CHAR_FILTERS.register
class PatternReplaceCharacterFilter(CharacterFilter):
    """Replaces regular expression matches. The replacement can refer to capture groups ($1)"""

    kind = "pattern_replace"

    pattern: str
    replacement: str | None = None
    flags: str | None = None


