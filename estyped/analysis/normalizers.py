"""
Normalizers are analyzers without tokenizer that produce a single token, used by keyword fields.
https://www.elastic.co/guide/en/elasticsearch/reference/current/analysis-normalizers.html
"""

from typing import Any

from pydantic import field_serializer
from typing_extensions import Self

from estyped.codec import Variant, VariantFamily, resolve_references

from estyped.analysis.char_filters import CHAR_FILTERS, CharacterFilter
from estyped.analysis.filters import TOKEN_FILTERS, TokenFilter

NORMALIZERS = VariantFamily("normalizer", named=True)


class Normalizer(Variant):
    family = NORMALIZERS


@NORMALIZERS.register
class LowercaseNormalizer(Normalizer):
    kind = "lowercase"
    builtin = True


@NORMALIZERS.register
class CustomNormalizer(Normalizer):
    """A normalizer composed of character filters and (character level) token filters"""

    kind = "custom"

    char_filter: list[CharacterFilter] | None = None
    filter: list[TokenFilter] | None = None

    @field_serializer("char_filter", "filter")
    def _names(self, value: list[Variant] | None) -> list[str] | None:
        return None if value is None else [v.name for v in value]

    def dependencies(self) -> list[Variant]:
        return [*(self.char_filter or []), *(self.filter or [])]

    @classmethod
    def decode(cls, body: dict[str, Any], name=None, context=None, siblings=None, path: str = "") -> Self:
        data = dict(body)
        data["char_filter"] = resolve_references(CHAR_FILTERS, data.get("char_filter"), context, f"{path}.char_filter")
        data["filter"] = resolve_references(TOKEN_FILTERS, data.get("filter"), context, f"{path}.filter")
        return super().decode(data, name=name, context=context, siblings=siblings, path=path)
