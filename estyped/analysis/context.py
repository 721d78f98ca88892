"""
The analysis context: the named analyzers, tokenizers and filters of one index

A context is created for a single encode or decode pass (e.g. building the create body of an index,
or reconstructing an index fetched from the server) and discarded afterwards. It is not safe to share
a context between concurrent passes, use copy() instead.

Decoding an analysis block goes in a fixed order (char_filter, filter, tokenizer, normalizer, analyzer),
so that every name a custom analyzer or normalizer refers to is already decoded when it is looked up.
"""

from typing import Any, Iterable, Mapping

from estyped.codec import Variant, VariantFamily, decode_named
from estyped.errors import ConflictingDefinition, DanglingReference, MalformedVariant

from estyped.analysis.analyzers import ANALYZERS
from estyped.analysis.char_filters import CHAR_FILTERS
from estyped.analysis.filters import TOKEN_FILTERS
from estyped.analysis.normalizers import NORMALIZERS
from estyped.analysis.tokenizers import TOKENIZERS

# decode order: every family only refers to families earlier in this list
FAMILIES: tuple[VariantFamily, ...] = (CHAR_FILTERS, TOKEN_FILTERS, TOKENIZERS, NORMALIZERS, ANALYZERS)
# order in which the tables are written in the analysis block
BLOCK_ORDER: tuple[VariantFamily, ...] = (ANALYZERS, TOKENIZERS, TOKEN_FILTERS, CHAR_FILTERS, NORMALIZERS)


class AnalysisContext:
    def __init__(self, variants: Iterable[Variant] = ()):
        self._tables: dict[str, dict[str, Variant]] = {family.name: {} for family in FAMILIES}
        for variant in variants:
            if not variant.is_builtin_default():
                self.add(variant)

    def __repr__(self):
        tables = {k: list(v) for k, v in self._tables.items() if v}
        return f"<AnalysisContext {tables}>"

    def __eq__(self, other):
        if not isinstance(other, AnalysisContext):
            return NotImplemented
        return self._tables == other._tables

    def __len__(self):
        return sum(len(table) for table in self._tables.values())

    def _table(self, family: VariantFamily | str) -> dict[str, Variant]:
        key = family if isinstance(family, str) else family.name
        try:
            return self._tables[key]
        except KeyError:
            raise ValueError(f"{key} is not an analysis family") from None

    def add(self, variant: Variant) -> bool:
        """
        Add a named definition. Adding the same definition twice is a no-op, adding a different
        definition under an existing name raises ConflictingDefinition.
        :return: True if the definition was new
        """
        if variant.name is None:
            raise MalformedVariant(variant.kind, variant.family.name, "a definition in the analysis block needs a name")
        table = self._table(variant.family)
        existing = table.get(variant.name)
        if existing is not None:
            if existing != variant:
                raise ConflictingDefinition(variant.family.name, variant.name)
            return False
        table[variant.name] = variant
        return True

    def lookup(self, family: VariantFamily | str, name: str) -> Variant | None:
        return self._table(family).get(name)

    def resolve(self, family: VariantFamily, name: str) -> Variant:
        """Resolve a name to a definition in this context or a builtin, or raise DanglingReference"""
        variant = self.lookup(family, name)
        if variant is None:
            variant = family.builtin(name)
        if variant is None:
            raise DanglingReference(family.name, name)
        return variant

    def definitions(self, family: VariantFamily | str) -> dict[str, Variant]:
        return dict(self._table(family))

    def copy(self) -> "AnalysisContext":
        result = AnalysisContext()
        for key, table in self._tables.items():
            result._tables[key] = dict(table)
        return result

    def collect(self, variant: Variant) -> None:
        """
        Add the variant (if it is an analysis definition itself) and all definitions it depends on,
        recursively, until no new definitions are found.
        Builtins without overrides are skipped, the server already knows them. Any other definition under
        the name of a builtin raises ConflictingDefinition.
        """
        todo = [variant] if variant.family.name in self._tables else list(variant.dependencies())
        while todo:
            dependency = todo.pop(0)
            if dependency.is_builtin_default():
                continue
            if dependency.family.builtin(dependency.name) is not None:
                raise ConflictingDefinition(dependency.family.name, dependency.name)
            if self.add(dependency):
                todo.extend(dependency.dependencies())

    def collect_all(self, variants: Iterable[Variant]) -> None:
        for variant in variants:
            self.collect(variant)

    def encode(self) -> dict[str, Any]:
        """Encode as analysis block, leaving out empty tables"""
        block = {}
        for family in BLOCK_ORDER:
            table = self._tables[family.name]
            if table:
                block[family.name] = {name: _encode_definition(variant) for name, variant in table.items()}
        return block

    @classmethod
    def decode(cls, block: Mapping[str, Any] | None, path: str = "analysis") -> "AnalysisContext":
        context = cls()
        if not block:
            return context
        if not isinstance(block, Mapping):
            raise MalformedVariant("analysis", path, f"expected an object, got {type(block).__name__}")
        for family in FAMILIES:
            if family.name in block:
                definitions = decode_named(family, block[family.name], context=context, path=f"{path}.{family.name}")
                for variant in definitions.values():
                    context.add(variant)
        return context


def _encode_definition(variant: Variant) -> dict[str, Any]:
    # definitions in an analysis block are always objects, even for a builtin type
    encoded = variant.encode()
    if isinstance(encoded, str):
        return {"type": encoded}
    return encoded
