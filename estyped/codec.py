"""
Encoding and decoding of tagged variants

A variant is a configuration object (analyzer, tokenizer, filter, field mapping, query, aggregation, ...)
that belongs to a family of shapes. On the wire the concrete shape is selected in one of two ways:

- explicit tag: the object carries a 'type' key, e.g. {"type": "stop", "stopwords": ["a"]}.
  Builtin variants without configuration are written as the bare type name, e.g. "standard".
- implicit tag: the object has a single key naming the kind, e.g. {"match": {"title": "x"}}.

Variants that live in a named collection (e.g. the analyzers of an index, or the aggregations of a
search) get their name from the key they are stored under. Named collections are decoded in two passes:
first the mapping of name -> raw json, then each raw value with the name passed in explicitly.

Each family is a VariantFamily registry of kind -> variant class. Families are filled at import time
and only read afterwards. New kinds can be registered by other packages on import, and an application
can freeze() a family once everything is registered.
"""

from typing import Any, ClassVar, Mapping, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing_extensions import Self

from estyped.errors import DanglingReference, MalformedVariant, UnknownVariantKind

if TYPE_CHECKING:
    from estyped.analysis.context import AnalysisContext

TYPE_KEY = "type"


class VariantFamily:
    """
    Registry of the variant classes of one family, keyed by their discriminant

    :param name: Name of the family, used in error messages and analysis blocks (e.g. 'analyzer')
    :param tag: The key holding the discriminant, or None if the kind is the (single) key of the object
    :param named: If True, the name of a decoded variant is taken from its key in the enclosing collection
    :param default_kind: Kind to assume if the tag is missing (e.g. 'object' for mappings with properties)
    :param siblings: For implicit tags: keys that can appear next to the kind key (e.g. 'aggs')
    """

    def __init__(
        self,
        name: str,
        tag: str | None = TYPE_KEY,
        named: bool = False,
        default_kind: str | None = None,
        siblings: tuple[str, ...] = (),
    ):
        self.name = name
        self.tag = tag
        self.named = named
        self.default_kind = default_kind
        self.siblings = frozenset(siblings)
        self._variants: dict[str, type["Variant"]] = {}
        self._frozen = False

    def __repr__(self):
        return f"<VariantFamily {self.name} kinds={list(self._variants)}>"

    def __contains__(self, kind: str) -> bool:
        return kind in self._variants

    def register(self, cls: type["Variant"]) -> type["Variant"]:
        """Register a variant class under its kind. Can be used as a class decorator."""
        if self._frozen:
            raise RuntimeError(f"Cannot register {cls.__name__}: the {self.name} family is frozen")
        if not cls.kind:
            raise ValueError(f"{cls.__name__} has no kind")
        if cls.family is not self:
            raise ValueError(f"{cls.__name__} does not belong to the {self.name} family")
        existing = self._variants.get(cls.kind)
        if existing is not None and existing is not cls:
            raise ValueError(f"{self.name} kind '{cls.kind}' is already registered to {existing.__name__}")
        self._variants[cls.kind] = cls
        return cls

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def kinds(self) -> list[str]:
        return list(self._variants)

    def lookup(self, kind: Any) -> type["Variant"]:
        if not isinstance(kind, str) or kind not in self._variants:
            raise UnknownVariantKind(self.name, kind)
        return self._variants[kind]

    def builtin(self, name: str) -> "Variant | None":
        """Return the default instance of the builtin variant called name, if there is one"""
        cls = self._variants.get(name)
        if cls is None or not cls.builtin:
            return None
        return cls()

    def split(self, payload: Mapping[str, Any], path: str) -> tuple[str, dict, dict]:
        """Split a json object into (kind, body, siblings) according to the tag discipline of this family"""
        if self.tag is not None:
            body = dict(payload)
            kind = body.pop(self.tag, None)
            if kind is None:
                if self.default_kind is None:
                    raise MalformedVariant(self.name, path, f"missing '{self.tag}'")
                kind = self.default_kind
            return kind, body, {}
        kinds = [k for k in payload if k not in self.siblings]
        if len(kinds) != 1:
            raise MalformedVariant(self.name, path, f"expected exactly one {self.name} kind, got {kinds}")
        kind = kinds[0]
        body = payload[kind]
        if not isinstance(body, Mapping):
            raise MalformedVariant(kind, _join(path, kind), f"expected an object, got {type(body).__name__}")
        siblings = {k: v for k, v in payload.items() if k in self.siblings}
        return kind, dict(body), siblings


class Variant(BaseModel):
    """
    Base class for all tagged variants.

    Subclasses set the class variables 'kind' and 'family' (and 'builtin' for variants the server ships under
    the name 'kind'). Fields that are None are left out of the encoded payload. Unknown fields are kept, so they
    survive a decode/encode round trip.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    kind: ClassVar[str] = ""
    builtin: ClassVar[bool] = False
    family: ClassVar[VariantFamily]

    name: str | None = Field(default=None, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _set_default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("name") is None:
            name = cls.default_name(data)
            if name is not None:
                data = {**data, "name": name}
        return data

    @classmethod
    def default_name(cls, data: dict) -> str | None:
        return cls.kind if cls.builtin else None

    @model_validator(mode="after")
    def _check_names(self) -> Self:
        # in a named family, the name of a builtin always refers to the unconfigured builtin
        if type(self).builtin and self.family.named and self.name in (None, self.kind) and self.payload():
            raise ValueError(f"A configured {self.kind} {self.family.name} needs a name other than '{self.kind}'")
        # references are written by name
        for dependency in self.dependencies():
            if dependency.name is None:
                raise ValueError(f"Cannot refer to the {dependency.kind} {dependency.family.name} without a name")
        return self

    def payload(self) -> dict[str, Any]:
        """The configured fields of this variant, without tag and name"""
        dump = self.model_dump(mode="json", exclude_none=True, by_alias=True)
        return {k: v for k, v in dump.items() if v is not None}

    def is_builtin_default(self) -> bool:
        """Is this the server's builtin of this kind, without any overrides?"""
        return type(self).builtin and self.name in (None, self.kind) and not self.payload()

    def dependencies(self) -> list["Variant"]:
        """Other variants this one refers to by name (e.g. the tokenizer of a custom analyzer)"""
        return []

    def encode(self) -> str | dict[str, Any]:
        if self.is_builtin_default():
            return self.kind
        if self.family.tag is None:
            return {self.kind: self.payload()}
        return {self.family.tag: self.kind, **self.payload()}

    @classmethod
    def decode(
        cls,
        body: dict[str, Any],
        name: str | None = None,
        context: "AnalysisContext | None" = None,
        siblings: dict[str, Any] | None = None,
        path: str = "",
    ) -> Self:
        """Decode the body (the payload without tag) of a variant of this class"""
        data = dict(body)
        if name is not None and cls.family.named:
            data["name"] = name
        return cls.validate_payload(data, path)

    @classmethod
    def validate_payload(cls, data: dict[str, Any], path: str = "") -> Self:
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise malformed(cls.kind, path, e) from e


def _join(path: str, key: object) -> str:
    return f"{path}.{key}" if path else str(key)


def malformed(kind: str, path: str, error: ValidationError) -> MalformedVariant:
    """Turn the first pydantic validation error into a MalformedVariant with the full field path"""
    first = error.errors()[0]
    field_path = path
    for loc in first.get("loc", ()):
        field_path = _join(field_path, loc)
    return MalformedVariant(kind, field_path, first.get("msg", str(error)))


def encode_variant(variant: Variant) -> str | dict[str, Any]:
    return variant.encode()


def decode_variant(
    family: VariantFamily,
    payload: Any,
    name: str | None = None,
    context: "AnalysisContext | None" = None,
    path: str = "",
) -> Variant:
    """
    Decode a single variant of the given family from its json representation.
    Accepts both the bare string form (builtins or shorthand) and the full object form.

    :param family: The variant family to decode
    :param payload: The json value
    :param name: The name of the variant, e.g. the key under which it is stored
    :param context: The analysis context to resolve named references against
    :param path: Field path of the payload, used in error messages
    """
    path = path or (name or family.name)
    if isinstance(payload, str):
        cls = family.lookup(payload)
        return cls.decode({}, name=name, context=context, path=path)
    if not isinstance(payload, Mapping):
        raise MalformedVariant(family.name, path, f"expected an object or a string, got {type(payload).__name__}")
    kind, body, siblings = family.split(payload, path)
    cls = family.lookup(kind)
    return cls.decode(body, name=name, context=context, siblings=siblings, path=path)


def encode_named(variants: Mapping[str, Variant]) -> dict[str, Any]:
    """Encode a name -> variant mapping, keeping the insertion order"""
    return {name: variant.encode() for name, variant in variants.items()}


def decode_named(
    family: VariantFamily,
    payload: Any,
    context: "AnalysisContext | None" = None,
    path: str = "",
) -> dict[str, Variant]:
    """Decode a name -> variant mapping, passing each key to its variant as name"""
    path = path or family.name
    if not isinstance(payload, Mapping):
        raise MalformedVariant(family.name, path, f"expected an object, got {type(payload).__name__}")
    raw: dict[str, Any] = dict(payload)
    return {
        key: decode_variant(family, value, name=key, context=context, path=_join(path, key))
        for key, value in raw.items()
    }


def resolve_reference(
    family: VariantFamily,
    name: Any,
    context: "AnalysisContext | None" = None,
    path: str = "",
) -> Variant:
    """Resolve a reference by name against the context, falling back to the builtins of the family"""
    if not isinstance(name, str):
        raise MalformedVariant(family.name, path, f"expected a {family.name} name, got {name!r}")
    variant = context.resolve(family, name) if context is not None else family.builtin(name)
    if variant is None:
        raise DanglingReference(family.name, name)
    return variant


def resolve_references(
    family: VariantFamily,
    names: Any,
    context: "AnalysisContext | None" = None,
    path: str = "",
) -> list[Variant] | None:
    if names is None:
        return None
    if isinstance(names, str):
        names = [names]
    if not isinstance(names, list):
        raise MalformedVariant(family.name, path, f"expected a list of {family.name} names, got {names!r}")
    return [resolve_reference(family, name, context, _join(path, i)) for i, name in enumerate(names)]
