"""
Index definitions

An Index is a name with settings, mappings and analysis components. It is built client side and turned into the
body of a create index request with create_body(), or reconstructed from the GET /{index} response with
Index.decode().

The body of a create request looks like:
    {"settings": {"number_of_shards": 1, "number_of_replicas": 0, "analysis": {...}},
     "mappings": {"properties": {...}, "_meta": {"private": {...}, "user_defined": {...}}}}

The analysis block is collected from the fields: every analyzer (and its tokenizer and filters) that is used by a
field is added, unless it is an unconfigured builtin.
"""

import hashlib
import json
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from estyped.analysis.context import AnalysisContext
from estyped.codec import Variant
from estyped.errors import InvalidResponse
from estyped.mapping import FieldMapping, Mappings

SERIAL_VERSION = 1


class IndexSettings(BaseModel):
    """
    Index settings. The server returns all settings as strings, e.g. {"number_of_shards": "1"}; these are coerced.
    Only number_of_shards, number_of_replicas and extra settings are sent when creating an index.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    number_of_shards: int | None = None
    number_of_replicas: int | None = None
    creation_date: int | None = None
    uuid: str | None = None
    version_created: str | None = None
    provided_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        if isinstance(data.get("index"), Mapping):
            # {"index": {"number_of_shards": ...}} as returned by GET /{index}
            data = {**data.pop("index"), **data}
        version = data.pop("version", None)
        if isinstance(version, Mapping) and "version_created" not in data:
            data["version_created"] = version.get("created")
        return data

    def encode(self) -> dict[str, Any]:
        return self.model_dump(exclude={"creation_date", "uuid", "version_created", "provided_name"}, exclude_none=True)


class PrivateIndexMeta(BaseModel):
    """Version and hash of the properties, to detect whether an index has changed since it was created"""

    model_config = ConfigDict(frozen=True)

    serial_version: int = SERIAL_VERSION
    properties_hash: str = ""


class IndexMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    private: PrivateIndexMeta = Field(default_factory=PrivateIndexMeta)
    user_defined: dict[str, Any] | None = None

    @property
    def stamped(self) -> bool:
        return bool(self.private.properties_hash)


def properties_hash(mappings: Mappings) -> str:
    """sha256 of the json encoded properties of the mappings"""
    hash_str = json.dumps(mappings.encode()["properties"], sort_keys=True, ensure_ascii=True).encode("ascii")
    return hashlib.sha256(hash_str).hexdigest()


class Index(BaseModel):
    """
    :param name: The name of the index
    :param settings: Shard and replica counts etc.
    :param mappings: The fields of the index
    :param analysis: Analysis components to add to the index, next to those used by the fields
    :param meta: The _meta element of the mappings
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    settings: IndexSettings = Field(default_factory=IndexSettings)
    mappings: Mappings = Field(default_factory=Mappings)
    analysis: AnalysisContext = Field(default_factory=AnalysisContext)
    meta: IndexMeta = Field(default_factory=IndexMeta)

    @classmethod
    def build(
        cls,
        name: str,
        properties: Mapping[str, FieldMapping] | None = None,
        shards: int | None = None,
        replicas: int | None = None,
        analysis: list[Variant] | None = None,
        user_defined: dict[str, Any] | None = None,
        **mapping_options,
    ) -> "Index":
        """
        Configure a new index

        :param name: The name of the index
        :param properties: Mapping of field name to field mapping
        :param shards: The number of primary shards
        :param replicas: The number of replicas per primary shard
        :param analysis: Additional analyzers, tokenizers etc. to define on the index
        :param user_defined: Extra information to store in the _meta element
        :param mapping_options: dynamic, enabled and/or options (other top level mapping elements)
        """
        return cls(
            name=name,
            settings=IndexSettings(number_of_shards=shards, number_of_replicas=replicas),
            mappings=Mappings(properties=dict(properties or {}), **mapping_options),
            analysis=AnalysisContext(analysis or ()),
            meta=IndexMeta(user_defined=user_defined),
        )

    def collect_analysis(self) -> AnalysisContext:
        """The analysis components of this index plus everything the fields refer to"""
        context = self.analysis.copy()
        context.collect_all(self.mappings.dependencies())
        return context

    def stamp(self) -> "Index":
        """Return a copy of this index with the hash of the current properties in its meta. Can only be done once."""
        if self.meta.stamped:
            raise ValueError(f"Meta of index {self.name} is already stamped")
        private = PrivateIndexMeta(serial_version=SERIAL_VERSION, properties_hash=properties_hash(self.mappings))
        return self.model_copy(update={"meta": self.meta.model_copy(update={"private": private})})

    def create_body(self) -> dict[str, Any]:
        index = self if self.meta.stamped else self.stamp()
        settings = index.settings.encode()
        analysis = index.collect_analysis().encode()
        if analysis:
            settings["analysis"] = analysis
        mappings = index.mappings.encode()
        mappings["_meta"] = index.meta.model_dump(exclude_none=True)
        return {"settings": settings, "mappings": mappings}

    @classmethod
    def decode(cls, name: str, payload: Mapping[str, Any]) -> "Index":
        """
        Reconstruct an index from the response of GET /{name}, i.e. {name: {"settings": ..., "mappings": ...}}
        or the inner object. The analysis block is decoded first, so the fields can refer to its components.
        If name is an alias, the response is keyed by the name of the index and the decoded index gets that name.
        """
        if not isinstance(payload, Mapping):
            raise InvalidResponse(f"cannot decode index {name}: expected an object, got {type(payload).__name__}")
        if name in payload and isinstance(payload[name], Mapping):
            payload = payload[name]
        elif not {"settings", "mappings"} & payload.keys():
            keys = list(payload)
            if len(keys) != 1 or not isinstance(payload[keys[0]], Mapping):
                raise InvalidResponse(f"cannot decode index {name}: expected one index, got {keys}")
            name = keys[0]
            payload = payload[name]
        raw_settings = dict(payload.get("settings") or {})
        if isinstance(raw_settings.get("index"), Mapping):
            raw_settings["index"] = dict(raw_settings["index"])
            analysis_block = raw_settings["index"].pop("analysis", None)
        else:
            analysis_block = raw_settings.pop("analysis", None)
        analysis = AnalysisContext.decode(analysis_block or {}, path=f"{name}.settings.analysis")

        raw_mappings = dict(payload.get("mappings") or {})
        raw_meta = raw_mappings.pop("_meta", None)
        mappings = Mappings.decode(raw_mappings, context=analysis, path=f"{name}.mappings")
        try:
            return cls(
                name=name,
                settings=IndexSettings.model_validate(raw_settings),
                mappings=mappings,
                analysis=analysis,
                meta=IndexMeta.model_validate(raw_meta) if raw_meta else IndexMeta(),
            )
        except ValidationError as e:
            raise InvalidResponse(f"cannot decode index {name}: {e}") from e
