"""Schema parser for discovery documents.

Schemas may refer to each other by name, forward, mutually or to
themselves, so they are parsed in two phases: every schema is first
registered with a SchemaResolver under its name, then the resolver
parses all definitions and checks every ``$ref`` against the complete
name table.
"""

import logging
from types import MappingProxyType
from typing import Any, Iterator, Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from api_discovery.errors import NotFoundError, ParseError, SchemaResolutionError
from api_discovery.json_value import parse, serialize
from api_discovery.parser.base import FrozenDict

logger = logging.getLogger(__name__)

KNOWN_TYPES = {"any", "array", "boolean", "integer", "null", "number", "object", "string"}


class SchemaNode(BaseModel):
    """One node of a JSON-Schema-like definition."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore", validate_default=True)

    type: str | None = None
    ref: str | None = Field(default=None, alias="$ref")
    description: str = ""
    format: str | None = None
    required: bool | tuple[str, ...] = False
    repeated: bool = False
    enum: tuple[Any, ...] = ()
    properties: FrozenDict["SchemaNode"] = {}
    items: "SchemaNode | None" = None
    additional_properties: "SchemaNode | bool | None" = Field(default=None, alias="additionalProperties")

    def walk(self, path: str = "") -> Iterator[tuple[str, "SchemaNode"]]:
        """Yield (path, node) for this node and every nested node."""
        yield path, self
        for name, prop in self.properties.items():
            yield from prop.walk(f"{path}.{name}" if path else name)
        if self.items is not None:
            yield from self.items.walk(f"{path}[]")
        if isinstance(self.additional_properties, SchemaNode):
            yield from self.additional_properties.walk(f"{path}{{}}")


class Schema:
    """A named schema definition.

    Creating a Schema registers it with ``resolver``; ``definition`` and
    ``references`` become available once the resolver has run
    ``resolve_and_verify``.
    """

    def __init__(self, name: str, text: str, resolver: "SchemaResolver"):
        self.name = name
        self.text = text
        self._resolver = resolver
        self._definition: SchemaNode | None = None
        resolver.register(self)

    def __repr__(self) -> str:
        return f"Schema(name={self.name!r})"

    @property
    def is_resolved(self) -> bool:
        return self._definition is not None

    @property
    def definition(self) -> SchemaNode:
        if self._definition is None:
            raise SchemaResolutionError(f"Schema '{self.name}' has not been resolved yet")
        return self._definition

    @property
    def references(self) -> frozenset[str]:
        """Names of the schemas this schema refers to."""
        return frozenset(node.ref for _, node in self.definition.walk() if node.ref)

    def referenced_schemas(self) -> list["Schema"]:
        return [self._resolver.get(name) for name in sorted(self.references)]

    def _parse(self) -> SchemaNode:
        try:
            return SchemaNode.model_validate(parse(self.text))
        except (ParseError, pydantic.ValidationError) as exc:
            raise SchemaResolutionError(f"Schema '{self.name}' is malformed: {exc}") from exc


class SchemaResolver:
    """Name table for schemas that may reference each other."""

    def __init__(self):
        self._schemas: dict[str, Schema] = {}
        self._resolved = False

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def register(self, schema: Schema) -> None:
        if self._resolved:
            raise SchemaResolutionError(f"Cannot register schema '{schema.name}' after resolution")
        if schema.name in self._schemas:
            raise SchemaResolutionError(f"Schema '{schema.name}' is defined more than once")
        self._schemas[schema.name] = schema

    def get(self, name: str) -> Schema:
        try:
            return self._schemas[name]
        except KeyError:
            raise NotFoundError(f"Schema '{name}' not found") from None

    def resolve_and_verify(self) -> None:
        """Parse every registered schema and check it against the name table."""
        definitions = {name: schema._parse() for name, schema in self._schemas.items()}

        for name, definition in definitions.items():
            for path, node in definition.walk():
                _verify_node(name, path, node, self)

        for name, schema in self._schemas.items():
            schema._definition = definitions[name]
        self._resolved = True


def parse_schemas(values: dict) -> Mapping[str, Schema]:
    """Build all schemas of a document's ``schemas`` object.

    Returns a read-only mapping of schema name to resolved Schema.
    """
    working: dict[str, Schema] = {}
    resolver = SchemaResolver()

    for key, value in values.items():
        logger.debug("Found schema %s", key)
        if not isinstance(value, dict):
            raise SchemaResolutionError(f"Schema '{key}' must be an object")
        declared = value.get("id")
        if declared is not None and declared != key:
            raise SchemaResolutionError(f"Schema key '{key}' does not match its id '{declared}'")
        schema = Schema(key, serialize(value, canonical=True), resolver)
        working[schema.name] = schema

    resolver.resolve_and_verify()
    return MappingProxyType(working)


def _verify_node(schema_name: str, path: str, node: SchemaNode, resolver: SchemaResolver) -> None:
    where = f"'{schema_name}'" + (f" at '{path}'" if path else "")

    if node.ref is not None and node.ref not in resolver:
        raise SchemaResolutionError(f"Schema {where} references unknown schema '{node.ref}'")
    if node.type is not None and node.type not in KNOWN_TYPES:
        raise SchemaResolutionError(f"Schema {where} has unknown type '{node.type}'")
    if node.required is True and node.type is None and node.ref is None:
        raise SchemaResolutionError(f"Required field {where} has no type")
    if isinstance(node.required, tuple):
        missing = [name for name in node.required if name not in node.properties]
        if missing:
            raise SchemaResolutionError(f"Schema {where} requires undefined properties: {', '.join(missing)}")
