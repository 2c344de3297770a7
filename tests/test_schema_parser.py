from types import MappingProxyType

import pytest

from api_discovery.errors import NotFoundError, SchemaResolutionError
from api_discovery.parser.schema import Schema, SchemaNode, SchemaResolver, parse_schemas


class TestSchemaNode:
    def test_parses_ref_alias(self):
        node = SchemaNode.model_validate({"$ref": "Book"})
        assert node.ref == "Book"

    def test_walk_visits_nested_nodes(self):
        node = SchemaNode.model_validate({
            "type": "object",
            "properties": {
                "items": {"type": "array", "items": {"$ref": "Book"}},
                "extra": {"type": "object", "additionalProperties": {"$ref": "Shelf"}},
            },
        })
        refs = {n.ref for _, n in node.walk() if n.ref}
        assert refs == {"Book", "Shelf"}

    def test_ignores_unknown_keys(self):
        node = SchemaNode.model_validate({"type": "string", "annotations": {"required": ["x"]}})
        assert node.type == "string"


class TestSchemaResolver:
    def test_registration_does_not_dereference(self):
        resolver = SchemaResolver()
        schema = Schema("Book", '{"$ref": "NotYetThere"}', resolver)
        assert "Book" in resolver
        assert not schema.is_resolved

    def test_definition_unavailable_before_resolution(self):
        schema = Schema("Book", '{"type": "object"}', SchemaResolver())
        with pytest.raises(SchemaResolutionError):
            schema.definition

    def test_forward_reference_resolves(self):
        resolver = SchemaResolver()
        book = Schema("Book", '{"type": "object", "properties": {"shelf": {"$ref": "Shelf"}}}', resolver)
        shelf = Schema("Shelf", '{"type": "object"}', resolver)
        resolver.resolve_and_verify()
        assert book.referenced_schemas() == [shelf]

    def test_duplicate_name(self):
        resolver = SchemaResolver()
        Schema("Book", "{}", resolver)
        with pytest.raises(SchemaResolutionError, match="more than once"):
            Schema("Book", "{}", resolver)

    def test_register_after_resolution(self):
        resolver = SchemaResolver()
        Schema("Book", "{}", resolver)
        resolver.resolve_and_verify()
        with pytest.raises(SchemaResolutionError):
            Schema("Shelf", "{}", resolver)

    def test_get_unknown(self):
        with pytest.raises(NotFoundError):
            SchemaResolver().get("Book")

    def test_malformed_text(self):
        resolver = SchemaResolver()
        Schema("Book", "{broken", resolver)
        with pytest.raises(SchemaResolutionError, match="malformed"):
            resolver.resolve_and_verify()


class TestParseSchemas:
    def test_self_reference(self):
        schemas = parse_schemas({
            "Node": {"id": "Node", "type": "object", "properties": {"next": {"$ref": "Node"}}},
        })
        node = schemas["Node"]
        assert node.references == {"Node"}
        assert node.referenced_schemas() == [node]

    def test_mutual_reference(self):
        schemas = parse_schemas({
            "List": {"type": "object", "properties": {"items": {"type": "array", "items": {"$ref": "Item"}}}},
            "Item": {"type": "object", "properties": {"parent": {"$ref": "List"}}},
        })
        assert schemas["List"].referenced_schemas() == [schemas["Item"]]
        assert schemas["Item"].referenced_schemas() == [schemas["List"]]

    def test_unknown_reference(self):
        with pytest.raises(SchemaResolutionError, match="Person"):
            parse_schemas({"Item": {"type": "object", "properties": {"owner": {"$ref": "Person"}}}})

    def test_required_field_without_type(self):
        with pytest.raises(SchemaResolutionError, match="no type"):
            parse_schemas({"Item": {"type": "object", "properties": {"id": {"required": True}}}})

    def test_required_list_names_undefined_property(self):
        with pytest.raises(SchemaResolutionError, match="undefined properties: id"):
            parse_schemas({"Item": {"type": "object", "required": ["id"], "properties": {}}})

    def test_unknown_type(self):
        with pytest.raises(SchemaResolutionError, match="unknown type"):
            parse_schemas({"Item": {"type": "widget"}})

    def test_id_must_match_key(self):
        with pytest.raises(SchemaResolutionError, match="does not match"):
            parse_schemas({"Item": {"id": "Other", "type": "object"}})

    def test_non_object_definition(self):
        with pytest.raises(SchemaResolutionError):
            parse_schemas({"Item": "string"})

    def test_result_is_read_only_and_keyed_by_name(self):
        schemas = parse_schemas({"Book": {"id": "Book", "type": "object"}})
        assert isinstance(schemas, MappingProxyType)
        assert schemas["Book"].name == "Book"
        with pytest.raises(TypeError):
            schemas["Other"] = schemas["Book"]

    def test_text_is_canonical(self):
        schemas = parse_schemas({"Book": {"type": "object", "id": "Book"}})
        assert schemas["Book"].text == '{"id":"Book","type":"object"}'

    def test_empty(self):
        assert dict(parse_schemas({})) == {}


class TestResolvedSchemasAreReadOnly:
    def test_properties_reject_item_assignment(self):
        schemas = parse_schemas({"Book": {"type": "object", "properties": {"title": {"type": "string"}}}})
        definition = schemas["Book"].definition
        with pytest.raises(TypeError):
            definition.properties["owner"] = SchemaNode(ref="Book")
        assert set(definition.properties) == {"title"}
