"""
Unit tests for field -> TypeScript type mapping
"""

import pytest
from schema_migration.backends.type_mapping import attribute_type, field_type, relationship_target
from schema_migration.ir.nodes import Field, FieldKind


class TestAttributeType:
    """Test attribute type precedence and nullability"""

    @pytest.mark.parametrize("attr_type,options,expected", [
        ("string", {}, "string | null"),
        ("string", {"defaultValue": "x"}, "string"),
        ("string", {"allowNull": False}, "string"),
        ("number", {}, "number | null"),
        ("date", {}, "Date | null"),
        ("boolean", {}, "boolean | null"),
        ("boolean", {"defaultValue": False}, "boolean | null"),
        ("boolean", {"allowNull": False}, "boolean"),
        ("enum", {"allowedValues": ("a", "b")}, "string | null"),
        ("enum", {"allowedValues": ("a",), "allowNull": False}, "string"),
        ("json", {}, "unknown | null"),
        ("json", {"defaultValue": None}, "unknown"),
        (None, {}, "unknown | null"),
    ])
    def test_built_in_rules(self, attr_type, options, expected):
        assert attribute_type(attr_type, options, {}) == expected

    def test_custom_mapping(self):
        """Test the project mapping wins over built-ins"""
        mapping = {"uuid": "string", "date": "Temporal.Instant"}
        assert attribute_type("uuid", {}, mapping) == "string | null"
        assert attribute_type("date", {"defaultValue": None}, mapping) == "Temporal.Instant"

    def test_declared_annotation_is_last_resort(self):
        assert attribute_type("json", {}, {}, declared="Record<string, unknown>") == "Record<string, unknown>"
        assert attribute_type("string", {}, {}, declared="Name") == "string | null"


class TestRelationshipType:
    """Test relationship types"""

    def test_belongs_to(self):
        assert field_type(Field("author", FieldKind.BELONGS_TO, "user-profile", {"async": True}), {}) == \
            "Promise<UserProfile | null>"
        assert field_type(Field("author", FieldKind.BELONGS_TO, "user", {"async": False}), {}) == "User | null"

    def test_has_many(self):
        assert field_type(Field("tags", FieldKind.HAS_MANY, "tag", {"async": True}), {}) == "AsyncHasMany<Tag>"
        assert field_type(Field("tags", FieldKind.HAS_MANY, "tag", {}), {}) == "HasMany<Tag>"

    def test_untyped_relationship(self):
        assert relationship_target(Field("owner", FieldKind.BELONGS_TO)) is None
        assert field_type(Field("owner", FieldKind.BELONGS_TO), {}) == "unknown"

    def test_schema_object_fields_are_unknown(self):
        assert field_type(Field("address", FieldKind.SCHEMA_OBJECT, "fragment:address"), {}) == "unknown"
