"""
Unit tests for extension module generation
"""

from schema_migration.backends.base import ArtifactType
from schema_migration.backends.extensions import (
    artifact_dir, class_extension_code, extension_module, object_extension_code, reindent,
    rewrite_specifier, signature_type, source_subdir,
)
from schema_migration.compiler.options import AdditionalSource
from schema_migration.ir.nodes import Behavior, BehaviorKind, FileKind, ParsedFile, PreservedStatement
from test_utils import make_options, mixin_path, model_path

TARGET = "/project/app/data/resources/user.ext.ts"


class TestRewriteSpecifier:
    """Test relative imports re-pointed at the generated file's location"""

    def test_bare_specifier_unchanged(self):
        options = make_options()
        assert rewrite_specifier("@ember/object", model_path("user"), TARGET, options) == "@ember/object"

    def test_relative_to_target_dir(self):
        options = make_options(model_import_source=None)
        assert rewrite_specifier("../utils/format", model_path("user"), TARGET, options) == "../../utils/format"

    def test_sibling_model_uses_model_import_source(self):
        options = make_options()
        assert rewrite_specifier("./helpers.js", model_path("user"), TARGET, options) == "app/models/helpers"

    def test_directory_mapping_first(self):
        options = make_options(directory_import_mapping={"app/models": "my-app/models"})
        assert rewrite_specifier("./helpers", model_path("user"), TARGET, options) == "my-app/models/helpers"


class TestMemberCode:
    """Test class and object member layout"""

    def test_reindent(self):
        text = "get shout() {\n    return this.name;\n  }"
        assert reindent(text) == "  get shout() {\n    return this.name;\n  }"

    def test_class_members(self):
        behaviors = [
            Behavior("count", "@tracked count = 0", BehaviorKind.PROPERTY, "count", True),
            Behavior("label", "'x'", BehaviorKind.PROPERTY, "label", False),
            Behavior("go", "go() {\n  }", BehaviorKind.METHOD, "go", True),
            Behavior("...Other", "...Other", BehaviorKind.PROPERTY, "...Other", True),
        ]
        assert class_extension_code("UserExtension", behaviors) == (
            "export class UserExtension {\n"
            "  @tracked count = 0;\n"
            "\n"
            "  label = 'x';\n"
            "\n"
            "  go() {\n"
            "  }\n"
            "}"
        )

    def test_object_members(self):
        behaviors = [
            Behavior("limit", "10", BehaviorKind.PROPERTY, "limit", False),
            Behavior("open", "open() {\n    return 1;\n  }", BehaviorKind.METHOD, "open", True),
        ]
        assert object_extension_code("fileableExtension", behaviors) == (
            "export const fileableExtension = {\n"
            "  limit: 10,\n"
            "  open() {\n"
            "    return 1;\n"
            "  }\n"
            "};"
        )

    def test_signature_type(self):
        assert signature_type("UserExtension", True) == "export type UserExtensionSignature = typeof UserExtension;"
        assert signature_type("fileableExtension", False) == \
            "/** @typedef {typeof fileableExtension} FileableExtensionSignature */"


class TestExtensionModule:
    """Test full extension modules"""

    def _parsed(self, path, statements=()):
        return ParsedFile(
            path=path,
            kind=FileKind.RECORD,
            behaviors=(Behavior("go", "go() {}", BehaviorKind.METHOD, "go", True),),
            preserved_statements=tuple(statements),
        )

    def test_record_extension(self):
        parsed = self._parsed(model_path("user"), [
            PreservedStatement("import { format } from '../utils/format';", "../utils/format"),
            PreservedStatement("import { fragment } from 'ember-data-model-fragments/attributes';",
                               "ember-data-model-fragments/attributes"),
            PreservedStatement("const LIMIT = 3;"),
        ])
        options = make_options(model_import_source=None)
        code = extension_module(
            parsed, "UserExtension", options,
            file_name="user.ext.ts", trait_context=False, object_format=False,
            interface_name="User", interface_module="app/data/resources/user.schema",
        )
        assert code == (
            "import { format } from '../../utils/format';\n"
            "\n"
            "const LIMIT = 3;\n"
            "\n"
            "import type { User } from 'app/data/resources/user.schema';\n"
            "\n"
            "export interface UserExtension extends User {}\n"
            "\n"
            "export class UserExtension {\n"
            "  go() {}\n"
            "}\n"
            "\n"
            "export type UserExtensionSignature = typeof UserExtension;\n"
        )

    def test_javascript_without_signature(self):
        parsed = self._parsed(model_path("user", ".js"))
        options = make_options(emit_signature_types=False)
        code = extension_module(
            parsed, "UserExtension", options,
            file_name="user.ext.js", trait_context=False, object_format=False,
            interface_name="User", interface_module="app/data/resources/user.schema",
        )
        assert code == "export class UserExtension {\n  go() {}\n}\n"


class TestOutputLocations:
    """Test output directories and source subdirectories"""

    def test_source_subdir(self):
        options = make_options(additional_mixin_sources=[
            AdditionalSource("shared/mixins/*", "/project/lib/mixins/*"),
        ])
        assert source_subdir(model_path("user"), options) == ""
        assert source_subdir(model_path("admin/user"), options) == "admin"
        assert source_subdir(mixin_path("a/b/fileable", ".js"), options) == "a/b"
        assert source_subdir(mixin_path("group/index", ".js"), options) == ""
        assert source_subdir("/project/lib/mixins/x/shareable.ts", options) == "x"
        assert source_subdir("/elsewhere/thing.ts", options) == ""

    def test_artifact_dir(self):
        options = make_options()
        assert artifact_dir(ArtifactType.RESOURCE_EXTENSION, options) == "/project/app/data/resources"
        assert artifact_dir(ArtifactType.TRAIT_EXTENSION, options) == "/project/app/data/traits"
        options = make_options(extensions_dir="/project/app/data/extensions")
        assert artifact_dir(ArtifactType.RESOURCE_EXTENSION, options) == "/project/app/data/extensions"
        assert artifact_dir(ArtifactType.TRAIT_EXTENSION, options) == "/project/app/data/extensions"
        assert artifact_dir(ArtifactType.TRAIT, options) == "/project/app/data/traits"
