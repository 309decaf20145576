"""
End-to-end migration scenarios over in-memory projects
"""

import pytest
from schema_migration.backends.base import ArtifactType
from schema_migration.compiler.driver import MigrationDriver, migrate
from schema_migration.shared.errors import GENERATION_FAILURE, PARSE_FAILURE, MissingConfigurationError
from test_utils import artifacts_by_file, make_options, mixin_path, model_path, run_migration, source

AUDITABLE_MIXIN = """
    import Mixin from '@ember/object/mixin';
    import { attr } from '@ember-data/model';

    export default Mixin.create({
      createdBy: attr('string'),
    });
"""

USER_WITH_AUDITABLE = """
    import Model, { attr } from '@ember-data/model';
    import AuditableMixin from 'app/mixins/auditable';

    export default class User extends Model.extend(AuditableMixin) {
      @attr('string') declare name: string;
    }
"""


class TestScenarios:
    """Test the core record / mixin / relationship scenarios"""

    def test_record_composing_a_field_only_mixin(self):
        """Test one trait without extension, and a single-element trait list on the record"""
        result = run_migration({
            mixin_path("auditable"): AUDITABLE_MIXIN,
            model_path("user"): USER_WITH_AUDITABLE,
        })
        files = artifacts_by_file(result)
        assert sorted(files) == ["auditable.schema.ts", "user.schema.ts"]

        trait = files["auditable.schema.ts"]
        assert trait.type is ArtifactType.TRAIT
        assert trait.code == (
            "const AuditableSchema = {\n"
            "  'name': 'auditable',\n"
            "  'mode': 'legacy',\n"
            "  'fields': [\n"
            "    {\n"
            "      'name': 'createdBy',\n"
            "      'kind': 'attribute',\n"
            "      'type': 'string'\n"
            "    }\n"
            "  ]\n"
            "} as const;\n"
            "\n"
            "export default AuditableSchema;\n"
            "\n"
            "export interface AuditableTrait {\n"
            "  readonly createdBy: string | null;\n"
            "}\n"
        )

        schema = files["user.schema.ts"]
        assert schema.type is ArtifactType.SCHEMA
        assert schema.code == (
            "import type { Type } from '@warp-drive/core/types/symbols';\n"
            "import type { AuditableTrait } from 'app/data/traits/auditable.schema';\n"
            "const UserSchema = {\n"
            "  'type': 'user',\n"
            "  'legacy': true,\n"
            "  'identity': {\n"
            "    'kind': '@id',\n"
            "    'name': 'id'\n"
            "  },\n"
            "  'fields': [\n"
            "    {\n"
            "      'name': 'name',\n"
            "      'kind': 'attribute',\n"
            "      'type': 'string'\n"
            "    }\n"
            "  ],\n"
            "  'traits': [\n"
            "    'auditable'\n"
            "  ]\n"
            "} as const;\n"
            "\n"
            "export default UserSchema;\n"
            "\n"
            "export interface User extends AuditableTrait {\n"
            "  readonly [Type]: 'user';\n"
            "  readonly name: string | null;\n"
            "}\n"
        )
        assert result.processed == [mixin_path("auditable"), model_path("user")]

    def test_relationship_to_record_imports_resource(self):
        """Test a record-typed relationship imports from the resource namespace"""
        result = run_migration({
            model_path("b"): """
                import Model, { belongsTo } from '@ember-data/model';

                export default class B extends Model {
                  @belongsTo('c', { async: true, inverse: null }) declare c: unknown;
                }
            """,
            model_path("c"): """
                import Model, { attr } from '@ember-data/model';

                export default class C extends Model {
                  @attr('string') declare label: string;
                }
            """,
        })
        code = artifacts_by_file(result)["b.schema.ts"].code
        assert "import type { C } from 'app/data/resources/c.schema';" in code
        assert "app/data/traits" not in code
        assert "  readonly c: Promise<C | null>;" in code
        assert "      'options': {\n        'async': true,\n        'inverse': null\n      }" in code

    def test_unused_mixin_produces_nothing(self):
        result = run_migration({
            mixin_path("orphan"): AUDITABLE_MIXIN,
            model_path("tag"): """
                import Model, { attr } from '@ember-data/model';

                export default class Tag extends Model {
                  @attr('string') declare label: string;
                }
            """,
        })
        assert sorted(artifacts_by_file(result)) == ["tag.schema.ts"]
        assert result.skipped == [mixin_path("orphan")]

    def test_field_and_getter(self):
        """Test exactly one schema and one extension, each in declaration order"""
        result = run_migration({
            model_path("post"): """
                import Model, { attr } from '@ember-data/model';

                export default class Post extends Model {
                  @attr('string') declare title: string;

                  get shout(): string {
                    return this.title.toUpperCase();
                  }
                }
            """,
        })
        files = artifacts_by_file(result)
        assert sorted(files) == ["post.ext.ts", "post.schema.ts"]
        assert "'objectExtensions': [\n    'PostExtension'\n  ]" in files["post.schema.ts"].code

        extension = files["post.ext.ts"]
        assert extension.type is ArtifactType.RESOURCE_EXTENSION
        assert extension.code == (
            "import Model, { attr } from '@ember-data/model';\n"
            "\n"
            "import type { Post } from 'app/data/resources/post.schema';\n"
            "\n"
            "export interface PostExtension extends Post {}\n"
            "\n"
            "export class PostExtension {\n"
            "  get shout(): string {\n"
            "    return this.title.toUpperCase();\n"
            "  }\n"
            "}\n"
            "\n"
            "export type PostExtensionSignature = typeof PostExtension;\n"
        )


class TestTraitsAndExtensions:
    """Test mixin chains, intermediates, fragments and polymorphic targets"""

    def test_mixin_with_behavior_and_nested_mixin(self):
        result = run_migration({
            mixin_path("fileable"): """
                import Mixin from '@ember/object/mixin';
                import { attr } from '@ember-data/model';
                import AuditableMixin from './auditable';

                export default Mixin.create(AuditableMixin, {
                  fileName: attr('string'),
                  open() {
                    return this.fileName;
                  },
                });
            """,
            mixin_path("auditable"): AUDITABLE_MIXIN,
            model_path("document"): """
                import Model from '@ember-data/model';
                import FileableMixin from 'app/mixins/fileable';

                export default Model.extend(FileableMixin, {});
            """,
        })
        files = artifacts_by_file(result)
        assert sorted(files) == [
            "auditable.schema.ts", "document.schema.ts", "fileable.ext.ts", "fileable.schema.ts",
        ]
        assert files["fileable.ext.ts"].type is ArtifactType.TRAIT_EXTENSION
        assert "export const fileableExtension = {\n  open() {" in files["fileable.ext.ts"].code

        fileable = files["fileable.schema.ts"].code
        assert "import type { AuditableTrait } from 'app/data/traits/auditable.schema';" in fileable
        assert "export interface FileableTrait extends AuditableTrait {" in fileable

        document = files["document.schema.ts"].code
        assert "'traits': [\n    'fileable'\n  ]" in document
        assert "'objectExtensions': [\n    'fileableExtension'\n  ]" in document

    def test_intermediate_base_class(self):
        result = run_migration({
            model_path("base-model"): """
                import Model, { attr } from '@ember-data/model';

                export default class BaseModel extends Model {
                  @attr('date') declare createdAt: Date;

                  get isRecent(): boolean {
                    return true;
                  }
                }
            """,
            model_path("post"): """
                import { attr } from '@ember-data/model';
                import BaseModel from 'app/models/base-model';

                export default class Post extends BaseModel {
                  @attr('string') declare title: string;
                }
            """,
        }, intermediate_model_paths=["app/models/base-model"])
        files = artifacts_by_file(result)
        assert sorted(files) == ["base.ext.ts", "base.schema.ts", "post.schema.ts"]
        assert files["base.schema.ts"].type is ArtifactType.TRAIT
        assert files["base.ext.ts"].type is ArtifactType.TRAIT_EXTENSION

        base = files["base.schema.ts"].code
        assert "export interface BaseTrait {" in base
        assert "  id: string | null;" in base
        assert "import type { BelongsToReference, HasManyReference, Errors } " \
               "from '@warp-drive/legacy/model/-private';" in base
        assert "export class BaseExtension {" in files["base.ext.ts"].code

        post = files["post.schema.ts"].code
        assert "'traits': [\n    'base'\n  ]" in post
        assert "'objectExtensions': [\n    'BaseExtension'\n  ]" in post
        assert "export interface Post extends BaseTrait {" in post

    def test_own_field_shadows_trait_field(self):
        result = run_migration({
            mixin_path("auditable"): AUDITABLE_MIXIN,
            model_path("user"): """
                import Model, { attr } from '@ember-data/model';
                import AuditableMixin from 'app/mixins/auditable';

                export default class User extends Model.extend(AuditableMixin) {
                  @attr('number') declare createdBy: number;
                }
            """,
        })
        code = artifacts_by_file(result)["user.schema.ts"].code
        assert "export interface User extends Omit<AuditableTrait, 'createdBy'> {" in code
        assert "  readonly createdBy: number | null;" in code

    def test_polymorphic_target_generates_trait(self):
        """Test a mixin used only as a polymorphic type is kept and imported from traits"""
        result = run_migration({
            mixin_path("commentable"): AUDITABLE_MIXIN,
            model_path("comment"): """
                import Model, { belongsTo } from '@ember-data/model';

                export default class Comment extends Model {
                  @belongsTo('commentable', { async: false, inverse: null, polymorphic: true })
                  declare target: unknown;
                }
            """,
        })
        files = artifacts_by_file(result)
        assert "commentable.schema.ts" in files
        comment = files["comment.schema.ts"].code
        assert "import type { CommentableTrait as Commentable } " \
               "from 'app/data/traits/commentable.schema';" in comment
        assert "  readonly target: Commentable | null;" in comment
        assert "'traits'" not in comment

    def test_fragment_schema(self):
        result = run_migration({
            model_path("address"): """
                import Fragment from 'ember-data-model-fragments/fragment';
                import { attr } from '@ember-data/model';

                export default class Address extends Fragment {
                  @attr('string') declare street: string;
                }
            """,
        })
        code = artifacts_by_file(result)["address.schema.ts"].code
        assert "'type': 'fragment:address'" in code
        assert "'identity': null" in code
        assert "readonly [Type]: 'fragment:address';" in code

    def test_javascript_record(self):
        result = run_migration({
            model_path("tag", ".js"): """
                import Model, { attr } from '@ember-data/model';

                export default Model.extend({
                  label: attr('string'),
                  upper() {
                    return this.label.toUpperCase();
                  },
                });
            """,
        })
        files = artifacts_by_file(result)
        assert sorted(files) == ["tag.ext.js", "tag.schema.js"]
        assert files["tag.schema.js"].code.startswith("const TagSchema = {\n")
        assert "as const" not in files["tag.schema.js"].code
        assert "interface" not in files["tag.ext.js"].code
        assert "/** @typedef {typeof TagExtension} TagExtensionSignature */" in files["tag.ext.js"].code


class TestRunBehavior:
    """Test configuration errors, isolation and determinism"""

    def test_missing_resources_import_is_fatal(self):
        with pytest.raises(MissingConfigurationError):
            MigrationDriver(make_options(resources_import=None)).migrate({
                model_path("user"): source(USER_WITH_AUDITABLE),
            })

    def test_parse_failure_is_isolated(self):
        result = run_migration({
            model_path("broken"): """
                import Model from '@ember-data/model';

                export default class Broken extends Model {
                  @attr('string' declare name: string;
                }
            """,
            model_path("tag"): """
                import Model, { attr } from '@ember-data/model';

                export default class Tag extends Model {
                  @attr('string') declare label: string;
                }
            """,
        })
        assert result.errored == [model_path("broken")]
        assert result.processed == [model_path("tag")]
        assert result.has_errors()
        assert result.ctx.reporter.errors[0].code == PARSE_FAILURE
        assert "tag.schema.ts" in artifacts_by_file(result)

    def test_non_model_files_are_skipped(self):
        result = run_migration({
            model_path("helpers"): """
                export function format(value: string) {
                  return value.trim();
                }
            """,
        })
        assert result.artifacts == []
        assert result.skipped == [model_path("helpers")]
        assert not result.has_errors()

    def test_runs_are_idempotent(self):
        """Test two runs over the same input produce identical artifacts"""
        files = {
            mixin_path("auditable"): AUDITABLE_MIXIN,
            model_path("user"): USER_WITH_AUDITABLE,
        }
        first = run_migration(files)
        second = run_migration(files)
        assert [(a.suggested_file_name, a.code) for a in first.artifacts] == \
               [(a.suggested_file_name, a.code) for a in second.artifacts]

    def test_functional_entry_point(self):
        options = make_options()
        result = migrate({model_path("user"): source(USER_WITH_AUDITABLE)}, options)
        assert result.success
        assert "user.schema.ts" in artifacts_by_file(result)

    def test_summary(self):
        result = run_migration({model_path("user"): USER_WITH_AUDITABLE})
        assert result.summary() == "processed 1, skipped 0, errored 0"
        assert GENERATION_FAILURE not in [e.code for e in result.ctx.reporter.errors]
