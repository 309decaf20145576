"""
Integration tests for where artifacts land and how they import each other:
nested source directories, the extensions directory, output collisions and
working-directory independence
"""

from schema_migration.backends.base import ArtifactType
from schema_migration.compiler.options import AdditionalSource
from schema_migration.shared.errors import OUTPUT_COLLISION
from test_utils import PROJECT_ROOT, artifacts_by_file, mixin_path, model_path, run_migration

AUDITABLE_MIXIN = """
    import Mixin from '@ember/object/mixin';
    import { attr } from '@ember-data/model';

    export default Mixin.create({
      createdBy: attr('string'),
    });
"""

FORMATTED_USER = """
    import Model, { attr } from '@ember-data/model';
    import { fmt } from '../utils/fmt';

    export default class User extends Model {
      @attr('string') declare name: string;

      get label(): string {
        return fmt(this.name);
      }
    }
"""


class TestNestedSources:
    """Test models in subdirectories keep their subdirectory"""

    def test_same_basename_in_different_directories(self):
        result = run_migration({
            mixin_path("auditable"): AUDITABLE_MIXIN,
            model_path("user"): """
                import Model, { attr } from '@ember-data/model';
                import AuditableMixin from 'app/mixins/auditable';

                export default class User extends Model.extend(AuditableMixin) {
                  @attr('string') declare name: string;
                }
            """,
            model_path("admin/user"): """
                import Model, { attr } from '@ember-data/model';
                import AuditableMixin from 'app/mixins/auditable';

                export default class User extends Model.extend(AuditableMixin) {
                  @attr('string') declare role: string;

                  get isRoot(): boolean {
                    return this.role === 'root';
                  }
                }
            """,
        }, traits_import=None)
        files = artifacts_by_file(result)
        assert sorted(files) == [
            "admin/user.ext.ts", "admin/user.schema.ts", "auditable.schema.ts", "user.schema.ts",
        ]
        assert result.errored == []

        assert "import type { AuditableTrait } from '../traits/auditable.schema';" in files["user.schema.ts"].code
        nested = files["admin/user.schema.ts"].code
        assert "import type { AuditableTrait } from '../../traits/auditable.schema';" in nested
        assert "  readonly role: string | null;" in nested
        assert "import type { User } from 'app/data/resources/admin/user.schema';" in files["admin/user.ext.ts"].code

    def test_colliding_outputs_are_errored(self):
        """Test two sources that map to one output file are both rejected"""
        tag = """
            import Model, { attr } from '@ember-data/model';

            export default class Tag extends Model {
              @attr('string') declare label: string;
            }
        """
        shared_tag = f"{PROJECT_ROOT}/lib/models/tag.ts"
        result = run_migration(
            {model_path("tag"): tag, shared_tag: tag},
            additional_model_sources=[AdditionalSource("shared/models/*", f"{PROJECT_ROOT}/lib/models/*")],
        )
        assert result.artifacts == []
        assert result.errored == sorted([model_path("tag"), shared_tag])
        assert {e.code for e in result.ctx.reporter.errors} == {OUTPUT_COLLISION}


class TestExtensionsDirectory:
    """Test extension modules written to a separate directory"""

    def test_trait_extension_imports_trait_relative_to_extensions_dir(self):
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
        }, intermediate_model_paths=["app/models/base-model"], traits_import=None,
            extensions_dir=f"{PROJECT_ROOT}/app/data/extensions")
        ext = artifacts_by_file(result)["base.ext.ts"]
        assert ext.type is ArtifactType.TRAIT_EXTENSION
        assert "import type { BaseTrait } from '../traits/base.schema';" in ext.code
        assert "export interface BaseExtension extends BaseTrait {}" in ext.code

    def test_relative_imports_rewritten_for_extensions_dir(self):
        result = run_migration({model_path("user"): FORMATTED_USER},
                               extensions_dir=f"{PROJECT_ROOT}/app/extensions")
        code = artifacts_by_file(result)["user.ext.ts"].code
        assert "import { fmt } from '../utils/fmt';" in code


class TestWorkingDirectoryIndependence:
    """Test generated code does not depend on the process working directory"""

    def test_default_output_dirs(self, tmp_path, monkeypatch):
        files = {model_path("user"): FORMATTED_USER}
        monkeypatch.chdir("/")
        first = run_migration(files, resources_dir=None, traits_dir=None)
        monkeypatch.chdir(tmp_path)
        second = run_migration(files, resources_dir=None, traits_dir=None)
        assert [(a.suggested_file_name, a.code) for a in first.artifacts] == \
               [(a.suggested_file_name, a.code) for a in second.artifacts]

    def test_input_dir_anchors_default_output_dirs(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = run_migration({model_path("user"): FORMATTED_USER},
                               resources_dir=None, traits_dir=None, input_dir=PROJECT_ROOT)
        code = artifacts_by_file(result)["user.ext.ts"].code
        assert "import { fmt } from '../../utils/fmt';" in code
