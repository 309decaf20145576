"""
Integration tests for the filesystem collaborators: discovery, writer and CLI
"""

import json

from schema_migration.__main__ import main
from schema_migration.backends.base import Artifact, ArtifactType
from schema_migration.compiler.discovery import discover_sources
from schema_migration.compiler.options import MigrationOptions, anchor_options
from schema_migration.compiler.writer import artifact_path, write_artifacts
from test_utils import source

USER_MODEL = source("""
    import Model, { attr } from '@ember-data/model';
    import FileableMixin from 'app/mixins/fileable';

    export default class User extends Model.extend(FileableMixin) {
      @attr('string') declare name: string;
    }
""")

FILEABLE_MIXIN = source("""
    import Mixin from '@ember/object/mixin';
    import { attr } from '@ember-data/model';

    export default Mixin.create({
      fileName: attr('string'),
      open() {
        return this.fileName;
      },
    });
""")


def _write_project(root):
    (root / "app" / "models").mkdir(parents=True)
    (root / "app" / "mixins").mkdir(parents=True)
    (root / "app" / "models" / "user.ts").write_text(USER_MODEL, encoding="utf-8")
    (root / "app" / "models" / "globals.d.ts").write_text("declare const X: number;\n", encoding="utf-8")
    (root / "app" / "mixins" / "fileable.ts").write_text(FILEABLE_MIXIN, encoding="utf-8")


def _config():
    return {
        "modelSourceDir": "app/models",
        "mixinSourceDir": "app/mixins",
        "modelImportSource": "app/models",
        "mixinImportSource": "app/mixins",
        "resourcesImport": "app/data/resources",
        "traitsImport": "app/data/traits",
        "resourcesDir": "out/resources",
        "traitsDir": "out/traits",
    }


class TestDiscovery:
    """Test source discovery on disk"""

    def test_discovers_sources_and_skips_declarations(self, tmp_path):
        _write_project(tmp_path)
        options = anchor_options(MigrationOptions.from_mapping(_config()), str(tmp_path))
        result = discover_sources(options)
        assert sorted(result.files) == [
            str(tmp_path / "app" / "mixins" / "fileable.ts"),
            str(tmp_path / "app" / "models" / "user.ts"),
        ]
        assert result.skipped == [str(tmp_path / "app" / "models" / "globals.d.ts")]
        assert result.errored == []

    def test_missing_directory_is_ignored(self, tmp_path):
        options = anchor_options(MigrationOptions.from_mapping(_config()), str(tmp_path))
        assert discover_sources(options).files == {}

    def test_anchor_options(self, tmp_path):
        options = anchor_options(MigrationOptions.from_mapping(_config()), str(tmp_path))
        assert options.model_source_dir == str(tmp_path / "app" / "models")
        assert options.traits_dir == str(tmp_path / "out" / "traits")
        assert options.resources_import == "app/data/resources"


class TestWriter:
    """Test artifact placement"""

    def test_trait_and_resource_directories(self, tmp_path):
        options = MigrationOptions(
            resources_import="app/data/resources",
            resources_dir=str(tmp_path / "resources"),
            traits_dir=str(tmp_path / "traits"),
        )
        artifacts = [
            Artifact(ArtifactType.SCHEMA, "UserSchema", "// user\n", "user.schema.ts"),
            Artifact(ArtifactType.TRAIT_EXTENSION, "fileableExtension", "// fileable\n", "fileable.ext.ts"),
        ]
        written = write_artifacts(artifacts, options)
        assert written == [tmp_path / "resources" / "user.schema.ts", tmp_path / "traits" / "fileable.ext.ts"]
        assert (tmp_path / "traits" / "fileable.ext.ts").read_text(encoding="utf-8") == "// fileable\n"

    def test_extensions_directory_and_subdirectories(self, tmp_path):
        """Test extensions go to the extensions directory and nested names create directories"""
        options = MigrationOptions(
            resources_dir=str(tmp_path / "resources"),
            traits_dir=str(tmp_path / "traits"),
            extensions_dir=str(tmp_path / "extensions"),
        )
        artifacts = [
            Artifact(ArtifactType.SCHEMA, "UserSchema", "// user\n", "admin/user.schema.ts"),
            Artifact(ArtifactType.RESOURCE_EXTENSION, "UserExtension", "// ext\n", "admin/user.ext.ts"),
            Artifact(ArtifactType.TRAIT_EXTENSION, "fileableExtension", "// fileable\n", "fileable.ext.ts"),
        ]
        written = write_artifacts(artifacts, options)
        assert written == [
            tmp_path / "resources" / "admin" / "user.schema.ts",
            tmp_path / "extensions" / "admin" / "user.ext.ts",
            tmp_path / "extensions" / "fileable.ext.ts",
        ]
        assert (tmp_path / "extensions" / "admin" / "user.ext.ts").read_text(encoding="utf-8") == "// ext\n"

    def test_dry_run_writes_nothing(self, tmp_path):
        options = MigrationOptions(resources_dir=str(tmp_path / "resources"))
        artifact = Artifact(ArtifactType.SCHEMA, "UserSchema", "// user\n", "user.schema.ts")
        assert write_artifacts([artifact], options, dry_run=True) == [tmp_path / "resources" / "user.schema.ts"]
        assert not (tmp_path / "resources").exists()

    def test_default_directories(self):
        artifact = Artifact(ArtifactType.TRAIT, "fileable", "", "fileable.schema.ts")
        assert artifact_path(artifact, MigrationOptions()).as_posix() == "app/data/traits/fileable.schema.ts"


class TestCli:
    """Test the command line entry point end to end"""

    def test_migrates_project(self, tmp_path, capsys):
        _write_project(tmp_path)
        config = tmp_path / "migrate.json"
        config.write_text(json.dumps(_config()), encoding="utf-8")

        assert main(["--config", str(config)]) == 0
        assert (tmp_path / "out" / "resources" / "user.schema.ts").is_file()
        assert (tmp_path / "out" / "traits" / "fileable.schema.ts").is_file()
        ext = (tmp_path / "out" / "traits" / "fileable.ext.ts").read_text(encoding="utf-8")
        assert "export const fileableExtension = {" in ext
        assert "wrote 3 files; processed 2, skipped 1, errored 0" in capsys.readouterr().out

    def test_dry_run(self, tmp_path, capsys):
        _write_project(tmp_path)
        config = tmp_path / "migrate.json"
        config.write_text(json.dumps(_config()), encoding="utf-8")

        assert main(["--config", str(config), "--dry-run"]) == 0
        assert not (tmp_path / "out").exists()
        assert "would write 3 files" in capsys.readouterr().out

    def test_missing_resources_import(self, tmp_path):
        _write_project(tmp_path)
        config = tmp_path / "migrate.json"
        data = _config()
        del data["resourcesImport"]
        config.write_text(json.dumps(data), encoding="utf-8")
        assert main(["--config", str(config)]) == 1

    def test_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "absent.json")]) == 1
