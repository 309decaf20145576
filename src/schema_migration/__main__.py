"""CLI entry point: run `schema-migration --config migrate.json` or `python -m schema_migration ...`."""

import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    import argparse
    from .compiler.discovery import discover_sources
    from .compiler.driver import MigrationDriver
    from .compiler.options import MigrationOptions, anchor_options
    from .compiler.writer import write_artifacts
    from .shared.errors import MissingConfigurationError
    from .utils.io_utils import read_json_file

    parser = argparse.ArgumentParser(
        prog="schema-migration",
        description="Convert Ember Data models and mixins to WarpDrive schemas, traits and extensions.",
    )
    parser.add_argument("--config", type=Path, required=True, help="Path to the JSON migration config")
    parser.add_argument("--input-dir", type=Path, default=None,
                        help="Project root that relative config directories are resolved against")
    parser.add_argument("--resources-dir", default=None, help="Override the resources output directory")
    parser.add_argument("--traits-dir", default=None, help="Override the traits output directory")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be written without writing")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_path = args.config.resolve()
    if not config_path.is_file():
        sys.stderr.write(f"schema-migration: error: config not found: {config_path}\n")
        return 1
    try:
        config = read_json_file(config_path)
    except Exception as e:
        sys.stderr.write(f"schema-migration: error: could not read config: {e}\n")
        return 1

    options = MigrationOptions.from_mapping(config)
    if args.resources_dir:
        options.resources_dir = args.resources_dir
    if args.traits_dir:
        options.traits_dir = args.traits_dir
    input_dir = str(args.input_dir.resolve()) if args.input_dir else str(config_path.parent)
    options = anchor_options(options, input_dir)

    discovered = discover_sources(options)
    try:
        result = MigrationDriver(options).migrate(discovered.files)
    except MissingConfigurationError as e:
        logger.error(str(e))
        return 1

    written = write_artifacts(result.artifacts, options, dry_run=args.dry_run)
    verb = "would write" if args.dry_run else "wrote"
    print(f"{verb} {len(written)} files; {result.summary(discovered.skipped, discovered.errored)}")
    for path in written:
        logger.info(f"{verb} {path}")

    if result.has_errors():
        result.ctx.reporter.print_errors()
    if discovered.errored:
        sys.stderr.write(f"schema-migration: {len(discovered.errored)} files could not be read\n")
    return 1 if result.errored or discovered.errored else 0


if __name__ == "__main__":
    sys.exit(main())
