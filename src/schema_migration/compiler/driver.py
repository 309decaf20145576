"""
Migration Driver

Orchestrates one run over an in-memory snapshot of source files:
1. validate options (a missing required option is fatal) and anchor relative
   directories to the project root
2. parse every file, sorted by path
3. connectivity -> linking -> generation passes
"""

import logging
import os
from typing import Iterable, List, Mapping, Optional

from ..analysis.extension_cache import ExtensionCache
from ..analysis.module_system.path_resolver import ImportResolver, normalize_path
from ..backends.base import Artifact
from ..backends.typescript import ArtifactGenerationPass
from ..frontend.parser import SourceParser
from ..ir.nodes import FileKind, ParsedFile
from ..passes.base import Corpus, FileOutcome, MigrationContext, PassManager
from ..passes.entity_linking import EntityLinkingPass
from ..passes.mixin_connectivity import MixinConnectivityPass
from ..shared.errors import PARSE_FAILURE, ParseFailure
from .options import anchor_options

logger = logging.getLogger(__name__)


class MigrationResult:
    """Migration result"""

    def __init__(
        self,
        artifacts: Optional[List[Artifact]] = None,
        ctx: Optional[MigrationContext] = None,
        success: bool = False,
    ):
        self.artifacts: List[Artifact] = artifacts if artifacts is not None else []
        self.ctx = ctx
        self.success = success

    def _paths(self, outcome: FileOutcome) -> List[str]:
        return self.ctx.paths_with(outcome) if self.ctx is not None else []

    @property
    def processed(self) -> List[str]:
        return self._paths(FileOutcome.PROCESSED)

    @property
    def skipped(self) -> List[str]:
        return self._paths(FileOutcome.SKIPPED)

    @property
    def errored(self) -> List[str]:
        return self._paths(FileOutcome.ERRORED)

    def has_errors(self) -> bool:
        if self.ctx is not None:
            return self.ctx.reporter.has_errors()
        return not self.success

    def summary(self, skipped: Iterable[str] = (), errored: Iterable[str] = ()) -> str:
        """Outcome counts; `skipped` / `errored` add files a collaborator set aside before the run."""
        skipped_count = len(set(self.skipped) | set(skipped))
        errored_count = len(set(self.errored) | set(errored))
        return f"processed {len(self.processed)}, skipped {skipped_count}, errored {errored_count}"


class MigrationDriver:
    """Runs the full pipeline for one set of options."""

    def __init__(self, options):
        self.options = options
        self.pass_manager = PassManager()
        self._register_passes()

    def _register_passes(self) -> None:
        self.pass_manager.register_pass(MixinConnectivityPass)
        self.pass_manager.register_pass(EntityLinkingPass)
        self.pass_manager.register_pass(ArtifactGenerationPass)

    def migrate(self, sources: Mapping[str, str]) -> MigrationResult:
        """
        Migrate `{path: code}`.

        Raises MissingConfigurationError before touching any file when a
        required option is absent; every per-file problem is isolated.
        """
        self.options.validate()

        snapshot = {normalize_path(p): code for p, code in sources.items()}
        options = anchor_options(self.options, self.options.input_dir or snapshot_root(snapshot))
        resolver = ImportResolver(options, known_files=snapshot.keys())
        ctx = MigrationContext(options, resolver, ExtensionCache(), source_files=snapshot)
        parser = SourceParser(options, resolver)

        records: List[ParsedFile] = []
        mixins: List[ParsedFile] = []
        for path in sorted(snapshot):
            parsed = self._parse_file(parser, path, snapshot[path], ctx)
            if parsed is None:
                continue
            if parsed.kind is FileKind.MIXIN:
                mixins.append(parsed)
            elif parsed.is_record_like:
                records.append(parsed)
            else:
                logger.debug(f"[Driver] {path} is not a model or mixin")
                ctx.mark(path, FileOutcome.SKIPPED)

        logger.debug(f"[Driver] parsed {len(records)} records and {len(mixins)} mixins")
        self.pass_manager.run_all(Corpus(tuple(records), tuple(mixins)), ctx)

        return MigrationResult(
            artifacts=ctx.get_analysis(ArtifactGenerationPass),
            ctx=ctx,
            success=True,
        )

    def _parse_file(self, parser: SourceParser, path: str, code: str,
                    ctx: MigrationContext) -> Optional[ParsedFile]:
        try:
            return parser.parse(path, code)
        except ParseFailure as e:
            logger.warning(f"[Driver] skipping {path}: {e.message}")
            ctx.reporter.report_error(
                e.message, e.location, code=PARSE_FAILURE, note="file excluded from migration",
            )
        except Exception as e:
            logger.warning(f"[Driver] failed to analyze {path}: {e}")
            ctx.reporter.report_error(
                f"could not analyze file: {e}", None, code=PARSE_FAILURE,
                note=f"{path} excluded from migration",
            )
        ctx.mark(path, FileOutcome.ERRORED)
        return None


def snapshot_root(paths: Iterable[str]) -> Optional[str]:
    """Deepest directory containing every snapshot file, or None for an empty snapshot."""
    dirs = [os.path.dirname(p) for p in paths]
    if not dirs:
        return None
    return os.path.commonpath(dirs)


def migrate(sources: Mapping[str, str], options) -> MigrationResult:
    """Functional form of `MigrationDriver(options).migrate(sources)`."""
    return MigrationDriver(options).migrate(sources)
