"""
Artifact writer (collaborator).

Schema artifacts go to the resources directory and trait artifacts to the
traits directory. Extension artifacts go to the extensions directory when one
is configured, otherwise next to their schema. Suggested file names may carry
a subdirectory, which is created on write.
"""

import logging
from pathlib import Path
from typing import Iterable, List

from ..backends.base import Artifact
from ..backends.extensions import artifact_dir
from ..utils.io_utils import write_text_file

logger = logging.getLogger(__name__)


def artifact_path(artifact: Artifact, options) -> Path:
    return Path(artifact_dir(artifact.type, options)) / artifact.suggested_file_name


def write_artifacts(artifacts: Iterable[Artifact], options, dry_run: bool = False) -> List[Path]:
    """Persist artifacts; with `dry_run` only the target paths are computed."""
    written: List[Path] = []
    for artifact in artifacts:
        path = artifact_path(artifact, options)
        if dry_run:
            logger.debug(f"[Writer] would write {path}")
        else:
            write_text_file(path, artifact.code)
            logger.debug(f"[Writer] wrote {path}")
        written.append(path)
    return written
