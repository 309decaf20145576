"""
Per-run memo of which entities produce an extension module.

Created by the driver for each run and threaded through the
MigrationContext; never shared between runs.
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class ExtensionCache:

    def __init__(self):
        self._names: Dict[str, Optional[str]] = {}

    def extension_name(self, entity) -> Optional[str]:
        """The entity's extension name, or None when it has no behaviors."""
        if entity.path not in self._names:
            name = entity.extension_name if entity.parsed.behaviors else None
            self._names[entity.path] = name
            logger.debug(f"[ExtensionCache] {entity.path} -> {name}")
        return self._names[entity.path]

    def __len__(self) -> int:
        return len(self._names)
