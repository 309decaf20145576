"""
Backend Interface

A backend turns one linked Entity into generated artifacts. Artifacts are
plain output records with no reference back to the Entity.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List


class ArtifactType(Enum):
    SCHEMA = "schema"
    TRAIT = "trait"
    RESOURCE_EXTENSION = "resource-extension"
    TRAIT_EXTENSION = "trait-extension"

    @property
    def is_trait_output(self) -> bool:
        """Written to the traits directory rather than the resources directory."""
        return self in (ArtifactType.TRAIT, ArtifactType.TRAIT_EXTENSION)

    @property
    def is_extension(self) -> bool:
        return self in (ArtifactType.RESOURCE_EXTENSION, ArtifactType.TRAIT_EXTENSION)


@dataclass(frozen=True)
class Artifact:
    type: ArtifactType
    name: str
    code: str
    suggested_file_name: str


class Backend(ABC):
    """Code generation interface."""

    @abstractmethod
    def generate(self, entity) -> List[Artifact]:
        """Artifacts for one linked entity, in a fixed order."""
        raise NotImplementedError
