"""
Entities and the per-run Registry.

An Entity wraps one ParsedFile with the role it plays in the output. Its
trait list is attached exactly once by the linker and is read-only after
that. All derived names are computed from the base name on access.
"""

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from ..utils.naming import strip_model_suffix, to_pascal_case
from .nodes import FileKind, ParsedFile


class EntityRole(Enum):
    RECORD = "record"
    MIXIN = "mixin"
    INTERMEDIATE_RECORD = "intermediate-record"


class Entity:
    """One analyzed record or mixin."""

    def __init__(self, parsed: ParsedFile, role: EntityRole):
        self.parsed = parsed
        self.role = role
        self._traits: Optional[Tuple["Entity", ...]] = None

    # -- linking ------------------------------------------------------------

    def attach_traits(self, traits: List["Entity"]) -> None:
        if self._traits is not None:
            raise RuntimeError(f"Traits already linked for {self.path}")
        self._traits = tuple(traits)

    @property
    def is_linked(self) -> bool:
        return self._traits is not None

    @property
    def traits(self) -> Tuple["Entity", ...]:
        return self._traits or ()

    # -- identity -----------------------------------------------------------

    @property
    def path(self) -> str:
        return self.parsed.path

    @property
    def base_name(self) -> str:
        return self.parsed.base_name

    @property
    def is_trait(self) -> bool:
        return self.role in (EntityRole.MIXIN, EntityRole.INTERMEDIATE_RECORD)

    @property
    def is_fragment(self) -> bool:
        return self.parsed.kind is FileKind.FRAGMENT

    @property
    def name(self) -> str:
        """Trait name for trait roles (`-model` dropped for intermediates), else the base name."""
        if self.role is EntityRole.INTERMEDIATE_RECORD:
            return strip_model_suffix(self.base_name)
        return self.base_name

    @property
    def pascal_name(self) -> str:
        return to_pascal_case(self.name)

    @property
    def schema_name(self) -> str:
        return f"{self.pascal_name}Schema"

    @property
    def trait_interface_name(self) -> str:
        return f"{self.pascal_name}Trait"

    @property
    def interface_name(self) -> str:
        if self.is_trait:
            return self.trait_interface_name
        return self.pascal_name

    @property
    def extension_name(self) -> str:
        if self.role is EntityRole.MIXIN:
            return f"{self.parsed.camel_name}Extension"
        return f"{self.pascal_name}Extension"

    # -- fields -------------------------------------------------------------

    def own_field_names(self) -> Tuple[str, ...]:
        return self.parsed.field_names()

    def transitive_field_names(self) -> Tuple[str, ...]:
        """Own fields plus every field contributed by linked traits, depth first."""
        names: Dict[str, None] = dict.fromkeys(self.own_field_names())
        seen = {self.path}
        stack = list(reversed(self.traits))
        while stack:
            trait = stack.pop()
            if trait.path in seen:
                continue
            seen.add(trait.path)
            names.update(dict.fromkeys(trait.own_field_names()))
            stack.extend(reversed(trait.traits))
        return tuple(names)

    def __repr__(self) -> str:
        return f"Entity({self.role.value}, {self.path})"


class Registry:
    """Ordered `path -> Entity` mapping owning every Entity of one run."""

    def __init__(self):
        self._entities: Dict[str, Entity] = {}

    def add(self, entity: Entity) -> None:
        self._entities[entity.path] = entity

    def get(self, path: Optional[str]) -> Optional[Entity]:
        if path is None:
            return None
        return self._entities.get(path)

    def records(self) -> List[Entity]:
        return [e for e in self._entities.values() if e.role is EntityRole.RECORD]

    def mixins(self) -> List[Entity]:
        return [e for e in self._entities.values() if e.role is EntityRole.MIXIN]

    def intermediates(self) -> List[Entity]:
        return [e for e in self._entities.values() if e.role is EntityRole.INTERMEDIATE_RECORD]

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, path: str) -> bool:
        return path in self._entities
