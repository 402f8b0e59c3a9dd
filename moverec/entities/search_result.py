"""Immutable snapshot of the entities discovered in one analysis pass."""

from dataclasses import dataclass, field
from typing import Iterator, Sequence

from moverec.entities.entity import Entity, EntityCategory
from moverec.exceptions import ConfigurationMismatch, InputValidationError


@dataclass(frozen=True)
class EntitySearchResult:
    """
    Classes, methods and fields of one analysis pass.

    The three lists are stored as tuples so analysis inputs cannot be
    mutated mid-run. ``properties_count`` is the total number of relevant
    properties over all entities and ``search_time`` the duration of the
    search in milliseconds.
    """

    classes: tuple[Entity, ...]
    methods: tuple[Entity, ...]
    fields: tuple[Entity, ...]
    metric_names: tuple[str, ...]
    search_time: int = 0
    properties_count: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "classes", tuple(self.classes))
        object.__setattr__(self, "methods", tuple(self.methods))
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "metric_names", tuple(self.metric_names))

        self._check_categories(self.classes, EntityCategory.CLASS)
        self._check_categories(self.methods, EntityCategory.METHOD)
        self._check_categories(self.fields, EntityCategory.FIELD)

        seen = set()
        for entity in self:
            if entity.name in seen:
                raise InputValidationError(f"Duplicate entity name: {entity.name}")
            seen.add(entity.name)
            if len(entity.features) != len(self.metric_names):
                raise ConfigurationMismatch(
                    f"{entity.name}: feature vector has {len(entity.features)} values, "
                    f"expected {len(self.metric_names)} ({', '.join(self.metric_names)})",
                    expected=self.metric_names,
                )

        object.__setattr__(
            self, "properties_count", sum(len(e.relevant_properties) for e in self)
        )

    @staticmethod
    def _check_categories(entities: Sequence[Entity], category: EntityCategory):
        for entity in entities:
            if entity.category is not category:
                raise InputValidationError(
                    f"{entity.name} is a {entity.category.value}, expected {category.value}"
                )

    def __iter__(self) -> Iterator[Entity]:
        yield from self.classes
        yield from self.methods
        yield from self.fields

    def __len__(self) -> int:
        return len(self.classes) + len(self.methods) + len(self.fields)

    def get(self, name: str) -> Entity | None:
        """Find an entity by name."""
        for entity in self:
            if entity.name == name:
                return entity
        return None

    @property
    def class_names(self) -> list[str]:
        return [c.name for c in self.classes]

    def units(self) -> list[Entity]:
        """Methods followed by fields: the candidates for a move."""
        return list(self.methods) + list(self.fields)

