"""Entity model: classes, methods and fields described by metric vectors."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Sequence

import numpy as np

from moverec.exceptions import ConfigurationMismatch, InputValidationError

if TYPE_CHECKING:
    from moverec.core.distance import DistanceFunction


class EntityCategory(str, Enum):
    """Tag of the entity variant."""

    CLASS = "class"
    METHOD = "method"
    FIELD = "field"


@dataclass(frozen=True, eq=False)
class Entity:
    """
    A class, method or field participating in refactoring analysis.

    Entities are read-only once built. Ownership changes (``move_to_class``,
    ``remove_from_class``, ``add_to_class``) return updated clones and leave
    the receiver untouched, so a snapshot shared between worker threads can
    never be mutated mid-run.
    """

    name: str
    category: EntityCategory
    features: np.ndarray
    relevant_properties: frozenset[str] = frozenset()
    class_name: str | None = None
    movable: bool = True
    supers: frozenset[str] = frozenset()  # class only: direct supers/interfaces
    declared_methods: frozenset[str] = frozenset()  # class only: method signatures
    signature: str | None = None  # method only
    moved: bool = False  # set once virtually relocated

    def __post_init__(self):
        if not self.name:
            raise InputValidationError("Entity name must not be empty")

        category = EntityCategory(self.category)
        object.__setattr__(self, "category", category)

        features = np.array(self.features, dtype=float)
        if features.ndim != 1:
            raise InputValidationError(f"{self.name}: feature vector must be one-dimensional")
        features.flags.writeable = False
        object.__setattr__(self, "features", features)

        object.__setattr__(self, "relevant_properties", frozenset(self.relevant_properties))
        object.__setattr__(self, "supers", frozenset(self.supers))
        object.__setattr__(self, "declared_methods", frozenset(self.declared_methods))

        if category is EntityCategory.CLASS:
            if self.class_name is not None:
                raise InputValidationError(f"Class {self.name} cannot have an owning class")
            object.__setattr__(self, "movable", False)
        else:
            if not self.class_name:
                raise InputValidationError(f"{category.value} {self.name} has no owning class")
            if self.supers or self.declared_methods:
                raise InputValidationError(
                    f"{self.name}: supers/declared_methods are only valid on classes"
                )
        if category is EntityCategory.METHOD and self.signature is None:
            object.__setattr__(self, "signature", _default_signature(self.name))

    @classmethod
    def from_metrics(
        cls,
        name: str,
        category: EntityCategory | str,
        metrics: Mapping[str, float],
        metric_names: Sequence[str],
        **kwargs,
    ) -> "Entity":
        """
        Build an entity from a metric-name-indexed mapping.

        Args:
            name: Fully qualified entity name
            category: Entity category
            metrics: Metric name -> value
            metric_names: The run's declared metric names, in vector order
            **kwargs: Remaining Entity fields

        Raises:
            ConfigurationMismatch: If the metric names differ from the declared set
        """
        if set(metrics) != set(metric_names) or len(metric_names) != len(set(metric_names)):
            missing = sorted(set(metric_names) - set(metrics))
            unexpected = sorted(set(metrics) - set(metric_names))
            raise ConfigurationMismatch(
                f"{name}: metric set does not match the declared metrics "
                f"(missing={missing}, unexpected={unexpected})",
                expected=metric_names,
                actual=list(metrics),
            )
        features = [float(metrics[metric]) for metric in metric_names]
        return cls(name=name, category=EntityCategory(category), features=features, **kwargs)

    def is_movable(self) -> bool:
        return self.movable and self.category is not EntityCategory.CLASS

    @property
    def is_class(self) -> bool:
        return self.category is EntityCategory.CLASS

    def distance(self, other: "Entity", distance_function: "DistanceFunction | None" = None) -> float:
        """Distance from this entity to ``other`` (not necessarily symmetric)."""
        if distance_function is None:
            from moverec.core.distance import DistanceFunction

            distance_function = DistanceFunction()
        return distance_function(self, other)

    def copy(self) -> "Entity":
        """Independent clone with its own feature buffer."""
        return replace(self)

    def move_to_class(self, target: str) -> "Entity":
        """Clone of this member relocated to ``target``; the owner reference is swapped."""
        if self.is_class:
            raise InputValidationError(f"Class {self.name} cannot be moved to another class")
        properties = set(self.relevant_properties)
        if self.class_name in properties:
            properties.discard(self.class_name)
            properties.add(target)
        return replace(
            self, class_name=target, relevant_properties=frozenset(properties), moved=True
        )

    def remove_from_class(self, member: "Entity") -> "Entity":
        """Clone of this class without ``member``."""
        self._require_class()
        return replace(
            self,
            relevant_properties=self.relevant_properties - {member.name},
            declared_methods=self.declared_methods - _signatures(member),
        )

    def add_to_class(self, member: "Entity") -> "Entity":
        """Clone of this class with ``member`` added."""
        self._require_class()
        return replace(
            self,
            relevant_properties=self.relevant_properties | {member.name},
            declared_methods=self.declared_methods | _signatures(member),
        )

    def _require_class(self):
        if not self.is_class:
            raise InputValidationError(f"{self.name} is not a class")

    def __repr__(self) -> str:
        owner = f", class_name={self.class_name!r}" if self.class_name else ""
        return f"Entity({self.category.value} {self.name!r}{owner})"


def _default_signature(name: str) -> str:
    # "pkg.Owner.method(int)" -> "method(int)"
    head, paren, params = name.partition("(")
    return head.rsplit(".", 1)[-1] + paren + params


def _signatures(member: Entity) -> frozenset[str]:
    if member.category is EntityCategory.METHOD and member.signature:
        return frozenset({member.signature})
    return frozenset()
