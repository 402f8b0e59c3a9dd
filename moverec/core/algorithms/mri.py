"""MRI: nearest-class assignment with eager, order-dependent relocation.

Entities are processed strictly in their given order. An accepted method
move relocates the method in the current ``Placement`` before the next
entity is evaluated, so later entities are compared against the updated
classes. The run is a fold ``step(placement, entity) -> (placement', outcome)``
and is never parallelized.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from moverec.core.algorithms.base import (
    Algorithm,
    ExecutionContext,
    Outcome,
    Refactoring,
    find_nearest_class,
)
from moverec.core.hierarchy import InheritanceGraph, SafetyFilter
from moverec.entities.entity import Entity, EntityCategory
from moverec.entities.search_result import EntitySearchResult
from moverec.exceptions import NoTargetFound, UnsafeMove


@dataclass(frozen=True)
class Placement:
    """Ownership state at one point of the fold: current classes and members."""

    classes: tuple[Entity, ...]
    members: Mapping[str, Entity]

    @classmethod
    def of(cls, snapshot: EntitySearchResult) -> "Placement":
        return cls(
            classes=tuple(snapshot.classes),
            members=MappingProxyType({u.name: u for u in snapshot.units()}),
        )

    @property
    def class_map(self) -> dict[str, Entity]:
        return {c.name: c for c in self.classes}

    def relocate(self, member: Entity, target: str) -> "Placement":
        """New placement with ``member`` moved from its owner into ``target``."""
        source = member.class_name
        moved = member.move_to_class(target)

        classes = []
        for class_entity in self.classes:
            if class_entity.name == source:
                class_entity = class_entity.remove_from_class(member)
            elif class_entity.name == target:
                class_entity = class_entity.add_to_class(moved)
            classes.append(class_entity)

        members = dict(self.members)
        members[moved.name] = moved
        return Placement(classes=tuple(classes), members=MappingProxyType(members))


class MRI(Algorithm):
    """Sequential variant that relocates accepted method moves immediately."""

    def __init__(self):
        super().__init__("MRI", enable_parallel=False)

    def calculate_refactorings(self, context: ExecutionContext) -> list[Outcome]:
        snapshot = context.snapshot
        safety = SafetyFilter(InheritanceGraph(snapshot.classes))
        order = [u.name for u in snapshot.units() if u.is_movable()]

        placement = Placement.of(snapshot)
        outcomes: list[Outcome] = []
        context.indicator.check_canceled()
        for done, name in enumerate(order, start=1):
            context.indicator.check_canceled()
            placement, outcome = self.step(placement, name, context, safety)
            if outcome is not None:
                outcomes.append(outcome)
            context.indicator.report_progress(done / len(order))

        moved = sum(1 for m in placement.members.values() if m.moved)
        self.logger.debug(f"{moved} methods relocated during the pass")
        return outcomes

    def step(
        self,
        placement: Placement,
        name: str,
        context: ExecutionContext,
        safety: SafetyFilter,
    ) -> tuple[Placement, Optional[Outcome]]:
        """Evaluate one entity against ``placement`` and return the next placement."""
        entity = placement.members[name]
        try:
            nearest = find_nearest_class(entity, placement.classes, context.distance)
        except NoTargetFound as e:
            return placement, e

        target = nearest.target.name
        if target == entity.class_name:
            return placement, None

        if entity.category is EntityCategory.METHOD:
            try:
                safety.check(entity, entity.class_name, target, placement.class_map)
            except UnsafeMove as e:
                return placement, e
            placement = placement.relocate(entity, target)

        return placement, Refactoring(entity.name, target, nearest.confidence)
