"""ARI: nearest-class assignment evaluated in parallel over a static snapshot."""

from moverec.core.algorithms.base import (
    Algorithm,
    ExecutionContext,
    Outcome,
    Refactoring,
    find_nearest_class,
)
from moverec.core.hierarchy import InheritanceGraph, SafetyFilter
from moverec.entities.entity import Entity, EntityCategory
from moverec.exceptions import NoTargetFound, UnsafeMove


class ARI(Algorithm):
    """
    Suggests moving every movable method and field to its structurally
    closest class.

    Each unit reads only the immutable snapshot, so units are evaluated
    independently on the execution coordinator's worker pool and the
    resulting set of suggestions does not depend on the partitioning.
    Method moves still go through the safety filter, which only reads the
    static class hierarchy.
    """

    def __init__(self):
        super().__init__("ARI", enable_parallel=True)

    def calculate_refactorings(self, context: ExecutionContext) -> list[Outcome]:
        snapshot = context.snapshot
        units = [u for u in snapshot.units() if u.is_movable()]
        if len(units) != len(snapshot.units()):
            self.logger.debug(f"Ignoring {len(snapshot.units()) - len(units)} unmovable units")

        classes = snapshot.classes
        class_map = {c.name: c for c in classes}
        safety = SafetyFilter(InheritanceGraph(classes))

        def evaluate(entity: Entity) -> list[Outcome]:
            try:
                nearest = find_nearest_class(entity, classes, context.distance)
            except NoTargetFound as e:
                return [e]

            self.logger.debug(
                f"{entity.name}: nearest={nearest.target.name} "
                f"dist={nearest.distance:.4f} gap={nearest.gap:.4f}"
            )
            target = nearest.target.name
            if target == entity.class_name:
                return []
            if entity.category is EntityCategory.METHOD:
                try:
                    safety.check(entity, entity.class_name, target, class_map)
                except UnsafeMove as e:
                    return [e]
            return [Refactoring(entity.name, target, nearest.confidence)]

        return context.coordinator.run_parallel(units, evaluate, context.indicator)
