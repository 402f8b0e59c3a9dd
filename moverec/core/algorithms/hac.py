"""HAC: hierarchical agglomerative clustering of classes, methods and fields.

All entities are clustered with average linkage over a symmetrized distance
matrix. Each cluster that contains a class is assigned to the class closest
on average to the cluster's members, and members owned by another class are
proposed to move there.
"""

import math

import numpy as np
from sklearn.cluster import AgglomerativeClustering

from moverec.core.algorithms.base import Algorithm, ExecutionContext, Outcome, Refactoring
from moverec.core.hierarchy import InheritanceGraph, SafetyFilter
from moverec.entities.entity import Entity, EntityCategory
from moverec.exceptions import NoTargetFound, UnsafeMove


class HAC(Algorithm):
    """Average-linkage clustering cut at ``config.hac.distance_threshold``."""

    def __init__(self):
        super().__init__("HAC", enable_parallel=False)

    def calculate_refactorings(self, context: ExecutionContext) -> list[Outcome]:
        snapshot = context.snapshot
        movable = [u for u in snapshot.units() if u.is_movable()]

        if len(snapshot.classes) < 2:
            context.indicator.check_canceled()
            return [NoTargetFound(u.name, "fewer than 2 classes, no move possible") for u in movable]

        entities = list(snapshot)
        threshold = context.config.hac.distance_threshold
        matrix = self.distance_matrix(entities, context)

        labels = AgglomerativeClustering(
            n_clusters=None,
            metric="precomputed",
            linkage="average",
            distance_threshold=threshold,
        ).fit_predict(self._clamp(matrix, threshold))

        clusters: dict[int, list[int]] = {}
        for index, label in enumerate(labels):
            clusters.setdefault(int(label), []).append(index)
        self.logger.info(f"Formed {len(clusters)} clusters at threshold {threshold}")

        classes_by_name = {c.name: c for c in snapshot.classes}
        safety = SafetyFilter(InheritanceGraph(snapshot.classes))
        outcomes: list[Outcome] = []
        for label in sorted(clusters):
            context.indicator.check_canceled()
            indices = clusters[label]
            outcomes.extend(
                self._assign_cluster(indices, entities, matrix, classes_by_name, safety, context)
            )
        return outcomes

    def distance_matrix(self, entities: list[Entity], context: ExecutionContext) -> np.ndarray:
        """Symmetric matrix ``max(d(a, b), d(b, a))``; may contain ``inf``."""
        n = len(entities)
        matrix = np.zeros((n, n), dtype=float)
        for i in range(n):
            context.indicator.check_canceled()
            for j in range(i + 1, n):
                d = max(
                    context.distance(entities[i], entities[j]),
                    context.distance(entities[j], entities[i]),
                )
                matrix[i, j] = matrix[j, i] = d
            context.indicator.report_progress((i + 1) / n)
        return matrix

    @staticmethod
    def _clamp(matrix: np.ndarray, threshold: float) -> np.ndarray:
        # Incomparable pairs must never merge, so inf becomes a value far above any real distance.
        finite = matrix[np.isfinite(matrix)]
        ceiling = max(threshold, float(finite.max()) if finite.size else 0.0) * 1e6 + 1.0
        return np.where(np.isfinite(matrix), matrix, ceiling)

    def _assign_cluster(
        self,
        indices: list[int],
        entities: list[Entity],
        matrix: np.ndarray,
        classes_by_name: dict[str, Entity],
        safety: SafetyFilter,
        context: ExecutionContext,
    ) -> list[Outcome]:
        class_indices = [i for i in indices if entities[i].is_class]
        member_indices = [i for i in indices if entities[i].is_movable()]
        if not member_indices:
            return []
        if not class_indices:
            self.logger.debug(f"Cluster of {len(indices)} entities contains no class")
            return [
                NoTargetFound(entities[i].name, "cluster contains no class")
                for i in member_indices
            ]

        others = [i for i in indices if not entities[i].is_class]
        target = entities[
            min(class_indices, key=lambda c: float(np.mean(matrix[c, others])))
        ]

        outcomes: list[Outcome] = []
        for i in member_indices:
            member = entities[i]
            if member.class_name == target.name:
                continue

            to_target = context.distance(member, target)
            owner = classes_by_name.get(member.class_name)
            to_owner = context.distance(member, owner) if owner is not None else math.inf
            if not to_target < to_owner:
                self.logger.debug(
                    f"{member.name}: cluster class {target.name} is not closer than "
                    f"{member.class_name} ({to_target:.4f} >= {to_owner:.4f})"
                )
                continue

            if member.category is EntityCategory.METHOD:
                try:
                    safety.check(member, member.class_name, target.name, classes_by_name)
                except UnsafeMove as e:
                    outcomes.append(e)
                    continue

            if math.isinf(to_owner):
                confidence = 1.0
            else:
                confidence = min(max((to_owner - to_target) / to_owner, 0.0), 1.0)
            outcomes.append(Refactoring(member.name, target.name, confidence))
        return outcomes
