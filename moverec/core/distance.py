"""Distance between entities over metric vectors and relevant properties.

The distance combines two terms:

- the Euclidean norm of the difference of the (optionally normalized)
  feature vectors, and
- the Jaccard distance of the relevant-property sets, so that entities
  sharing more referenced symbols are closer.

Structurally incomparable pairs yield ``inf`` instead of raising, so callers
minimizing over candidates simply never pick them.
"""

import math
from typing import Mapping

import numpy as np
from sklearn.preprocessing import MinMaxScaler, RobustScaler, StandardScaler

from moverec.entities.entity import Entity
from moverec.entities.search_result import EntitySearchResult
from moverec.utils.logging_utils import get_logger

logger = get_logger(__name__)

SCALERS = {
    "minmax": MinMaxScaler,
    "zscore": StandardScaler,
    "robust": RobustScaler,
}


class DistanceFunction:
    """Weighted feature + relation distance."""

    def __init__(
        self,
        feature_weight: float = 1.0,
        relation_weight: float = 1.0,
        normalized: Mapping[str, np.ndarray] | None = None,
    ):
        """
        Initialize distance function.

        Args:
            feature_weight: Weight of the Euclidean feature term
            relation_weight: Weight of the Jaccard relation term
            normalized: Optional entity name -> normalized feature vector
        """
        if feature_weight <= 0 or relation_weight <= 0:
            raise ValueError("Distance weights must be positive")
        self.feature_weight = feature_weight
        self.relation_weight = relation_weight
        self._normalized = dict(normalized or {})

    @classmethod
    def fit(
        cls,
        snapshot: EntitySearchResult,
        normalization: str = "none",
        feature_weight: float = 1.0,
        relation_weight: float = 1.0,
    ) -> "DistanceFunction":
        """
        Build a distance function whose feature vectors are normalized
        across every entity of ``snapshot``.

        Args:
            snapshot: Entities of the current run
            normalization: 'none', 'minmax', 'zscore' or 'robust'
            feature_weight: Weight of the Euclidean feature term
            relation_weight: Weight of the Jaccard relation term
        """
        normalization = normalization.lower()
        if normalization == "none":
            return cls(feature_weight, relation_weight)
        if normalization not in SCALERS:
            raise ValueError(f"Unknown normalization: {normalization}")

        entities = list(snapshot)
        if not entities or not snapshot.metric_names:
            return cls(feature_weight, relation_weight)

        matrix = np.vstack([e.features for e in entities])
        finite_rows = np.all(np.isfinite(matrix), axis=1)
        if not finite_rows.any():
            return cls(feature_weight, relation_weight)

        # Non-finite rows stay incomparable and are kept out of the fit.
        kept = [e for e, ok in zip(entities, finite_rows) if ok]
        scaled = SCALERS[normalization]().fit_transform(matrix[finite_rows])

        normalized = {}
        for entity, row in zip(kept, scaled):
            row = np.array(row, dtype=float)
            row.flags.writeable = False
            normalized[entity.name] = row

        logger.debug(f"Normalized {len(normalized)} feature vectors with {normalization}")
        return cls(feature_weight, relation_weight, normalized)

    def vector(self, entity: Entity) -> np.ndarray:
        """Feature vector used for comparisons (normalized when fitted)."""
        return self._normalized.get(entity.name, entity.features)

    def is_comparable(self, a: Entity, b: Entity) -> bool:
        fa, fb = self.vector(a), self.vector(b)
        if fa.shape != fb.shape:
            return False
        if not (np.all(np.isfinite(fa)) and np.all(np.isfinite(fb))):
            return False
        return not (_is_degenerate(a) or _is_degenerate(b))

    def feature_distance(self, a: Entity, b: Entity) -> float:
        return float(np.linalg.norm(self.vector(a) - self.vector(b)))

    @staticmethod
    def relation_distance(a: Entity, b: Entity) -> float:
        union = a.relevant_properties | b.relevant_properties
        if not union:
            return 0.0
        common = a.relevant_properties & b.relevant_properties
        return 1.0 - len(common) / len(union)

    def __call__(self, a: Entity, b: Entity) -> float:
        if not self.is_comparable(a, b):
            return math.inf
        return (
            self.feature_weight * self.feature_distance(a, b)
            + self.relation_weight * self.relation_distance(a, b)
        )


def _is_degenerate(entity: Entity) -> bool:
    return entity.features.size == 0 and not entity.relevant_properties
