"""Entity model for moverec."""

from moverec.entities.entity import Entity, EntityCategory
from moverec.entities.loader import load_snapshot, snapshot_from_dict
from moverec.entities.search_result import EntitySearchResult

__all__ = [
    "Entity",
    "EntityCategory",
    "EntitySearchResult",
    "load_snapshot",
    "snapshot_from_dict",
]
