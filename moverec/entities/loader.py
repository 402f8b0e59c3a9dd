"""Load entity snapshots from JSON or YAML documents."""

import json
from pathlib import Path
from typing import Any

import yaml

from moverec.entities.entity import Entity, EntityCategory
from moverec.entities.search_result import EntitySearchResult
from moverec.exceptions import InputValidationError
from moverec.utils.logging_utils import get_logger

logger = get_logger(__name__)

_SECTIONS = (
    ("classes", EntityCategory.CLASS),
    ("methods", EntityCategory.METHOD),
    ("fields", EntityCategory.FIELD),
)


def snapshot_from_dict(document: dict[str, Any]) -> EntitySearchResult:
    """
    Build an EntitySearchResult from a plain mapping.

    Expected shape::

        metrics: [name, ...]
        classes: [{name, metrics: {...}, properties: [...], supers: [...],
                   declared_methods: [...]}]
        methods: [{name, class_name, metrics: {...}, properties: [...],
                   movable, signature}]
        fields:  [{name, class_name, metrics: {...}, properties: [...], movable}]
        search_time: 0

    Raises:
        InputValidationError: If the document is malformed
        ConfigurationMismatch: If an entity's metrics differ from ``metrics``
    """
    if not isinstance(document, dict):
        raise InputValidationError("Snapshot document must be a mapping")

    metric_names = document.get("metrics")
    if not isinstance(metric_names, list) or not all(isinstance(m, str) for m in metric_names):
        raise InputValidationError("Snapshot must declare 'metrics' as a list of names")

    sections = {}
    for key, category in _SECTIONS:
        raw_entities = document.get(key) or []
        if not isinstance(raw_entities, list):
            raise InputValidationError(f"'{key}' must be a list")
        sections[key] = [_build_entity(raw, category, metric_names) for raw in raw_entities]

    try:
        search_time = int(document.get("search_time", 0))
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"'search_time' must be an integer: {e}") from e

    snapshot = EntitySearchResult(
        classes=sections["classes"],
        methods=sections["methods"],
        fields=sections["fields"],
        metric_names=metric_names,
        search_time=search_time,
    )
    logger.info(
        f"Loaded snapshot: {len(snapshot.classes)} classes, {len(snapshot.methods)} methods, "
        f"{len(snapshot.fields)} fields, {snapshot.properties_count} properties"
    )
    return snapshot


def _build_entity(raw: Any, category: EntityCategory, metric_names: list[str]) -> Entity:
    if not isinstance(raw, dict) or "name" not in raw:
        raise InputValidationError(f"Malformed {category.value} entry: {raw!r}")

    metrics = raw.get("metrics") or {}
    if not isinstance(metrics, dict):
        raise InputValidationError(f"{raw['name']}: 'metrics' must be a mapping")

    kwargs: dict[str, Any] = {
        "relevant_properties": raw.get("properties", []),
    }
    if category is EntityCategory.CLASS:
        kwargs["supers"] = raw.get("supers", [])
        kwargs["declared_methods"] = raw.get("declared_methods", [])
    else:
        kwargs["class_name"] = raw.get("class_name")
        movable = raw.get("movable", True)
        if not isinstance(movable, bool):
            raise InputValidationError(f"{raw['name']}: 'movable' must be a boolean")
        kwargs["movable"] = movable
        if category is EntityCategory.METHOD and raw.get("signature"):
            kwargs["signature"] = raw["signature"]

    try:
        return Entity.from_metrics(raw["name"], category, metrics, metric_names, **kwargs)
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"{raw['name']}: {e}") from e


def load_snapshot(path: str | Path) -> EntitySearchResult:
    """
    Load a snapshot from a ``.json`` or ``.yaml``/``.yml`` file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InputValidationError: If the file cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InputValidationError(f"Failed to parse snapshot {path}: {e}") from e

    return snapshot_from_dict(document)
