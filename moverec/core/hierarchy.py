"""
Inheritance graph and the safety filter for method moves.

Moving a method along its own inheritance chain, or moving a method that
overrides (or is overridden by) a method of a shared ancestor, would change
polymorphic dispatch. Such moves are vetoed regardless of distance.
"""

from typing import Iterable, Mapping

import networkx as nx

from moverec.entities.entity import Entity, EntityCategory
from moverec.exceptions import InputValidationError, UnsafeMove
from moverec.utils.logging_utils import get_logger


class InheritanceGraph:
    """Directed graph of the known classes with edges ``subclass -> super``."""

    def __init__(self, classes: Iterable[Entity]):
        self.logger = get_logger(self.__class__.__name__)
        self.graph = nx.DiGraph()

        classes = list(classes)
        for class_entity in classes:
            self.graph.add_node(class_entity.name)

        # Supers outside the analysis universe (library classes) are ignored.
        for class_entity in classes:
            for super_name in class_entity.supers:
                if super_name in self.graph:
                    self.graph.add_edge(class_entity.name, super_name)

        if not nx.is_directed_acyclic_graph(self.graph):
            self.logger.warning("Inheritance graph contains cycles; ancestry may be inexact")

    def __contains__(self, class_name: str) -> bool:
        return class_name in self.graph

    def ancestors(self, class_name: str) -> set[str]:
        """Transitive supers of ``class_name`` restricted to known classes."""
        if class_name not in self.graph:
            return set()
        return set(nx.descendants(self.graph, class_name))

    def is_ancestor(self, candidate: str, class_name: str) -> bool:
        return candidate in self.ancestors(class_name)

    def common_ancestors(self, first: str, second: str) -> set[str]:
        return self.ancestors(first) & self.ancestors(second)


class SafetyFilter:
    """Boolean gate applied to a proposed method move."""

    def __init__(self, hierarchy: InheritanceGraph):
        self.hierarchy = hierarchy
        self.logger = get_logger(self.__class__.__name__)

    def check(
        self,
        method: Entity,
        source: str,
        target: str,
        classes: Mapping[str, Entity],
    ) -> None:
        """
        Validate moving ``method`` from ``source`` to ``target``.

        Args:
            method: The method entity
            source: Current owner class name
            target: Proposed target class name
            classes: Current class entities by name (their declared methods)

        Raises:
            UnsafeMove: If the move crosses the inheritance chain or touches an override
        """
        if method.category is not EntityCategory.METHOD:
            raise InputValidationError(f"{method.name} is not a method")

        if self.hierarchy.is_ancestor(target, source):
            raise UnsafeMove(method.name, f"target {target} is a superclass of {source}")
        if self.hierarchy.is_ancestor(source, target):
            raise UnsafeMove(method.name, f"source {source} is a superclass of {target}")

        for ancestor in sorted(self.hierarchy.common_ancestors(source, target)):
            ancestor_entity = classes.get(ancestor)
            if ancestor_entity is not None and method.signature in ancestor_entity.declared_methods:
                raise UnsafeMove(
                    method.name,
                    f"{method.signature} overrides a method of common ancestor {ancestor}",
                )

    def is_safe(
        self,
        method: Entity,
        source: str,
        target: str,
        classes: Mapping[str, Entity],
    ) -> bool:
        try:
            self.check(method, source, target, classes)
        except UnsafeMove as e:
            self.logger.debug(f"Rejected move: {e}")
            return False
        return True
