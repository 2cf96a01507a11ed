"""Include trees: which relationships are joined, and at what nesting."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from resmap.domain.model import Relationship, ResourceGraph, ResourceType


@dataclass(frozen=True, slots=True)
class IncludeNode:
    relationship: Relationship
    children: tuple[IncludeNode, ...] = ()

    def with_child(self, child: IncludeNode) -> IncludeNode:
        return replace(self, children=_merge(self.children, child))


@dataclass(frozen=True, slots=True)
class IncludeTree:
    children: tuple[IncludeNode, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.children

    @classmethod
    def from_paths(
        cls,
        resource_type: ResourceType,
        resource_graph: ResourceGraph,
        paths: Iterable[str],
    ) -> IncludeTree:
        """Build a tree from dotted relationship paths such as ``owner.account``."""

        children: tuple[IncludeNode, ...] = ()
        for path in paths:
            names = [name for name in path.split(".") if name]
            if names:
                children = _merge(children, _chain(resource_type, resource_graph, names))
        return cls(children=children)


def _chain(
    resource_type: ResourceType,
    resource_graph: ResourceGraph,
    names: list[str],
) -> IncludeNode:
    relationship = resource_type.relationship(names[0])
    if len(names) == 1:
        return IncludeNode(relationship)
    right_type = resource_graph.get(relationship.right_type)
    return IncludeNode(relationship, (_chain(right_type, resource_graph, names[1:]),))


def _merge(nodes: tuple[IncludeNode, ...], addition: IncludeNode) -> tuple[IncludeNode, ...]:
    for index, node in enumerate(nodes):
        if node.relationship == addition.relationship:
            merged = node
            for child in addition.children:
                merged = merged.with_child(child)
            return (*nodes[:index], merged, *nodes[index + 1 :])
    return (*nodes, addition)
