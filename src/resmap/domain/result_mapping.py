"""Fold flat join rows into a deduplicated graph of resources.

Each row holds one resource (or None) per position. Position 0 is the primary
resource; the remaining positions follow a breadth-first walk of the include
tree with sibling relationships ordered by public name. The same layout is used
by the select builder, so column order and row positions always agree.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from resmap.domain.errors import ResultSetMismatchError
from resmap.domain.model import is_default_id

if TYPE_CHECKING:
    from collections.abc import Sequence

    from resmap.domain.include import IncludeNode, IncludeTree
    from resmap.domain.model import Relationship, Resource, ResourceGraph, ResourceType


@dataclass(slots=True)
class ResultPosition:
    """Typed descriptor for one slot of a result row."""

    index: int
    resource_type: ResourceType
    relationship: Relationship | None = None
    parent: int | None = None
    children: list[int] = field(default_factory=list["int"])


def build_positions(
    primary_type: ResourceType,
    include: IncludeTree,
    resource_graph: ResourceGraph,
) -> tuple[ResultPosition, ...]:
    positions = [ResultPosition(index=0, resource_type=primary_type)]
    pending: deque[tuple[int, tuple[IncludeNode, ...]]] = deque([(0, include.children)])
    while pending:
        parent_index, nodes = pending.popleft()
        for node in sorted(nodes, key=lambda item: item.relationship.public_name):
            position = ResultPosition(
                index=len(positions),
                resource_type=resource_graph.get(node.relationship.right_type),
                relationship=node.relationship,
                parent=parent_index,
            )
            positions.append(position)
            positions[parent_index].children.append(position.index)
            pending.append((position.index, node.children))
    return tuple(positions)


class ResultSetMapper:
    """Identity-mapped reconstruction of one read operation's resources."""

    def __init__(
        self,
        primary_type: ResourceType,
        include: IncludeTree,
        resource_graph: ResourceGraph,
    ) -> None:
        self.primary_type = primary_type
        self.positions = build_positions(primary_type, include, resource_graph)
        self._identity_map: dict[tuple[str, object], Resource] = {}
        self._primary_resources: list[Resource] = []

    @property
    def resource_types(self) -> tuple[ResourceType, ...]:
        return tuple(position.resource_type for position in self.positions)

    def map(self, row: Sequence[Resource | None]) -> Resource:
        if len(row) != len(self.positions):
            raise ResultSetMismatchError(
                f"Expected {len(self.positions)} objects per row, got {len(row)}."
            )

        resolved = [self._get_cached(item) for item in row]
        primary = resolved[0]
        if primary is None:
            raise ResultSetMismatchError("Primary resource is missing from result row.")

        self._assign_children(self.positions[0], resolved)
        self._primary_resources.append(primary)
        return primary

    def get_resources(self) -> list[Resource]:
        seen: set[object] = set()
        resources: list[Resource] = []
        for resource in self._primary_resources:
            if resource.id in seen:
                continue
            seen.add(resource.id)
            resources.append(resource)
        return resources

    def _assign_children(self, position: ResultPosition, resolved: list[Resource | None]) -> None:
        parent = resolved[position.index]
        if parent is None:
            return
        for child_index in position.children:
            child = resolved[child_index]
            if child is None:
                continue
            child_position = self.positions[child_index]
            relationship = child_position.relationship
            if relationship is None:
                raise ResultSetMismatchError("Non-primary position without a relationship.")
            _attach(parent, relationship, child)
            self._assign_children(child_position, resolved)

    def _get_cached(self, resource: Resource | None) -> Resource | None:
        # a default id means the outer join found no row, whatever the other columns hold
        if resource is None or is_default_id(resource.id):
            return None
        key = (resource.resource_type, resource.id)
        return self._identity_map.setdefault(key, resource)


def _attach(parent: Resource, relationship: Relationship, child: Resource) -> None:
    if relationship.is_to_one:
        relationship.set_value(parent, child)
        return

    collection = relationship.get_value(parent)
    if collection is None:
        relationship.set_value(parent, [child])
        return
    if not isinstance(collection, list):
        raise ResultSetMismatchError(
            f"Relationship '{relationship.public_name}' must hold a list of resources."
        )
    items: list[Resource] = collection  # pyright: ignore[reportUnknownVariableType]
    if not any(item is child for item in items):
        items.append(child)
