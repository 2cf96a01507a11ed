"""Port for table/column/foreign-key metadata about resource types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from resmap.domain.model import (
        Relationship,
        RelationshipForeignKey,
        Resource,
        ResourceGraph,
        ResourceType,
    )


@runtime_checkable
class DataModelService(Protocol):
    """Reports how resource types map onto tables and columns."""

    @property
    def resource_graph(self) -> ResourceGraph: ...

    def get_foreign_key(self, relationship: Relationship) -> RelationshipForeignKey: ...

    def get_column_names(self, resource_type: ResourceType) -> tuple[str, ...]:
        """Return every mapped column of the type's table, id column first."""
        ...

    def get_column_value(
        self,
        resource_type: ResourceType,
        resource: Resource,
        column_name: str,
    ) -> object:
        """Read one column value off a resource (key columns yield the related id)."""
        ...
