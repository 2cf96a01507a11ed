"""Data model service backed by SQLAlchemy table metadata."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from resmap.domain.errors import DataModelError
from resmap.domain.model import ForeignKeySide, RelationshipForeignKey

if TYPE_CHECKING:
    from sqlalchemy import Column, MetaData, Table

    from resmap.domain.model import Relationship, Resource, ResourceGraph, ResourceType

log = logging.getLogger(__name__)


class SqlAlchemyDataModel:
    """Resolves tables, columns and foreign-key placement from a ``MetaData``.

    A relationship's key column is looked up on the left type's table first; if
    it is not there it must exist on the right type's table. Nullability is
    read from the column definition.
    """

    def __init__(self, resource_graph: ResourceGraph, metadata: MetaData) -> None:
        self._resource_graph = resource_graph
        self._metadata = metadata
        self._foreign_keys: dict[Relationship, RelationshipForeignKey] = {}
        self._column_names: dict[str, tuple[str, ...]] = {}

    @property
    def resource_graph(self) -> ResourceGraph:
        return self._resource_graph

    def get_table(self, resource_type: ResourceType) -> Table:
        table = self._metadata.tables.get(resource_type.table_name)
        if table is None:
            raise DataModelError(
                f"Table '{resource_type.table_name}' for resource type "
                f"'{resource_type.public_name}' is not defined."
            )
        return table

    def get_column(self, resource_type: ResourceType, column_name: str) -> Column[object]:
        table = self.get_table(resource_type)
        if column_name not in table.c:
            raise DataModelError(f"Column '{column_name}' does not exist on table '{table.name}'.")
        return table.c[column_name]

    def get_foreign_key(self, relationship: Relationship) -> RelationshipForeignKey:
        cached = self._foreign_keys.get(relationship)
        if cached is not None:
            return cached

        left_table = self.get_table(self._resource_graph.get(relationship.left_type))
        right_table = self.get_table(self._resource_graph.get(relationship.right_type))
        column_name = relationship.foreign_key

        if relationship.is_to_one and column_name in left_table.c:
            column = left_table.c[column_name]
            side = ForeignKeySide.LEFT
        elif column_name in right_table.c:
            column = right_table.c[column_name]
            side = ForeignKeySide.RIGHT
        else:
            raise DataModelError(
                f"Foreign key column '{column_name}' of relationship "
                f"'{relationship.left_type}.{relationship.public_name}' not found."
            )

        foreign_key = RelationshipForeignKey(
            relationship=relationship,
            column_name=column_name,
            is_nullable=bool(column.nullable),
            side=side,
        )
        log.debug(
            "Resolved foreign key %s.%s -> %s (%s, nullable=%s)",
            relationship.left_type,
            relationship.public_name,
            column_name,
            side,
            foreign_key.is_nullable,
        )
        self._foreign_keys[relationship] = foreign_key
        return foreign_key

    def get_column_names(self, resource_type: ResourceType) -> tuple[str, ...]:
        cached = self._column_names.get(resource_type.public_name)
        if cached is not None:
            return cached

        names: list[str] = [resource_type.id_column]
        names.extend(item.column_name for item in resource_type.attributes)
        for relationship in resource_type.relationships:
            if not relationship.is_to_one:
                continue
            if self.get_foreign_key(relationship).is_at_left_side:
                names.append(relationship.foreign_key)

        for name in names:
            self.get_column(resource_type, name)

        column_names = tuple(dict.fromkeys(names))
        self._column_names[resource_type.public_name] = column_names
        return column_names

    def get_column_value(
        self,
        resource_type: ResourceType,
        resource: Resource,
        column_name: str,
    ) -> object:
        if column_name == resource_type.id_column:
            return resource.id
        for item in resource_type.attributes:
            if item.column_name == column_name:
                return getattr(resource, item.property_name)
        for relationship in resource_type.relationships:
            if relationship.is_to_one and relationship.foreign_key == column_name:
                related = relationship.right_resources(resource)
                return related[0].id if related else None
        raise DataModelError(
            f"Column '{column_name}' is not mapped on resource type '{resource_type.public_name}'."
        )
