"""Build the join query whose rows feed the result set mapper."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import bindparam, func, select

from resmap.domain.errors import ResultSetMismatchError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Select
    from sqlalchemy.engine import Row
    from sqlalchemy.sql.selectable import Alias, FromClause

    from resmap.adapters.sqlalchemy.data_model import SqlAlchemyDataModel
    from resmap.domain.model import Resource, ResourceType
    from resmap.domain.result_mapping import ResultPosition


@dataclass(frozen=True, slots=True)
class PositionLayout:
    """Which properties one row position fills, in selected column order."""

    position: ResultPosition
    property_names: tuple[str, ...]

    @property
    def width(self) -> int:
        return len(self.property_names)


@dataclass(frozen=True, slots=True)
class SelectQuery:
    statement: Select[tuple[object, ...]]
    layouts: tuple[PositionLayout, ...]

    def split(self, row: Row[tuple[object, ...]] | Sequence[object]) -> list[Resource]:
        """Materialize one flat row into one resource per position."""

        resources: list[Resource] = []
        offset = 0
        for layout in self.layouts:
            values = row[offset : offset + layout.width]
            offset += layout.width
            resource = layout.position.resource_type.create_instance()
            for name, value in zip(layout.property_names, values, strict=True):
                setattr(resource, name, value)
            resources.append(resource)
        return resources


class SelectStatementBuilder:
    """Left-joins one table alias per result position onto the primary table."""

    def __init__(self, data_model: SqlAlchemyDataModel) -> None:
        self._data_model = data_model

    def build(
        self,
        positions: Sequence[ResultPosition],
        *,
        resource_id: object | None = None,
    ) -> SelectQuery:
        aliases: list[Alias] = []
        columns: list[object] = []
        layouts: list[PositionLayout] = []

        for position in positions:
            resource_type = position.resource_type
            alias = self._data_model.get_table(resource_type).alias(f"t{position.index + 1}")
            aliases.append(alias)

            column_names = [resource_type.id_column]
            property_names = ["id"]
            for item in resource_type.attributes:
                column_names.append(item.column_name)
                property_names.append(item.property_name)
            columns.extend(
                alias.c[name].label(f"t{position.index + 1}_{name}") for name in column_names
            )
            layouts.append(PositionLayout(position, tuple(property_names)))

        source: FromClause = aliases[0]
        for position in positions[1:]:
            if position.parent is None or position.relationship is None:
                raise ResultSetMismatchError(
                    f"Position {position.index} has no parent relationship to join on."
                )
            parent = aliases[position.parent]
            child = aliases[position.index]
            parent_type = positions[position.parent].resource_type
            foreign_key = self._data_model.get_foreign_key(position.relationship)
            if foreign_key.is_at_left_side:
                on_clause = (
                    parent.c[foreign_key.column_name]
                    == child.c[position.resource_type.id_column]
                )
            else:
                on_clause = child.c[foreign_key.column_name] == parent.c[parent_type.id_column]
            source = source.outerjoin(child, on_clause)

        primary_id = aliases[0].c[positions[0].resource_type.id_column]
        statement = select(*columns).select_from(source)  # pyright: ignore[reportArgumentType]
        if resource_id is not None:
            statement = statement.where(
                primary_id == bindparam("p1", resource_id, type_=primary_id.type)
            )
        statement = statement.order_by(
            *(
                alias.c[position.resource_type.id_column]
                for alias, position in zip(aliases, positions, strict=True)
            )
        )
        return SelectQuery(statement, tuple(layouts))

    def build_count(self, resource_type: ResourceType) -> Select[tuple[int]]:
        """Count every row of the primary table; includes do not affect the total."""

        table = self._data_model.get_table(resource_type)
        return select(func.count()).select_from(table)
