"""Translate change-detector output into an ordered, constraint-safe command list.

Order within one write is load-bearing:

1. pre-steps detach (or delete) rows that would otherwise hold a second link to
   the same one-to-one target
2. the main INSERT/UPDATE/DELETE
3. post-steps write keys stored in related tables, which need the owner's id
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, update

from resmap.adapters.sqlalchemy.commands import ParameterGenerator, SqlCommand
from resmap.domain.errors import InconsistentChangeError
from resmap.domain.model import is_default_id, stored_id
from resmap.domain.row_counts import ExpectedRows

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import ColumnElement, Table

    from resmap.adapters.sqlalchemy.data_model import SqlAlchemyDataModel
    from resmap.domain.change_detection import ResourceChangeDetector, ToManyChange, ToOneChange
    from resmap.domain.model import RelationshipForeignKey, ResourceIdentity, ResourceType

log = logging.getLogger(__name__)


@dataclass(slots=True)
class WritePlan:
    """Commands for one update or set-relationship request."""

    pre_steps: list[SqlCommand] = field(default_factory=list["SqlCommand"])
    main_step: SqlCommand | None = None
    post_steps: list[SqlCommand] = field(default_factory=list["SqlCommand"])

    @property
    def is_empty(self) -> bool:
        return not self.pre_steps and self.main_step is None and not self.post_steps

    @property
    def commands(self) -> list[SqlCommand]:
        main = [self.main_step] if self.main_step is not None else []
        return [*self.pre_steps, *main, *self.post_steps]


def ordered_ids(identities: Iterable[ResourceIdentity]) -> list[object]:
    """Return stored ids, sorted when they are mutually comparable."""

    ids = [stored_id(identity) for identity in identities]
    try:
        return sorted(ids)  # pyright: ignore[reportCallIssue, reportArgumentType]
    except TypeError:
        return ids


class CommandSequencer:
    def __init__(self, data_model: SqlAlchemyDataModel) -> None:
        self._data_model = data_model

    def plan_update(self, detector: ResourceChangeDetector, left_id: object) -> WritePlan:
        return WritePlan(
            pre_steps=self.one_to_one_pre_steps(detector),
            main_step=self.update_step(detector, left_id),
            post_steps=self.post_steps(detector, left_id),
        )

    def one_to_one_pre_steps(self, detector: ResourceChangeDetector) -> list[SqlCommand]:
        commands: list[SqlCommand] = []
        for change in detector.one_to_one_relationships_becoming_non_null():
            command = self._one_to_one_pre_step(change)
            if command is not None:
                commands.append(command)
        return commands

    def insert_step(self, detector: ResourceChangeDetector) -> SqlCommand:
        resource_type = detector.resource_type
        table = self._table(resource_type)
        columns = {
            name: value
            for name, value in detector.changed_columns().items()
            if not (name == resource_type.id_column and is_default_id(value))
        }
        params = ParameterGenerator()
        statement = insert(table)
        if columns:
            statement = statement.values(
                {name: params.create(value, table.c[name].type) for name, value in columns.items()}
            )
        # exactly one row by construction
        return SqlCommand(statement, ExpectedRows.unchecked())

    def update_step(self, detector: ResourceChangeDetector, left_id: object) -> SqlCommand | None:
        columns = detector.changed_columns()
        if not columns:
            return None

        resource_type = detector.resource_type
        table = self._table(resource_type)
        params = ParameterGenerator()
        values = {name: params.create(value, table.c[name].type) for name, value in columns.items()}
        id_column = table.c[resource_type.id_column]
        statement = (
            update(table).values(values).where(id_column == params.create(left_id, id_column.type))
        )
        return SqlCommand(statement, ExpectedRows.exactly(1))

    def post_steps(self, detector: ResourceChangeDetector, left_id: object) -> list[SqlCommand]:
        commands = [
            self._to_one_post_step(change, left_id)
            for change in detector.changed_to_one_with_foreign_key_at_right_side()
        ]
        for change in detector.changed_to_many_relationships():
            commands.extend(self._to_many_post_steps(change, left_id))
        return commands

    def delete_step(self, resource_type: ResourceType, resource_id: object) -> SqlCommand:
        table = self._table(resource_type)
        id_column = table.c[resource_type.id_column]
        params = ParameterGenerator()
        statement = delete(table).where(id_column == params.create(resource_id, id_column.type))
        return SqlCommand(statement, ExpectedRows.exactly(1))

    def add_to_to_many_step(
        self,
        foreign_key: RelationshipForeignKey,
        left_id: object,
        right_ids: list[object],
    ) -> SqlCommand:
        right_type = self._right_type(foreign_key)
        table = self._table(right_type)
        params = ParameterGenerator()
        key_column = table.c[foreign_key.column_name]
        values = {foreign_key.column_name: params.create(left_id, key_column.type)}
        statement = (
            update(table)
            .values(values)
            .where(self._id_matches(table, right_type, right_ids, params))
        )
        return SqlCommand(statement, ExpectedRows.exactly(len(right_ids)))

    def remove_from_to_many_step(
        self,
        foreign_key: RelationshipForeignKey,
        right_ids: list[object],
    ) -> SqlCommand:
        right_type = self._right_type(foreign_key)
        table = self._table(right_type)
        params = ParameterGenerator()
        if foreign_key.is_nullable:
            key_column = table.c[foreign_key.column_name]
            values = {foreign_key.column_name: params.create(None, key_column.type)}
            statement = (
                update(table)
                .values(values)
                .where(self._id_matches(table, right_type, right_ids, params))
            )
        else:
            statement = delete(table).where(self._id_matches(table, right_type, right_ids, params))
        return SqlCommand(statement, ExpectedRows.exactly(len(right_ids)))

    def _one_to_one_pre_step(self, change: ToOneChange) -> SqlCommand | None:
        foreign_key = self._data_model.get_foreign_key(change.relationship)
        graph = self._data_model.resource_graph
        if foreign_key.is_at_left_side:
            resource_type = graph.get(change.relationship.left_type)
            where_column = foreign_key.column_name
            where_identity = change.new
        else:
            resource_type = graph.get(change.relationship.right_type)
            where_column = resource_type.id_column
            where_identity = change.current

        if where_identity is None:
            # nothing can be linked to a row that did not exist before this write
            return None

        table = self._table(resource_type)
        params = ParameterGenerator()
        if foreign_key.is_nullable:
            key_column = table.c[foreign_key.column_name]
            values = {foreign_key.column_name: params.create(None, key_column.type)}
            statement = (
                update(table)
                .values(values)
                .where(
                    table.c[where_column]
                    == params.create(stored_id(where_identity), table.c[where_column].type)
                )
            )
            return SqlCommand(statement, ExpectedRows.at_most_one())

        statement = delete(table).where(
            table.c[where_column]
            == params.create(stored_id(where_identity), table.c[where_column].type)
        )
        return SqlCommand(statement, ExpectedRows.unchecked())

    def _to_one_post_step(self, change: ToOneChange, left_id: object) -> SqlCommand:
        foreign_key = self._data_model.get_foreign_key(change.relationship)
        right_type = self._right_type(foreign_key)
        table = self._table(right_type)
        target = change.new if change.new is not None else change.current
        if target is None:
            raise InconsistentChangeError(
                f"To-one change of '{change.relationship.public_name}' has no related resource."
            )

        params = ParameterGenerator()
        key_column = table.c[foreign_key.column_name]
        key_value = None if change.new is None else left_id
        values = {foreign_key.column_name: params.create(key_value, key_column.type)}
        statement = (
            update(table)
            .values(values)
            .where(self._id_matches(table, right_type, [stored_id(target)], params))
        )
        return SqlCommand(statement, ExpectedRows.at_least_one())

    def _to_many_post_steps(self, change: ToManyChange, left_id: object) -> list[SqlCommand]:
        foreign_key = self._data_model.get_foreign_key(change.relationship)
        commands: list[SqlCommand] = []

        removed = ordered_ids(change.removed)
        if removed:
            commands.append(self.remove_from_to_many_step(foreign_key, removed))

        added = ordered_ids(change.added)
        if added:
            commands.append(self.add_to_to_many_step(foreign_key, left_id, added))

        log.debug(
            "To-many %s.%s: %d removed, %d added",
            change.relationship.left_type,
            change.relationship.public_name,
            len(removed),
            len(added),
        )
        return commands

    def _id_matches(
        self,
        table: Table,
        resource_type: ResourceType,
        ids: list[object],
        params: ParameterGenerator,
    ) -> ColumnElement[bool]:
        id_column = table.c[resource_type.id_column]
        if len(ids) == 1:
            return id_column == params.create(ids[0], id_column.type)
        return id_column.in_([params.create(value, id_column.type) for value in ids])

    def _right_type(self, foreign_key: RelationshipForeignKey) -> ResourceType:
        return self._data_model.resource_graph.get(foreign_key.relationship.right_type)

    def _table(self, resource_type: ResourceType) -> Table:
        return self._data_model.get_table(resource_type)
