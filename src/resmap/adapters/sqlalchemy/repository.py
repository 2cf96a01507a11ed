"""Resource repository: orchestrates change detection, sequencing and execution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from resmap.adapters.sqlalchemy.select_builder import SelectStatementBuilder
from resmap.adapters.sqlalchemy.sequencer import CommandSequencer, ordered_ids
from resmap.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
from resmap.domain.change_detection import ResourceChangeDetector
from resmap.domain.errors import DataModelError
from resmap.domain.include import IncludeTree
from resmap.domain.result_mapping import ResultSetMapper

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from resmap.adapters.sqlalchemy.data_model import SqlAlchemyDataModel
    from resmap.domain.cancellation import Cancellation
    from resmap.domain.model import Relationship, Resource, ResourceIdentity, ResourceType

log = logging.getLogger(__name__)

TResult = TypeVar("TResult")


@dataclass(frozen=True, slots=True)
class TargetedFields:
    """Attributes and relationships a request explicitly provides values for."""

    attributes: frozenset[str] = frozenset()
    relationships: frozenset[str] = frozenset()

    @classmethod
    def of(
        cls,
        *,
        attributes: Iterable[str] = (),
        relationships: Iterable[str] = (),
    ) -> TargetedFields:
        return cls(attributes=frozenset(attributes), relationships=frozenset(relationships))


def _unique_by_identity(resources: Iterable[Resource]) -> list[Resource]:
    seen: set[ResourceIdentity] = set()
    unique: list[Resource] = []
    for resource in resources:
        if resource.identity in seen:
            continue
        seen.add(resource.identity)
        unique.append(resource)
    return unique


class SqlAlchemyResourceRepository:
    """Reads and writes resources of one type.

    Pass ``unit_of_work`` to run inside an already open transaction (for
    example several operations in one atomic request); the caller then owns
    commit and rollback. Otherwise each write opens, commits and closes its own.
    """

    def __init__(
        self,
        resource_type: ResourceType,
        data_model: SqlAlchemyDataModel,
        *,
        unit_of_work: SqlAlchemyUnitOfWork | None = None,
    ) -> None:
        self.resource_type = resource_type
        self._data_model = data_model
        self._sequencer = CommandSequencer(data_model)
        self._select_builder = SelectStatementBuilder(data_model)
        self._ambient = unit_of_work

    def get(
        self,
        include: IncludeTree | None = None,
        *,
        resource_id: object | None = None,
        cancellation: Cancellation | None = None,
    ) -> list[Resource]:
        mapper = ResultSetMapper(
            self.resource_type,
            include or IncludeTree(),
            self._data_model.resource_graph,
        )
        query = self._select_builder.build(mapper.positions, resource_id=resource_id)

        def read(uow: SqlAlchemyUnitOfWork) -> list[Resource]:
            for row in uow.stream(query.statement, cancellation):
                mapper.map(query.split(row))
            return mapper.get_resources()

        return self._run_query(read)

    def get_by_id(
        self,
        resource_id: object,
        include: IncludeTree | None = None,
        *,
        cancellation: Cancellation | None = None,
    ) -> Resource | None:
        resources = self.get(include, resource_id=resource_id, cancellation=cancellation)
        return resources[0] if resources else None

    def count(self, *, cancellation: Cancellation | None = None) -> int:
        statement = self._select_builder.build_count(self.resource_type)
        return self._run_query(lambda uow: uow.scalar(statement, cancellation))

    def create(
        self,
        resource_from_request: Resource,
        resource_for_database: Resource,
        targeted_fields: TargetedFields,
        *,
        cancellation: Cancellation | None = None,
    ) -> None:
        detector = ResourceChangeDetector(self.resource_type, self._data_model)
        self._apply_targeted_fields(resource_from_request, resource_for_database, targeted_fields)
        detector.capture_new(resource_for_database)

        pre_steps = self._sequencer.one_to_one_pre_steps(detector)
        insert_step = self._sequencer.insert_step(detector)

        def write(uow: SqlAlchemyUnitOfWork) -> None:
            uow.execute_commands(pre_steps, cancellation)
            resource_for_database.id = uow.execute_insert(insert_step, cancellation)
            post_steps = self._sequencer.post_steps(detector, resource_for_database.id)
            uow.execute_commands(post_steps, cancellation)

        self._run_in_transaction(write)
        log.info("Created %s %s", self.resource_type.public_name, resource_for_database.id)

    def update(
        self,
        resource_from_request: Resource,
        resource_from_database: Resource,
        targeted_fields: TargetedFields,
        *,
        cancellation: Cancellation | None = None,
    ) -> bool:
        """Apply the request and persist the delta; return False when nothing changed."""

        detector = ResourceChangeDetector(self.resource_type, self._data_model)
        detector.capture_current(resource_from_database)
        self._apply_targeted_fields(resource_from_request, resource_from_database, targeted_fields)
        detector.capture_new(resource_from_database)
        return self._persist_changes(detector, resource_from_database.id, cancellation)

    def set_relationship(
        self,
        left_resource: Resource,
        relationship_name: str,
        right_value: Resource | Iterable[Resource] | None,
        *,
        cancellation: Cancellation | None = None,
    ) -> bool:
        relationship = self.resource_type.relationship(relationship_name)

        detector = ResourceChangeDetector(self.resource_type, self._data_model)
        detector.capture_current(left_resource)
        relationship.set_value(left_resource, self._normalize_value(relationship, right_value))
        detector.capture_new(left_resource)
        return self._persist_changes(detector, left_resource.id, cancellation)

    def delete(self, resource_id: object, *, cancellation: Cancellation | None = None) -> None:
        command = self._sequencer.delete_step(self.resource_type, resource_id)
        self._run_in_transaction(lambda uow: uow.execute_commands([command], cancellation))
        log.info("Deleted %s %s", self.resource_type.public_name, resource_id)

    def add_to_to_many(
        self,
        left_id: object,
        relationship_name: str,
        right_resources: Iterable[Resource],
        *,
        cancellation: Cancellation | None = None,
    ) -> None:
        relationship = self._to_many(relationship_name)
        right_ids = ordered_ids(item.identity for item in _unique_by_identity(right_resources))
        if not right_ids:
            return

        foreign_key = self._data_model.get_foreign_key(relationship)
        command = self._sequencer.add_to_to_many_step(foreign_key, left_id, right_ids)
        self._run_in_transaction(lambda uow: uow.execute_commands([command], cancellation))

    def remove_from_to_many(
        self,
        left_id: object,
        relationship_name: str,
        right_resources: Iterable[Resource],
        *,
        cancellation: Cancellation | None = None,
    ) -> None:
        relationship = self._to_many(relationship_name)
        right_ids = ordered_ids(item.identity for item in _unique_by_identity(right_resources))
        if not right_ids:
            return

        foreign_key = self._data_model.get_foreign_key(relationship)
        command = self._sequencer.remove_from_to_many_step(foreign_key, right_ids)
        self._run_in_transaction(lambda uow: uow.execute_commands([command], cancellation))
        log.info(
            "Removed %d from %s.%s of %s",
            len(right_ids),
            self.resource_type.public_name,
            relationship_name,
            left_id,
        )

    def _persist_changes(
        self,
        detector: ResourceChangeDetector,
        left_id: object,
        cancellation: Cancellation | None,
    ) -> bool:
        detector.assert_no_required_to_one_cleared_to_null(self.resource_type.public_name)

        plan = self._sequencer.plan_update(detector, left_id)
        if plan.is_empty:
            log.debug("No changes to persist for %s %s", self.resource_type.public_name, left_id)
            return False

        self._run_in_transaction(lambda uow: uow.execute_commands(plan.commands, cancellation))
        return True

    def _apply_targeted_fields(
        self,
        resource_from_request: Resource,
        resource_in_database: Resource,
        targeted_fields: TargetedFields,
    ) -> None:
        for relationship in self.resource_type.relationships:
            if relationship.public_name not in targeted_fields.relationships:
                continue
            value = relationship.get_value(resource_from_request)
            relationship.set_value(resource_in_database, self._normalize_value(relationship, value))

        for item in self.resource_type.attributes:
            if item.public_name not in targeted_fields.attributes:
                continue
            value = getattr(resource_from_request, item.property_name)
            setattr(resource_in_database, item.property_name, value)

    def _normalize_value(self, relationship: Relationship, value: object) -> object:
        if not relationship.is_to_many:
            return value
        if value is None:
            return []
        return _unique_by_identity(value)  # pyright: ignore[reportArgumentType]

    def _to_many(self, relationship_name: str) -> Relationship:
        relationship = self.resource_type.relationship(relationship_name)
        if not relationship.is_to_many:
            raise DataModelError(
                f"Relationship '{relationship_name}' on resource type "
                f"'{self.resource_type.public_name}' is not a to-many relationship."
            )
        return relationship

    def _run_in_transaction(self, action: Callable[[SqlAlchemyUnitOfWork], None]) -> None:
        if self._ambient is not None:
            action(self._ambient)
            return
        with SqlAlchemyUnitOfWork() as uow:
            action(uow)
            uow.commit()

    def _run_query(self, action: Callable[[SqlAlchemyUnitOfWork], TResult]) -> TResult:
        if self._ambient is not None:
            return action(self._ambient)
        with SqlAlchemyUnitOfWork() as uow:
            return action(uow)
