"""Snapshot-based change detection for one resource.

A detector captures the column values and one level of relationship membership
of a resource twice (before and after a request is applied) and reports the
deltas the command sequencer needs:

- changed columns (left-side foreign keys are plain columns here)
- one-to-one relationships that get attached to a new related resource
- to-one relationships whose key lives in the related table
- to-many relationships whose membership changed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from resmap.domain.errors import CannotClearRequiredRelationshipError, ResourceTypeMismatchError

if TYPE_CHECKING:
    from resmap.domain.model import Relationship, Resource, ResourceIdentity, ResourceType
    from resmap.domain.ports import DataModelService

log = logging.getLogger(__name__)

ColumnSnapshot: TypeAlias = "dict[str, object]"
RelationshipSnapshot: TypeAlias = "dict[Relationship, frozenset[ResourceIdentity]]"


@dataclass(frozen=True, slots=True)
class ToOneChange:
    relationship: Relationship
    current: ResourceIdentity | None
    new: ResourceIdentity | None


@dataclass(frozen=True, slots=True)
class ToManyChange:
    relationship: Relationship
    current: frozenset[ResourceIdentity]
    new: frozenset[ResourceIdentity]

    @property
    def removed(self) -> frozenset[ResourceIdentity]:
        return self.current - self.new

    @property
    def added(self) -> frozenset[ResourceIdentity]:
        return self.new - self.current


def _single(identities: frozenset[ResourceIdentity] | None) -> ResourceIdentity | None:
    if not identities:
        return None
    return next(iter(identities))


class ResourceChangeDetector:
    """Computes column and relationship deltas between two captures of a resource."""

    def __init__(self, resource_type: ResourceType, data_model: DataModelService) -> None:
        self.resource_type = resource_type
        self._data_model = data_model
        self._current_columns: ColumnSnapshot = {}
        self._current_relationships: RelationshipSnapshot = {}
        self._new_columns: ColumnSnapshot = {}
        self._new_relationships: RelationshipSnapshot = {}

    def capture_current(self, resource: Resource) -> None:
        self._assert_expected_type(resource)
        self._current_columns = self._capture_columns(resource)
        self._current_relationships = self._capture_relationships(resource)

    def capture_new(self, resource: Resource) -> None:
        self._assert_expected_type(resource)
        self._new_columns = self._capture_columns(resource)
        self._new_relationships = self._capture_relationships(resource)

    def changed_columns(self) -> dict[str, object]:
        """Return new values of all columns that differ from the current capture.

        A column missing from the current capture counts as changed.
        """

        changes: dict[str, object] = {}
        for column_name, new_value in self._new_columns.items():
            if column_name not in self._current_columns:
                changes[column_name] = new_value
                continue
            if self._current_columns[column_name] != new_value:
                changes[column_name] = new_value
        return changes

    def one_to_one_relationships_becoming_non_null(self) -> list[ToOneChange]:
        changes: list[ToOneChange] = []
        for relationship, new_identities in self._new_relationships.items():
            if not relationship.is_one_to_one:
                continue
            new = _single(new_identities)
            if new is None:
                continue
            current = _single(self._current_relationships.get(relationship))
            if current != new:
                changes.append(ToOneChange(relationship, current, new))
        return changes

    def changed_to_one_with_foreign_key_at_right_side(self) -> list[ToOneChange]:
        changes: list[ToOneChange] = []
        for relationship, new_identities in self._new_relationships.items():
            if not relationship.is_to_one:
                continue
            foreign_key = self._data_model.get_foreign_key(relationship)
            if foreign_key.is_at_left_side:
                # handled through changed_columns()
                continue
            current = _single(self._current_relationships.get(relationship))
            new = _single(new_identities)
            if current != new:
                changes.append(ToOneChange(relationship, current, new))
        return changes

    def changed_to_many_relationships(self) -> list[ToManyChange]:
        changes: list[ToManyChange] = []
        for relationship, new_identities in self._new_relationships.items():
            if not relationship.is_to_many:
                continue
            current = self._current_relationships.get(relationship, frozenset())
            if current != new_identities:
                changes.append(ToManyChange(relationship, current, new_identities))
        return changes

    def assert_no_required_to_one_cleared_to_null(self, resource_type_name: str) -> None:
        for relationship, new_identities in self._new_relationships.items():
            if not relationship.is_to_one:
                continue
            foreign_key = self._data_model.get_foreign_key(relationship)
            if foreign_key.is_nullable:
                continue
            current = _single(self._current_relationships.get(relationship))
            new = _single(new_identities)
            if current != new and new is None:
                log.debug(
                    "Rejecting write that clears required relationship %s.%s",
                    resource_type_name,
                    relationship.public_name,
                )
                raise CannotClearRequiredRelationshipError(
                    relationship.public_name, resource_type_name
                )

    def _assert_expected_type(self, resource: Resource) -> None:
        if not self.resource_type.is_instance(resource):
            raise ResourceTypeMismatchError(
                self.resource_type.public_name, type(resource).__name__
            )

    def _capture_columns(self, resource: Resource) -> ColumnSnapshot:
        return {
            column_name: self._data_model.get_column_value(
                self.resource_type, resource, column_name
            )
            for column_name in self._data_model.get_column_names(self.resource_type)
        }

    def _capture_relationships(self, resource: Resource) -> RelationshipSnapshot:
        return {
            relationship: frozenset(
                right.identity for right in relationship.right_resources(resource)
            )
            for relationship in self.resource_type.relationships
        }
