"""Tests for snapshot-based change detection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from resmap.domain.change_detection import ResourceChangeDetector
from resmap.domain.errors import CannotClearRequiredRelationshipError, ResourceTypeMismatchError
from resmap.domain.model import LocalIdentity, ServerIdentity
from tests.helpers.model import (
    ACCOUNT_RECOVERIES,
    LOGIN_ACCOUNTS,
    PEOPLE,
    TODO_ITEMS,
    AccountRecovery,
    LoginAccount,
    Person,
    TodoItem,
)

if TYPE_CHECKING:
    from resmap.adapters.sqlalchemy.data_model import SqlAlchemyDataModel


def test_changed_columns_reports_only_differences(data_model: SqlAlchemyDataModel) -> None:
    item = TodoItem(id=1, description="Write tests", priority=2, owner=Person(id=10))
    detector = ResourceChangeDetector(TODO_ITEMS, data_model)

    detector.capture_current(item)
    item.priority = 3
    detector.capture_new(item)

    assert detector.changed_columns() == {"priority": 3}


def test_changed_columns_without_current_capture_returns_everything(
    data_model: SqlAlchemyDataModel,
) -> None:
    item = TodoItem(description="New", owner=Person(id=10))
    detector = ResourceChangeDetector(TODO_ITEMS, data_model)

    detector.capture_new(item)

    assert detector.changed_columns() == {
        "id": None,
        "description": "New",
        "priority": None,
        "owner_id": 10,
        "assignee_id": None,
    }


def test_left_side_key_change_is_a_column_change(data_model: SqlAlchemyDataModel) -> None:
    item = TodoItem(id=1, description="Task", owner=Person(id=10), assignee=Person(id=11))
    detector = ResourceChangeDetector(TODO_ITEMS, data_model)

    detector.capture_current(item)
    item.assignee = Person(id=12)
    detector.capture_new(item)

    assert detector.changed_columns() == {"assignee_id": 12}
    assert detector.changed_to_one_with_foreign_key_at_right_side() == []


def test_one_to_one_becoming_non_null_is_reported(data_model: SqlAlchemyDataModel) -> None:
    person = Person(id=1, last_name="Doe")
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    person.account = LoginAccount(id=5)
    detector.capture_new(person)

    changes = detector.one_to_one_relationships_becoming_non_null()

    assert len(changes) == 1
    assert changes[0].relationship == PEOPLE.relationship("account")
    assert changes[0].current is None
    assert changes[0].new == ServerIdentity("loginAccounts", 5)


def test_one_to_one_cleared_is_not_a_pre_step_candidate(data_model: SqlAlchemyDataModel) -> None:
    person = Person(id=1, last_name="Doe", account=LoginAccount(id=5))
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    person.account = None
    detector.capture_new(person)

    assert detector.one_to_one_relationships_becoming_non_null() == []
    assert detector.changed_columns() == {"account_id": None}


def test_unchanged_one_to_one_is_not_reported(data_model: SqlAlchemyDataModel) -> None:
    person = Person(id=1, last_name="Doe", account=LoginAccount(id=5))
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    person.account = LoginAccount(id=5)
    detector.capture_new(person)

    assert detector.one_to_one_relationships_becoming_non_null() == []
    assert detector.changed_columns() == {}


def test_right_side_to_one_change_is_reported(data_model: SqlAlchemyDataModel) -> None:
    account = LoginAccount(id=5, user_name="jdoe", person=Person(id=1))
    detector = ResourceChangeDetector(LOGIN_ACCOUNTS, data_model)

    detector.capture_current(account)
    account.person = Person(id=2)
    detector.capture_new(account)

    changes = detector.changed_to_one_with_foreign_key_at_right_side()

    assert [change.relationship.public_name for change in changes] == ["person"]
    assert changes[0].current == ServerIdentity("people", 1)
    assert changes[0].new == ServerIdentity("people", 2)
    assert detector.changed_columns() == {}


def test_to_many_change_exposes_added_and_removed(data_model: SqlAlchemyDataModel) -> None:
    person = Person(
        id=1,
        owned_todo_items=[TodoItem(id=100), TodoItem(id=101)],
    )
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    person.owned_todo_items = [TodoItem(id=101), TodoItem(id=102)]
    detector.capture_new(person)

    changes = detector.changed_to_many_relationships()

    assert len(changes) == 1
    assert changes[0].relationship.public_name == "ownedTodoItems"
    assert changes[0].removed == frozenset({ServerIdentity("todoItems", 100)})
    assert changes[0].added == frozenset({ServerIdentity("todoItems", 102)})


def test_to_many_membership_ignores_order(data_model: SqlAlchemyDataModel) -> None:
    person = Person(id=1, assigned_todo_items=[TodoItem(id=1), TodoItem(id=2)])
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    person.assigned_todo_items = [TodoItem(id=2), TodoItem(id=1)]
    detector.capture_new(person)

    assert detector.changed_to_many_relationships() == []


def test_local_ids_are_tracked_as_identities(data_model: SqlAlchemyDataModel) -> None:
    person = Person(id=1)
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    person.owned_todo_items = [TodoItem(local_id="new-item")]
    detector.capture_new(person)

    (change,) = detector.changed_to_many_relationships()
    assert change.added == frozenset({LocalIdentity("todoItems", "new-item")})


def test_clearing_required_left_side_to_one_is_rejected(
    data_model: SqlAlchemyDataModel,
) -> None:
    item = TodoItem(id=1, description="Task", owner=Person(id=10))
    detector = ResourceChangeDetector(TODO_ITEMS, data_model)

    detector.capture_current(item)
    item.owner = None
    detector.capture_new(item)

    with pytest.raises(CannotClearRequiredRelationshipError) as excinfo:
        detector.assert_no_required_to_one_cleared_to_null("todoItems")

    assert excinfo.value.relationship_name == "owner"
    assert excinfo.value.resource_type_name == "todoItems"


def test_clearing_required_right_side_to_one_is_rejected(
    data_model: SqlAlchemyDataModel,
) -> None:
    recovery = AccountRecovery(id=1, account=LoginAccount(id=5))
    detector = ResourceChangeDetector(ACCOUNT_RECOVERIES, data_model)

    detector.capture_current(recovery)
    recovery.account = None
    detector.capture_new(recovery)

    with pytest.raises(CannotClearRequiredRelationshipError):
        detector.assert_no_required_to_one_cleared_to_null("accountRecoveries")


def test_clearing_nullable_to_one_is_allowed(data_model: SqlAlchemyDataModel) -> None:
    item = TodoItem(id=1, description="Task", owner=Person(id=10), assignee=Person(id=11))
    detector = ResourceChangeDetector(TODO_ITEMS, data_model)

    detector.capture_current(item)
    item.assignee = None
    detector.capture_new(item)

    detector.assert_no_required_to_one_cleared_to_null("todoItems")


def test_capture_rejects_resource_of_other_type(data_model: SqlAlchemyDataModel) -> None:
    detector = ResourceChangeDetector(TODO_ITEMS, data_model)

    with pytest.raises(ResourceTypeMismatchError):
        detector.capture_current(Person(id=1))


def test_capturing_twice_without_changes_yields_no_deltas(
    data_model: SqlAlchemyDataModel,
) -> None:
    person = Person(
        id=1,
        first_name=None,
        last_name="Doe",
        account=LoginAccount(id=5),
        owned_todo_items=[TodoItem(id=1), TodoItem(id=2)],
    )
    detector = ResourceChangeDetector(PEOPLE, data_model)

    detector.capture_current(person)
    detector.capture_new(person)

    assert detector.changed_columns() == {}
    assert detector.one_to_one_relationships_becoming_non_null() == []
    assert detector.changed_to_one_with_foreign_key_at_right_side() == []
    assert detector.changed_to_many_relationships() == []
