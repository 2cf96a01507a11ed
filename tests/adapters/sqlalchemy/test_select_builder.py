from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from resmap.adapters.sqlalchemy.select_builder import SelectStatementBuilder
from resmap.domain.errors import ResultSetMismatchError
from resmap.domain.include import IncludeTree
from resmap.domain.result_mapping import ResultPosition, build_positions
from tests.helpers.model import PEOPLE, TODO_ITEMS, Person, TodoItem, build_resource_graph

if TYPE_CHECKING:
    from resmap.adapters.sqlalchemy.data_model import SqlAlchemyDataModel
    from resmap.domain.model import ResourceType


def _build(
    data_model: SqlAlchemyDataModel,
    resource_type: ResourceType,
    *paths: str,
    resource_id: object | None = None,
) -> tuple[str, dict[str, object]]:
    graph = build_resource_graph()
    positions = build_positions(
        resource_type, IncludeTree.from_paths(resource_type, graph, paths), graph
    )
    query = SelectStatementBuilder(data_model).build(positions, resource_id=resource_id)
    compiled = query.statement.compile()
    return str(compiled), dict(compiled.params)


def test_left_side_key_joins_parent_key_to_child_id(data_model: SqlAlchemyDataModel) -> None:
    sql, params = _build(data_model, TODO_ITEMS, "owner")

    assert "LEFT OUTER JOIN people AS t2 ON t1.owner_id = t2.id" in sql
    assert "ORDER BY t1.id, t2.id" in sql
    assert params == {}


def test_right_side_key_joins_child_key_to_parent_id(data_model: SqlAlchemyDataModel) -> None:
    sql, _ = _build(data_model, PEOPLE, "ownedTodoItems")

    assert "LEFT OUTER JOIN todo_items AS t2 ON t2.owner_id = t1.id" in sql


def test_resource_id_filters_primary_table(data_model: SqlAlchemyDataModel) -> None:
    sql, params = _build(data_model, PEOPLE, resource_id=5)

    assert "WHERE t1.id = :p1" in sql
    assert params == {"p1": 5}


def test_split_materializes_one_resource_per_position(data_model: SqlAlchemyDataModel) -> None:
    graph = build_resource_graph()
    positions = build_positions(
        TODO_ITEMS, IncludeTree.from_paths(TODO_ITEMS, graph, ["owner"]), graph
    )
    query = SelectStatementBuilder(data_model).build(positions)

    item, owner = query.split([1, "Task", 3, 7, "Jane", "Doe"])

    assert isinstance(item, TodoItem)
    assert (item.id, item.description, item.priority) == (1, "Task", 3)
    assert isinstance(owner, Person)
    assert (owner.id, owner.first_name, owner.last_name) == (7, "Jane", "Doe")


def test_position_without_parent_relationship_is_rejected(
    data_model: SqlAlchemyDataModel,
) -> None:
    positions = (
        ResultPosition(index=0, resource_type=TODO_ITEMS),
        ResultPosition(index=1, resource_type=PEOPLE),
    )

    with pytest.raises(ResultSetMismatchError):
        SelectStatementBuilder(data_model).build(positions)


def test_count_selects_from_primary_table_only(data_model: SqlAlchemyDataModel) -> None:
    statement = SelectStatementBuilder(data_model).build_count(PEOPLE)

    sql = str(statement.compile())
    assert sql.startswith("SELECT count(*)")
    assert sql.endswith("FROM people")
