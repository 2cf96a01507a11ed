"""Tests for affected-row expectations."""

from __future__ import annotations

import pytest

from resmap.domain.errors import DataStoreUpdateError
from resmap.domain.row_counts import (
    MULTIPLE_ROWS_FOUND,
    ROW_DOES_NOT_EXIST,
    ROW_MISSING_OR_DUPLICATE,
    ExpectedRows,
)


@pytest.mark.parametrize("rows", [0, 1, 7])
def test_unchecked_accepts_any_count(rows: int) -> None:
    ExpectedRows.unchecked().verify(rows)


def test_at_most_one() -> None:
    expected = ExpectedRows.at_most_one()
    expected.verify(0)
    expected.verify(1)

    with pytest.raises(DataStoreUpdateError, match=MULTIPLE_ROWS_FOUND):
        expected.verify(2)


def test_exactly() -> None:
    expected = ExpectedRows.exactly(3)
    expected.verify(3)

    for rows in (2, 4):
        with pytest.raises(DataStoreUpdateError, match=ROW_MISSING_OR_DUPLICATE):
            expected.verify(rows)


def test_at_least_one() -> None:
    expected = ExpectedRows.at_least_one()
    expected.verify(1)
    expected.verify(5)

    with pytest.raises(DataStoreUpdateError, match=ROW_DOES_NOT_EXIST):
        expected.verify(0)
