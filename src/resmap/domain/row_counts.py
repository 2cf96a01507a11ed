"""Affected-row expectations attached to every emitted command."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from resmap.domain.errors import DataStoreUpdateError

MULTIPLE_ROWS_FOUND = "Multiple rows found."
ROW_MISSING_OR_DUPLICATE = "Row does not exist or multiple rows found."
ROW_DOES_NOT_EXIST = "Row does not exist."


class RowCountPolicy(StrEnum):
    UNCHECKED = "unchecked"
    AT_MOST_ONE = "at_most_one"
    EXACTLY = "exactly"
    AT_LEAST_ONE = "at_least_one"


@dataclass(frozen=True, slots=True)
class ExpectedRows:
    policy: RowCountPolicy
    count: int = 1

    @classmethod
    def unchecked(cls) -> ExpectedRows:
        return cls(RowCountPolicy.UNCHECKED)

    @classmethod
    def at_most_one(cls) -> ExpectedRows:
        return cls(RowCountPolicy.AT_MOST_ONE)

    @classmethod
    def exactly(cls, count: int = 1) -> ExpectedRows:
        return cls(RowCountPolicy.EXACTLY, count)

    @classmethod
    def at_least_one(cls) -> ExpectedRows:
        return cls(RowCountPolicy.AT_LEAST_ONE)

    def verify(self, rows_affected: int) -> None:
        """Raise ``DataStoreUpdateError`` when ``rows_affected`` violates this policy."""

        policy = self.policy
        if policy is RowCountPolicy.UNCHECKED:
            return
        if policy is RowCountPolicy.AT_MOST_ONE:
            if rows_affected > 1:
                raise DataStoreUpdateError(MULTIPLE_ROWS_FOUND)
        elif policy is RowCountPolicy.EXACTLY:
            if rows_affected != self.count:
                raise DataStoreUpdateError(ROW_MISSING_OR_DUPLICATE)
        elif rows_affected == 0:
            raise DataStoreUpdateError(ROW_DOES_NOT_EXIST)
