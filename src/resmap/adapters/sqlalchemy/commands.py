"""SQL command descriptors and sequential parameter naming."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import bindparam

if TYPE_CHECKING:
    from sqlalchemy.sql.dml import UpdateBase
    from sqlalchemy.sql.elements import BindParameter
    from sqlalchemy.types import TypeEngine

    from resmap.domain.row_counts import ExpectedRows


@dataclass(frozen=True, slots=True)
class SqlCommand:
    """A parameterized mutation plus the number of rows it is expected to touch."""

    statement: UpdateBase
    expected_rows: ExpectedRows

    @property
    def statement_text(self) -> str:
        return str(self.statement.compile())

    @property
    def parameters(self) -> dict[str, object]:
        return dict(self.statement.compile().params)


class ParameterGenerator:
    """Hands out bound parameters named ``p1``, ``p2``, ... for one statement."""

    def __init__(self) -> None:
        self._count = 0

    def create(
        self,
        value: object,
        type_: TypeEngine[object] | None = None,
    ) -> BindParameter[object]:
        self._count += 1
        return bindparam(f"p{self._count}", value, type_=type_)
