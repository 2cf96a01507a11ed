"""Foreign-key placement of a relationship."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resmap.domain.model.resource_type import Relationship


class ForeignKeySide(StrEnum):
    """Which table stores the key column.

    ``LEFT``: the table of the resource that declares the relationship.
    ``RIGHT``: the table of the related resource.
    """

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, slots=True, kw_only=True)
class RelationshipForeignKey:
    relationship: Relationship
    column_name: str
    is_nullable: bool
    side: ForeignKeySide

    @property
    def is_at_left_side(self) -> bool:
        return self.side is ForeignKeySide.LEFT

    @property
    def is_one_to_one(self) -> bool:
        return self.relationship.is_one_to_one
