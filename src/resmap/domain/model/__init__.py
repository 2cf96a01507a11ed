"""Resource model: identities, resource types and foreign-key placement."""

from __future__ import annotations

from .base import (
    NIL_UUID,
    LocalIdentity,
    Resource,
    ResourceIdentity,
    ServerIdentity,
    is_default_id,
    stored_id,
)
from .foreign_key import ForeignKeySide, RelationshipForeignKey
from .resource_type import (
    Attribute,
    Relationship,
    RelationshipKind,
    ResourceGraph,
    ResourceType,
    attribute,
    has_many,
    has_one,
)

__all__ = [
    "NIL_UUID",
    "Attribute",
    "ForeignKeySide",
    "LocalIdentity",
    "Relationship",
    "RelationshipForeignKey",
    "RelationshipKind",
    "Resource",
    "ResourceGraph",
    "ResourceIdentity",
    "ResourceType",
    "ServerIdentity",
    "attribute",
    "has_many",
    "has_one",
    "is_default_id",
    "stored_id",
]
