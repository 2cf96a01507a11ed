"""
Base building blocks:
resource identity (server-assigned id or client-side local id).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, TypeAlias
from uuid import UUID

from resmap.domain.errors import UnresolvedLocalIdError

NIL_UUID = UUID(int=0)


def is_default_id(value: object) -> bool:
    """Return whether ``value`` is the zero/default value of an id type."""

    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value == 0
    if isinstance(value, str):
        return value == ""
    if isinstance(value, UUID):
        return value == NIL_UUID
    return False


@dataclass(frozen=True, slots=True)
class ServerIdentity:
    """Identity of a resource that has a stored id."""

    resource_type: str
    id: object


@dataclass(frozen=True, slots=True)
class LocalIdentity:
    """Identity of a resource known only by its client-side correlation id."""

    resource_type: str
    local_id: str


ResourceIdentity: TypeAlias = "ServerIdentity | LocalIdentity"


def stored_id(identity: ResourceIdentity) -> object:
    """Return the stored id behind an identity, failing for unresolved local ids."""

    if isinstance(identity, LocalIdentity):
        raise UnresolvedLocalIdError(identity.resource_type, identity.local_id)
    return identity.id


@dataclass(eq=False, kw_only=True)
class Resource:
    """A resource instance; subclasses map onto one table each.

    Subclasses must be constructible without arguments so that result rows can
    be materialized into fresh instances.
    """

    id: object = None
    local_id: str | None = None

    # class-level discriminator; subclasses must override
    RESOURCE_TYPE: ClassVar[str]

    @property
    def resource_type(self) -> str:
        return self.RESOURCE_TYPE

    @property
    def has_default_id(self) -> bool:
        return is_default_id(self.id)

    @property
    def identity(self) -> ResourceIdentity:
        if self.has_default_id and self.local_id is not None:
            return LocalIdentity(resource_type=self.RESOURCE_TYPE, local_id=self.local_id)
        return ServerIdentity(resource_type=self.RESOURCE_TYPE, id=self.id)
