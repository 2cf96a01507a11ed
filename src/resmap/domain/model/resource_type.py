"""Resource type metadata: attributes, relationships and the resource graph."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, cast

from resmap.domain.errors import DataModelError
from resmap.domain.model.base import Resource

if TYPE_CHECKING:
    from collections.abc import Iterator


class RelationshipKind(StrEnum):
    """Closed set of relationship shapes supported by the mapping layer."""

    TO_ONE = "to_one"
    ONE_TO_ONE = "one_to_one"
    TO_MANY = "to_many"


@dataclass(frozen=True, slots=True, kw_only=True)
class Attribute:
    public_name: str
    property_name: str
    column_name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Relationship:
    """A navigation from a left resource type to a right resource type.

    ``foreign_key`` names the column that stores the link; whether it lives on
    the left or the right table is reported by the data model service.
    """

    public_name: str
    property_name: str
    kind: RelationshipKind
    right_type: str
    foreign_key: str
    left_type: str = ""

    @property
    def is_to_one(self) -> bool:
        return self.kind in (RelationshipKind.TO_ONE, RelationshipKind.ONE_TO_ONE)

    @property
    def is_one_to_one(self) -> bool:
        return self.kind is RelationshipKind.ONE_TO_ONE

    @property
    def is_to_many(self) -> bool:
        return self.kind is RelationshipKind.TO_MANY

    def get_value(self, resource: Resource) -> object:
        return getattr(resource, self.property_name)

    def set_value(self, resource: Resource, value: object) -> None:
        setattr(resource, self.property_name, value)

    def right_resources(self, resource: Resource) -> tuple[Resource, ...]:
        """Flatten the relationship value into a tuple (a to-one yields 0 or 1 items)."""

        value = self.get_value(resource)
        if value is None:
            return ()
        if isinstance(value, Resource):
            return (value,)
        return tuple(cast("Iterable[Resource]", value))


def attribute(
    public_name: str,
    *,
    property_name: str | None = None,
    column_name: str | None = None,
) -> Attribute:
    prop = property_name or public_name
    return Attribute(public_name=public_name, property_name=prop, column_name=column_name or prop)


def has_one(
    public_name: str,
    right_type: str,
    *,
    foreign_key: str,
    one_to_one: bool = False,
    property_name: str | None = None,
) -> Relationship:
    kind = RelationshipKind.ONE_TO_ONE if one_to_one else RelationshipKind.TO_ONE
    return Relationship(
        public_name=public_name,
        property_name=property_name or public_name,
        kind=kind,
        right_type=right_type,
        foreign_key=foreign_key,
    )


def has_many(
    public_name: str,
    right_type: str,
    *,
    foreign_key: str,
    property_name: str | None = None,
) -> Relationship:
    return Relationship(
        public_name=public_name,
        property_name=property_name or public_name,
        kind=RelationshipKind.TO_MANY,
        right_type=right_type,
        foreign_key=foreign_key,
    )


@dataclass(frozen=True, slots=True)
class ResourceType:
    public_name: str
    resource_cls: type[Resource]
    table_name: str
    attributes: tuple[Attribute, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    id_column: str = "id"

    @classmethod
    def define(
        cls,
        resource_cls: type[Resource],
        *,
        table_name: str,
        attributes: Iterable[Attribute] = (),
        relationships: Iterable[Relationship] = (),
        id_column: str = "id",
    ) -> ResourceType:
        public_name = resource_cls.RESOURCE_TYPE
        bound = tuple(replace(item, left_type=public_name) for item in relationships)
        return cls(
            public_name=public_name,
            resource_cls=resource_cls,
            table_name=table_name,
            attributes=tuple(attributes),
            relationships=bound,
            id_column=id_column,
        )

    def relationship(self, public_name: str) -> Relationship:
        for item in self.relationships:
            if item.public_name == public_name:
                return item
        raise DataModelError(
            f"Relationship '{public_name}' does not exist on resource type '{self.public_name}'."
        )

    def create_instance(self) -> Resource:
        return self.resource_cls()

    def is_instance(self, resource: object) -> bool:
        return type(resource) is self.resource_cls


@dataclass(slots=True)
class ResourceGraph:
    """Registry of resource types by public name."""

    _types_by_name: dict[str, ResourceType] = field(
        default_factory=dict["str", "ResourceType"], repr=False
    )

    def add(self, resource_type: ResourceType) -> ResourceGraph:
        self._types_by_name[resource_type.public_name] = resource_type
        return self

    def get(self, public_name: str) -> ResourceType:
        try:
            return self._types_by_name[public_name]
        except KeyError as exc:
            raise DataModelError(f"Unknown resource type '{public_name}'.") from exc

    def for_class(self, resource_cls: type[Resource]) -> ResourceType:
        return self.get(resource_cls.RESOURCE_TYPE)

    def __iter__(self) -> Iterator[ResourceType]:
        return iter(self._types_by_name.values())
