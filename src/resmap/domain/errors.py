"""Error taxonomy shared by the write and read paths.

- validation errors are raised before any SQL is issued
- ``DataStoreUpdateError`` is raised after a command ran and always means rollback
- ``ResultSetMismatchError`` signals a mismatch between executed SQL and the include tree
- ``InconsistentChangeError`` signals a malformed change record reaching the sequencer
"""

from __future__ import annotations

from typing import Final

DEFAULT_STORE_FAILURE: Final[str] = "Failed to persist changes in the underlying data store."


class ResourceMappingError(Exception):
    """Base class for all mapping layer errors."""


class ResourceTypeMismatchError(ResourceMappingError, TypeError):
    """Raised when a resource of an unexpected type is captured."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected resource of type '{expected}', got '{actual}'.")
        self.expected = expected
        self.actual = actual


class CannotClearRequiredRelationshipError(ResourceMappingError):
    """Raised when a write would set a non-nullable to-one relationship to null."""

    def __init__(self, relationship_name: str, resource_type_name: str) -> None:
        super().__init__(
            f"The relationship '{relationship_name}' on resource type '{resource_type_name}' "
            "cannot be cleared because it is a required relationship."
        )
        self.relationship_name = relationship_name
        self.resource_type_name = resource_type_name


class DataStoreUpdateError(ResourceMappingError):
    """Raised when a command fails or affects an unexpected number of rows."""

    def __init__(self, message: str = DEFAULT_STORE_FAILURE) -> None:
        super().__init__(message)


class ResultSetMismatchError(ResourceMappingError, RuntimeError):
    """Raised when result rows do not line up with the include tree they were built for."""


class InconsistentChangeError(ResourceMappingError, RuntimeError):
    """Raised when a detected relationship change carries neither a current nor a new value."""


class UnresolvedLocalIdError(ResourceMappingError, ValueError):
    """Raised when a resource known only by its local id reaches SQL generation."""

    def __init__(self, resource_type: str, local_id: str) -> None:
        super().__init__(
            f"Resource of type '{resource_type}' with local id '{local_id}' has no stored id."
        )
        self.resource_type = resource_type
        self.local_id = local_id


class DataModelError(ResourceMappingError, LookupError):
    """Raised when table, column or relationship metadata cannot be resolved."""


class OperationCancelledError(ResourceMappingError):
    """Raised when an operation observes its cancellation signal."""
