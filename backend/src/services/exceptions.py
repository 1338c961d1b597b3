"""Shared exceptions for service layer operations."""


class NotFoundError(Exception):
    """
    Raised when a resource does not exist or is not owned by the caller.

    Both cases produce the same message so callers cannot test for other
    users' resource ids.
    """

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(f"{entity_name} not found")


class FieldValidationError(Exception):
    """Raised when caller-supplied data fails a required-field or shape check."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)


class ProfileAlreadyExistsError(Exception):
    """Raised when a profile is initialized twice for the same subject."""

    def __init__(self) -> None:
        super().__init__("Profile already exists")


class PersistenceError(Exception):
    """
    Raised for any storage-engine failure inside an identity-scoped transaction.

    Wraps constraint violations, row-security rejections, connectivity failures and
    transaction aborts. The original exception is chained for logging; it is never
    returned to clients.
    """

    def __init__(self, message: str = "Database operation failed") -> None:
        super().__init__(message)
