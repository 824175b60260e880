from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Machine-readable tag carried by every registry failure."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class RegistryException(Exception):
    """Base exception for all registry-related errors."""
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "details": self.details}


class ValidationException(RegistryException):
    """Raised when a required field is missing or malformed."""
    kind = ErrorKind.VALIDATION

    def __init__(self, fields, message: str = "Invalid payload provided."):
        self.fields = list(fields)
        super().__init__(f"{message} Fields: {', '.join(self.fields)}", details={"fields": self.fields})


class ConflictException(RegistryException):
    """Raised when a human-chosen name is already taken in its collection."""
    kind = ErrorKind.CONFLICT

    def __init__(self, entity: str, field: str, value: str):
        super().__init__(
            f"{entity} with {field} {value} already exists",
            details={"entity": entity, "field": field, "value": value},
        )


class NotFoundException(RegistryException):
    """Raised when an id, username or name lookup misses."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, field: str, value: str):
        super().__init__(
            f"{entity} with {field}={value} not found",
            details={"entity": entity, "field": field, "value": value},
        )


class UnauthorizedException(RegistryException):
    """Raised when the caller does not own the entity it tries to mutate."""
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, entity: str, action: str):
        super().__init__(
            f"You are not authorized to {action} the {entity}.",
            details={"entity": entity, "action": action},
        )


class InternalException(RegistryException):
    """Raised when the storage layer fails unexpectedly."""
    kind = ErrorKind.INTERNAL

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Error during {operation}: {reason}",
            details={"operation": operation},
        )
