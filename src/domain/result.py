from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from src.domain.exceptions import ErrorKind, RegistryException

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome of a registry operation."""
    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome of a registry operation. The error is returned, never raised across the boundary."""
    error: RegistryException

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
