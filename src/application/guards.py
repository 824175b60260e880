import functools
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Type, TypeVar

import pydantic
from pydantic import BaseModel

from src.domain.exceptions import (
    InternalException,
    RegistryException,
    UnauthorizedException,
    ValidationException,
)
from src.domain.result import Err, Ok

logger = logging.getLogger(__name__)


P = TypeVar("P", bound=BaseModel)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def authorize(caller: str, owner: str) -> bool:
    """True iff the caller is the identity that created the entity."""
    return caller == owner


def require_owner(caller: str, owner: str, entity: str, action: str) -> None:
    if not authorize(caller, owner):
        logger.warning(f"Caller {caller} refused: cannot {action} {entity} owned by {owner}.")
        raise UnauthorizedException(entity=entity, action=action)


def parse_payload(model: Type[P], **fields: Any) -> P:
    """
    Builds a payload model, turning pydantic's ValidationError into the registry's own.

    Args:
        model: The payload class to instantiate.
        **fields: Raw field values as received from the caller.

    Returns:
        The validated payload.
    """
    try:
        return model(**fields)
    except pydantic.ValidationError as e:
        bad_fields = sorted({str(error["loc"][0]) for error in e.errors() if error.get("loc")})
        raise ValidationException(bad_fields or list(fields)) from e


def returns_result(operation: str):
    """
    Wraps an async registry method so that it returns a Result instead of raising.

    RegistryException subclasses become Err as-is; anything else is logged and
    reported as an InternalException.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return Ok(await func(*args, **kwargs))
            except RegistryException as e:
                return Err(e)
            except Exception as e:
                logger.exception(f"Unexpected failure in {operation}: {e}")
                return Err(InternalException(operation=operation, reason=str(e)))
        return wrapper
    return decorator
