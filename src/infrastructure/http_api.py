import json
import logging
from typing import Any, Dict, Tuple

from aiohttp import web
from pydantic import BaseModel

from src.application.registry_service import RegistryService
from src.domain.exceptions import ErrorKind, ValidationException
from src.domain.result import Err, Ok, Result

logger = logging.getLogger(__name__)

# Set by the authenticating proxy in front of the service; never by end users.
CALLER_HEADER = "X-Caller-Identity"

SERVICE_KEY = web.AppKey("service", RegistryService)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.INTERNAL: 500,
}

# operation name -> (argument names, whether the caller identity is required)
QUERY_OPERATIONS: Dict[str, Tuple[Tuple[str, ...], bool]] = {
    "list_developers": ((), False),
    "list_languages": ((), False),
    "list_repos": ((), False),
    "get_developer_by_id": (("id",), False),
    "get_developer_by_username": (("username",), False),
    "get_language_by_id": (("id",), False),
    "get_language_by_name": (("name",), False),
    "get_repo_by_id": (("id",), False),
    "list_my_repos": ((), True),
    "list_repos_by_language": (("language_name",), False),
    "list_repos_by_developer": (("username",), False),
}

UPDATE_OPERATIONS: Dict[str, Tuple[Tuple[str, ...], bool]] = {
    "create_developer": (("username", "email"), True),
    "update_developer": (("id", "username", "email"), True),
    "create_language": (("name",), False),
    "create_repo": (("developer_id", "language_id", "name", "description"), True),
    "update_repo": (("id", "developer_id", "language_id", "name", "description"), True),
    "delete_repo": (("id",), True),
}


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def _respond(result: Result) -> web.Response:
    match result:
        case Ok(value=value):
            return web.json_response({"ok": _to_jsonable(value)})
        case Err(error=error):
            return web.json_response({"err": error.to_dict()}, status=STATUS_BY_KIND[error.kind])


async def _dispatch(
    request: web.Request,
    operations: Dict[str, Tuple[Tuple[str, ...], bool]],
    arguments: Dict[str, Any],
) -> web.Response:
    name = request.match_info["operation"]
    if name not in operations:
        raise web.HTTPNotFound(
            text=json.dumps({"err": {"kind": ErrorKind.NOT_FOUND.value, "message": f"Unknown operation {name}", "details": {}}}),
            content_type="application/json",
        )

    params, needs_caller = operations[name]
    kwargs = {param: arguments.get(param) for param in params}
    bad_params = [param for param, value in kwargs.items() if value is not None and not isinstance(value, str)]
    if bad_params:
        return _respond(Err(ValidationException(bad_params, message="Arguments must be strings.")))

    if needs_caller:
        caller = request.headers.get(CALLER_HEADER)
        if not caller:
            raise web.HTTPUnauthorized(
                text=json.dumps({"err": {"kind": ErrorKind.UNAUTHORIZED.value, "message": f"Missing {CALLER_HEADER} header", "details": {}}}),
                content_type="application/json",
            )
        kwargs["caller"] = caller

    service = request.app[SERVICE_KEY]
    result = await getattr(service, name)(**kwargs)
    logger.debug(f"{request.method} {name} -> {'ok' if result.is_ok() else result.kind.value}")
    return _respond(result)


async def handle_query(request: web.Request) -> web.Response:
    return await _dispatch(request, QUERY_OPERATIONS, dict(request.query))


async def handle_update(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except ValueError:
        # JSONDecodeError or UnicodeDecodeError
        body = None
    if not isinstance(body, dict):
        return _respond(Err(ValidationException(["body"], message="Request body must be a JSON object.")))
    return await _dispatch(request, UPDATE_OPERATIONS, body)


def create_app(service: RegistryService) -> web.Application:
    """Builds the aiohttp application exposing the registry's query and update operations."""
    app = web.Application()
    app[SERVICE_KEY] = service
    app.router.add_get("/query/{operation}", handle_query)
    app.router.add_post("/update/{operation}", handle_update)
    return app
