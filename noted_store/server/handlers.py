"""
HTTP handlers for the store API, health check and analytics beacon.

Handlers translate requests into calls on the user's store and
serialize results to JSON. Errors are raised as store exceptions and
turned into responses by the error middleware.
"""

from __future__ import annotations

import json
import logging

from aiohttp import web

from ..analytics import AnalyticsEvent, parse_duration_ms
from ..exceptions import AuthenticationError, ValidationError
from ..userstore import UserStore
from ..views.content import validate_content_id
from .keys import ANALYTICS_KEY, IDENTITY_PROVIDER_KEY, REGISTRY_KEY, USER_ID_KEY

logger = logging.getLogger(__name__)

WRITE_METHODS = ("POST", "PUT")


def parse_start(value: str | None) -> int:
    """Parse the `start` query parameter; missing or invalid means 0."""
    try:
        return max(int(value or 0), 0)
    except ValueError:
        return 0


def require_write_method(request: web.Request) -> None:
    if request.method not in WRITE_METHODS:
        raise ValidationError("method", "only POST and PUT supported", request.method)


async def _optional_user_id(request: web.Request) -> str | None:
    try:
        identity = await request.app[IDENTITY_PROVIDER_KEY].get_identity(request)
    except AuthenticationError:
        return None
    return identity.user_id


async def _user_store(request: web.Request) -> UserStore:
    identity = await request.app[IDENTITY_PROVIDER_KEY].get_identity(request)
    request[USER_ID_KEY] = identity.user_id
    return await request.app[REGISTRY_KEY].get_or_create(identity.user_id)


async def get_logs(request: web.Request, store: UserStore) -> web.StreamResponse:
    start = parse_start(request.query.get("start"))
    logs = await store.get_logs(start)
    logger.debug(f"getLogs start={start} returned {len(logs)} entries")
    return web.json_response(logs)


async def append_log(request: web.Request, store: UserStore) -> web.StreamResponse:
    require_write_method(request)
    try:
        entry = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("body", f"invalid JSON: {e}") from e
    if not isinstance(entry, list):
        raise ValidationError("body", "log entry must be a JSON array")
    await store.append_log(entry)
    return web.json_response({"ok": True})


async def get_content(request: web.Request, store: UserStore) -> web.StreamResponse:
    content_id = request.query.get("id", "")
    if not content_id:
        raise ValidationError("id", "id is required")
    data = await store.get_content(content_id)
    return web.Response(body=data, content_type="application/octet-stream")


async def set_content(request: web.Request, store: UserStore) -> web.StreamResponse:
    require_write_method(request)
    content_id = validate_content_id(request.query.get("id", ""))
    body = await request.read()
    await store.set_content(content_id, body)
    return web.json_response({})


STORE_OPERATIONS = {
    "getLogs": get_logs,
    "appendLog": append_log,
    "getContent": get_content,
    "setContent": set_content,
}


async def handle_store(request: web.Request) -> web.StreamResponse:
    """Dispatch /api/store/{op} to the matching operation."""
    operation = STORE_OPERATIONS.get(request.match_info["op"])
    if operation is None:
        raise web.HTTPNotFound()
    store = await _user_store(request)
    return await operation(request, store)


async def handle_ping(request: web.Request) -> web.StreamResponse:
    return web.Response(text="pong")


async def handle_event(request: web.Request) -> web.StreamResponse:
    """Record an analytics event named by the path.

    Metadata comes from the query string and, for POST/PUT, a JSON
    object body. The `dur` key is the event duration in milliseconds.
    A malformed body is logged and ignored.
    Anonymous events are accepted; the user is attached when known.
    """
    name = request.match_info.get("name", "")
    if not name:
        raise web.HTTPNotFound()

    fields: dict[str, str] = {}
    if request.method in WRITE_METHODS and request.can_read_body:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Ignoring malformed analytics body for {name}: {e}")
            body = None
        if isinstance(body, dict):
            fields.update({k: str(v) for k, v in body.items() if v is not None})
    fields.update(request.query)

    duration_ms = parse_duration_ms(fields.pop("dur", None))
    meta = {k: v for k, v in fields.items() if v != ""}

    event = AnalyticsEvent(
        name=name,
        duration_ms=duration_ms,
        meta=meta,
        user_id=await _optional_user_id(request),
        path=request.path,
        user_agent=request.headers.get("User-Agent"),
    )
    await request.app[ANALYTICS_KEY].emit(event)
    return web.Response(text="ok")
