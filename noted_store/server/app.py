"""
aiohttp application factory.

`create_app` wires already-built collaborators (used by tests);
`build_app` builds them from a ServerConfig (used by the CLI).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from aiohttp import web

from ..analytics import AnalyticsSink, HttpAnalyticsSink, LoggingAnalyticsSink
from ..config import BackendType, ServerConfig
from ..exceptions import (
    AuthenticationError,
    NotesStorageError,
    NotFoundError,
    RecordNotFoundError,
    ValidationError,
)
from ..identity import HeaderIdentityProvider, IdentityProvider, StaticIdentityProvider
from ..registry import UserStoreRegistry
from ..sharded import ShardedLog, create_redis_client, ping, redact_url
from ..userstore import LocalUserStore, RemoteUserStore, UserStore
from .handlers import handle_event, handle_ping, handle_store
from .keys import ANALYTICS_KEY, IDENTITY_PROVIDER_KEY, REGISTRY_KEY, USER_ID_KEY

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

DEFAULT_MAX_BODY_BYTES = 32 * 1024 * 1024


def error_status(error: NotesStorageError) -> int:
    """HTTP status for a store error."""
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, RecordNotFoundError):
        # Stored data is damaged or missing, not an unknown ID
        return 500
    if isinstance(error, NotFoundError):
        return 404
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn store errors into JSON error responses."""
    try:
        return await handler(request)
    except NotesStorageError as e:
        status = error_status(e)
        if status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}", exc_info=e)
        else:
            logger.info(f"{request.method} {request.path} rejected: {e.message}")
        return web.json_response({"error": e.message}, status=status)


@web.middleware
async def access_log_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Log method, path, status and duration of every request."""
    time_start = time.monotonic()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    finally:
        duration_ms = (time.monotonic() - time_start) * 1000
        logger.info(
            f"{request.method} {request.path} {status} {duration_ms:.1f}ms",
            extra={
                "method": request.method,
                "path": request.path,
                "status": status,
                "duration_ms": round(duration_ms, 1),
                "user_id": request.get(USER_ID_KEY),
            },
        )


def create_app(
    registry: UserStoreRegistry,
    identity_provider: IdentityProvider,
    analytics: AnalyticsSink | None = None,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> web.Application:
    """Create the application from ready collaborators."""
    app = web.Application(
        middlewares=[access_log_middleware, error_middleware],
        client_max_size=max_body_bytes,
    )
    app[REGISTRY_KEY] = registry
    app[IDENTITY_PROVIDER_KEY] = identity_provider
    app[ANALYTICS_KEY] = analytics or LoggingAnalyticsSink()

    app.router.add_get("/ping", handle_ping)
    app.router.add_get("/ping.txt", handle_ping)
    app.router.add_route("*", "/api/store/{op}", handle_store)
    app.router.add_route("*", "/event/{name}", handle_event)

    async def on_cleanup(app: web.Application) -> None:
        await app[REGISTRY_KEY].close_all()
        await app[ANALYTICS_KEY].close()

    app.on_cleanup.append(on_cleanup)
    return app


BackendHook = Callable[[], Awaitable[None]]


async def _no_op() -> None:
    pass


def build_registry(config: ServerConfig) -> tuple[UserStoreRegistry, BackendHook, BackendHook]:
    """Build the registry for the configured backend.

    Returns:
        The registry, a startup check and a coroutine releasing backend resources
    """
    if config.backend == BackendType.REDIS:
        client = create_redis_client(config.redis_url or "")
        shared_log = ShardedLog(client, prefix=config.key_prefix)

        async def open_remote(identity: str) -> UserStore:
            store = RemoteUserStore(
                identity,
                client,
                content_prefix=config.content_prefix,
                log=shared_log,
            )
            return await store.open()

        async def check_client() -> None:
            await ping(client, redact_url(config.redis_url or ""))

        async def close_client() -> None:
            await client.aclose()

        return UserStoreRegistry(open_remote), check_client, close_client

    data_dir = config.data_dir

    async def open_local(identity: str) -> UserStore:
        return await LocalUserStore.for_identity(data_dir, identity).open()

    return UserStoreRegistry(open_local), _no_op, _no_op


def build_identity_provider(config: ServerConfig) -> IdentityProvider:
    if config.dev and config.dev_identity:
        logger.warning(f"Using fixed development identity {config.dev_identity}")
        return StaticIdentityProvider(config.dev_identity)
    return HeaderIdentityProvider(config.identity_header, config.user_header)


def build_analytics(config: ServerConfig) -> AnalyticsSink:
    if config.analytics_url and not config.dev:
        return HttpAnalyticsSink(config.analytics_url, config.analytics_token)
    return LoggingAnalyticsSink()


def build_app(config: ServerConfig) -> web.Application:
    """Create the application described by a configuration."""
    config.validate()
    registry, check_backend, close_backend = build_registry(config)
    app = create_app(
        registry,
        build_identity_provider(config),
        build_analytics(config),
        max_body_bytes=config.max_body_bytes,
    )

    async def on_startup(app: web.Application) -> None:
        await check_backend()

    async def on_cleanup(app: web.Application) -> None:
        await close_backend()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    logger.info(
        f"Notes store configured: backend={config.backend.value} dev={config.dev}"
    )
    return app
