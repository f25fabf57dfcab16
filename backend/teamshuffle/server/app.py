from __future__ import annotations

import contextlib
import json
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.responses import JSONResponse
from starlette.routing import Route

from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.logging import setup_logging
from teamshuffle.lcu.client import LcuClient, LcuRequestError
from teamshuffle.planning.pairing import create_pairing_rng
from teamshuffle.plugin.dispatcher import EventDispatcher
from teamshuffle.plugin.events import parse_event_frame
from teamshuffle.plugin.plugin import RandomizeTeamsPlugin
from teamshuffle.server.settings import ShufflerSettings

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from teamshuffle.lcu.service import LobbyService


_MAX_REQUEST_BODY_SIZE = 64 * 1024


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def status(request: Request) -> JSONResponse:
    plugin: RandomizeTeamsPlugin = request.app.state.plugin
    dispatcher: EventDispatcher = request.app.state.dispatcher
    return JSONResponse(
        {
            "status": "ok" if plugin.actor is not None else "disconnected",
            "actor": plugin.actor,
            "subscriptions": sorted(dispatcher.subscriptions),
        },
    )


async def relay_event(request: Request) -> JSONResponse:
    """Accept one game client event and dispatch it after responding."""
    dispatcher: EventDispatcher = request.app.state.dispatcher

    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        return JSONResponse({"error": "Request body too large"}, status_code=413)
    try:
        frame = parse_event_frame(json.loads(raw_body))
    except (ValueError, TypeError) as e:
        return JSONResponse({"error": f"Invalid event: {e}"}, status_code=400)

    if not dispatcher.is_subscribed(frame.event):
        return JSONResponse({"event": frame.event, "dispatched": False}, status_code=202)

    return JSONResponse(
        {"event": frame.event, "dispatched": True},
        status_code=202,
        background=BackgroundTask(dispatcher.dispatch, frame.event, frame.payload),
    )


def build_client(settings: ShufflerSettings) -> LcuClient:
    return LcuClient(
        settings.credentials(),
        verify=settings.lcu_verify_tls,
        timeout=settings.request_timeout_seconds,
        startup_retry=settings.startup_retry(),
        query_retry=settings.query_retry(),
        message_retry=settings.message_retry(),
    )


def build_plugin(settings: ShufflerSettings, service: LobbyService) -> RandomizeTeamsPlugin:
    return RandomizeTeamsPlugin(
        service,
        rules=settings.eligibility_rules(),
        rng=create_pairing_rng(settings.pairing_seed),
        max_relocations=settings.max_relocations,
        always_new_teams=settings.always_new_teams,
        command_pattern=settings.command_pattern,
    )


def create_app(
    settings: ShufflerSettings | None = None,
    service: LobbyService | None = None,
    plugin: RandomizeTeamsPlugin | None = None,
    dispatcher: EventDispatcher | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ShufflerSettings()

    # When the app creates its own client, it owns the client lifecycle.
    owned_client: LcuClient | None = None
    if service is None:  # pragma: no cover
        service = owned_client = build_client(settings)

    if dispatcher is None:
        dispatcher = EventDispatcher()
    if plugin is None:
        plugin = build_plugin(settings, service)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        try:
            await plugin.on_connect(dispatcher)
        except LcuRequestError:
            logger.exception("plugin failed to connect, events will be ignored")
        yield
        if owned_client is not None:  # pragma: no cover
            await owned_client.aclose()

    routes = [
        Route("/health", health, methods=["GET"], name="health"),
        Route("/status", status, methods=["GET"], name="status"),
        Route("/events", relay_event, methods=["POST"], name="relay_event"),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.settings = settings
    app.state.dispatcher = dispatcher
    app.state.plugin = plugin

    logger.info("shuffler server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory teamshuffle.server.app:get_app."""
    s = ShufflerSettings()
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s)
