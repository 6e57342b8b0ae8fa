"""
FastAPI server for HR Chat.

Usage:
    uvicorn hrchat.api.server:app --reload --port 8000
"""
import traceback
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from hrchat.actions.dispatcher import ActionDispatcher
from hrchat.api.auth import get_requester, require_admin, requester_from_headers
from hrchat.api.models import (
    ChatQueryRequest,
    ChatQueryResponse,
    HealthResponse,
    HistoryResponse,
    NotificationsClearedResponse,
)
from hrchat.cache.cache import CacheClient
from hrchat.core.config import HRChatConfig, get_config
from hrchat.core.engine import ChatEngine
from hrchat.core.errors import AuthenticationError, HRChatError, UpstreamError
from hrchat.core.intents import Requester
from hrchat.data.database import build_engine, build_session_factory, create_tables
from hrchat.data.employee_store import EmployeeStore
from hrchat.history.session_history import SessionHistoryManager
from hrchat.realtime.broadcaster import AdminNotifier, Broadcaster
from hrchat.resolvers import build_resolver
from hrchat.utils.logger import get_logger, set_log_level

logger = get_logger("api.server")

UPSTREAM_ERROR_MESSAGE = "Failed to process request"


@dataclass
class Services:
    """Long-lived collaborators shared by all requests."""
    session_factory: sessionmaker
    store: EmployeeStore
    cache: CacheClient
    broadcaster: Broadcaster
    notifier: AdminNotifier
    history: SessionHistoryManager
    chat: ChatEngine


def build_services(config: HRChatConfig, llm_client=None) -> Services:
    """Wire every collaborator from configuration."""
    db_engine = build_engine(config.database_url)
    create_tables(db_engine)
    session_factory = build_session_factory(db_engine)

    store = EmployeeStore(session_factory)
    cache = CacheClient(config.redis_url)
    broadcaster = Broadcaster()
    notifier = AdminNotifier(broadcaster, cache, limit=config.notification_limit)
    history = SessionHistoryManager(session_factory, context_window=config.context_window)
    dispatcher = ActionDispatcher(store, cache, broadcaster, notifier)
    chat = ChatEngine(
        store=store,
        resolver=build_resolver(config, llm_client=llm_client),
        dispatcher=dispatcher,
        history=history,
        cache=cache,
        query_cache_ttl=config.query_cache_ttl_seconds,
    )
    logger.info(f"Services ready (resolver={config.resolver}, model={config.llm_model})")
    return Services(
        session_factory=session_factory,
        store=store,
        cache=cache,
        broadcaster=broadcaster,
        notifier=notifier,
        history=history,
        chat=chat,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def create_app(services: Optional[Services] = None, config: Optional[HRChatConfig] = None) -> FastAPI:
    """
    Build the application.

    Args:
        services: Pre-built collaborators (tests). When omitted they are built
            from config in the lifespan handler.
        config: Defaults to the global config.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.services is None:
            cfg = config or get_config()
            set_log_level(cfg.log_level)
            app.state.services = build_services(cfg)
        yield

    app = FastAPI(
        title="HR Chat",
        description="Natural-language employee query and action service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    # Enable CORS for development
    # In production, configure this more strictly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    _register_routes(app)
    return app


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        logger.error(f"Upstream failure on {request.url.path}: {exc.message} ({exc.cause!r})")
        return JSONResponse(status_code=exc.status_code, content={"error": UPSTREAM_ERROR_MESSAGE})

    @app.exception_handler(HRChatError)
    async def hrchat_error_handler(request: Request, exc: HRChatError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected malformed request on {request.url.path}: {len(exc.errors())} error(s)")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log unhandled exceptions and return 500 with the generic error body."""
        logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(status_code=500, content={"error": UPSTREAM_ERROR_MESSAGE})


def _register_routes(app: FastAPI) -> None:

    @app.post("/chat/query", response_model=ChatQueryResponse)
    def chat_query(
        body: ChatQueryRequest,
        requester: Requester = Depends(get_requester),
        services: Services = Depends(get_services),
    ):
        """Resolve a free-text HR request into a read or a mutation."""
        return services.chat.handle_query(body.query, requester)

    @app.get("/chat/history", response_model=HistoryResponse)
    def chat_history(
        requester: Requester = Depends(get_requester),
        services: Services = Depends(get_services),
    ):
        return {"messages": services.history.history_messages(requester.username)}

    @app.get("/notifications")
    def list_notifications(
        requester: Requester = Depends(get_requester),
        services: Services = Depends(get_services),
    ):
        """Stored admin notifications, newest first. Admin only."""
        require_admin(requester)
        return services.cache.get_notifications()

    @app.delete("/notifications", response_model=NotificationsClearedResponse)
    def clear_notifications(
        requester: Requester = Depends(get_requester),
        services: Services = Depends(get_services),
    ):
        require_admin(requester)
        services.cache.clear_notifications()
        return {"message": "Notifications cleared"}

    @app.get("/health", response_model=HealthResponse)
    def health_check(services: Services = Depends(get_services)):
        """
        Detailed health check including database and cache connectivity.
        """
        health_status = {
            "service": "healthy",
            "database": "unknown",
            "cache": "unknown",
        }

        try:
            with services.session_factory() as db:
                db.execute(text("SELECT 1"))
            health_status["database"] = "healthy"
        except Exception as e:
            health_status["database"] = f"unhealthy: {e}"
            health_status["service"] = "degraded"

        if services.cache.ping():
            health_status["cache"] = "healthy"
        else:
            health_status["cache"] = "unhealthy: no response"
            health_status["service"] = "degraded"

        return health_status

    @app.websocket("/ws")
    async def live_updates(websocket: WebSocket):
        """Live data_update events; admins may send "join-admin" for notifications."""
        try:
            requester = requester_from_headers(
                websocket.headers.get("x-username"),
                websocket.headers.get("x-user-role"),
            )
        except AuthenticationError:
            requester = None

        await websocket.accept()
        broadcaster = websocket.app.state.services.broadcaster
        client = broadcaster.register(websocket, requester)
        try:
            await broadcaster.serve(client)
        except WebSocketDisconnect:
            pass


app = create_app()
