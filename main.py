import inspect
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from routes.analysis_route import router as analysis_router
from routes.generation_route import router as generation_router
from routes.session_route import router as session_router
from services.inference.base import InferenceClient
from services.inference.factory import build_inference_client
from services.realtime_facts import RealtimeFactProvider
from services.session_store import SessionStore
from services.sqlite_session_store import SqliteSessionStore
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import OrchestratorError
from utils.settings import Settings

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def build_session_store(settings: Settings) -> SessionStore:
    """Return the session store selected by `settings.session_backend`."""
    if settings.session_backend == "sqlite":
        return SqliteSessionStore(
            AsyncDatabaseInitializer(settings.database_dir),
            ttl_seconds=settings.session_ttl_seconds,
            max_sessions=settings.max_sessions,
        )
    return SessionStore(ttl_seconds=settings.session_ttl_seconds, max_sessions=settings.max_sessions)


async def _close_quietly(client) -> None:
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception:
        LOGGER.warning("Error while closing the inference client", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager that attaches to `app.state`:
      - the session store (in-memory, or SQLite when configured)
      - the inference client for the configured backend
      - the real-time fact provider
    Anything injected through `create_app` is kept as-is.
    """
    settings: Settings = app.state.settings

    if getattr(app.state, "session_store", None) is None:
        app.state.session_store = build_session_store(settings)

    owns_client = getattr(app.state, "inference_client", None) is None
    if owns_client:
        app.state.inference_client = build_inference_client(settings)

    if getattr(app.state, "fact_provider", None) is None:
        app.state.fact_provider = RealtimeFactProvider(settings.facts_location, settings.facts_timezone)

    LOGGER.info("Inference backend: %s", settings.inference_backend)
    LOGGER.info("Default model: %s", settings.default_model)
    LOGGER.info("Multimodal model: %s", settings.multimodal_model)
    LOGGER.info("Session backend: %s", settings.session_backend)

    try:
        yield
    finally:
        if owns_client:
            await _close_quietly(app.state.inference_client)


def create_app(
    settings: Optional[Settings] = None,
    *,
    inference_client: Optional[InferenceClient] = None,
    session_store: Optional[SessionStore] = None,
    fact_provider: Optional[RealtimeFactProvider] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.inference_client = inference_client
    app.state.session_store = session_store
    app.state.fact_provider = fact_provider

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        """Reject bodies larger than `settings.max_body_bytes` before reading them."""
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                return JSONResponse(status_code=400, content={"error": "Invalid Content-Length header."})
            if size > settings.max_body_bytes:
                return JSONResponse(
                    status_code=413,
                    content={"error": f"Request body exceeds {settings.max_body_bytes} bytes."},
                )
        return await call_next(request)

    @app.exception_handler(OrchestratorError)
    async def orchestrator_error_handler(request: Request, exc: OrchestratorError):
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        else:
            LOGGER.warning("%s %s rejected: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Serve static assets from the public directory, if it exists.
    if settings.public_dir.exists():
        app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = settings.public_dir / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Report the configured backends and the number of live sessions.
        """
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "backend": settings.inference_backend,
            "session_backend": getattr(store, "backend", None),
            "sessions": len(store) if store is not None else 0,
        }

    # Register application routers
    app.include_router(session_router)
    app.include_router(analysis_router)
    app.include_router(generation_router)

    return app


app = create_app()
