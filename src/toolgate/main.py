"""
toolgate - Main Application.

FastAPI application exposing the tool manager over HTTP and streams.
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from toolgate import __version__
from toolgate.api.events import ToolsChangedBroadcaster
from toolgate.api.routes import mcp_router, stream_router
from toolgate.config import get_settings
from toolgate.core.timestamps import utc_now_iso
from toolgate.core.tool_config import ToolConfigStore
from toolgate.core.tool_manager import ToolManager
from toolgate.exceptions import ToolGateException
from toolgate.schemas import HealthResponse

# Configure standard logging
logging.basicConfig(
    level=get_settings().app_log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("toolgate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create and initialize the tool manager; close it on shutdown."""
    settings = get_settings()
    remote_config = settings.remote_tools.to_remote_api_config()
    logger.info(
        f"Starting toolgate v{__version__} "
        f"[env={settings.app_env}] "
        f"[remote_tools={remote_config.enabled}] "
        f"[tool_config={settings.tool_config.path}]"
    )

    broadcaster = ToolsChangedBroadcaster()
    manager = ToolManager(
        remote_api_config=remote_config,
        config_store=ToolConfigStore(settings.tool_config.path),
    )
    manager.set_on_tools_changed_callback(broadcaster.publish_tools_changed)
    await manager.initialize()

    app.state.tool_manager = manager
    app.state.broadcaster = broadcaster
    try:
        yield
    finally:
        await manager.close()
        logger.info("Shutting down toolgate")


# Create FastAPI application
app = FastAPI(
    title="toolgate API",
    description="Tool-calling gateway: local and remote tools behind one dispatch core.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Middleware
# =============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    response = await call_next(request)

    logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code}")

    return response


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(ToolGateException)
async def toolgate_exception_handler(request: Request, exc: ToolGateException):
    """Handle toolgate exceptions."""
    request_id_str = getattr(request.state, "request_id", None)
    request_id = None
    if request_id_str:
        try:
            request_id = UUID(request_id_str)
        except (ValueError, TypeError):
            pass

    logger.warning(f"ToolGateException: {exc.code} - {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
                "request_id": str(request_id) if request_id else None,
            }
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id_str = getattr(request.state, "request_id", None)

    logger.error(f"Unhandled exception on {request.url.path}: {type(exc).__name__}: {exc}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if get_settings().app_debug else "An unexpected error occurred",
                "request_id": request_id_str,
            }
        },
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(request: Request):
    """Health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        version=__version__,
        app_env=settings.app_env,
        timestamp=utc_now_iso(),
        tools=request.app.state.tool_manager.get_tool_stats(),
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(mcp_router)
app.include_router(stream_router)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint."""
    return {"message": "Welcome to toolgate", "docs": "/docs"}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("toolgate.main:app", host=settings.app_host, port=settings.app_port)
