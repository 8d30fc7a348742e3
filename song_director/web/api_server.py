"""
FastAPI Web API Server for Song Director.

Provides the director control calls, health and status endpoints, and the
``/ws`` push channel that streams the section cue to viewers.
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

import psutil
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field, model_validator

from .. import __version__
from ..const import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_SEND_TIMEOUT, SECTION_ROUTE, WS_PATH
from ..core.control import SectionControl
from ..core.registry import ConnectionRegistry
from ..core.section_state import SectionState
from ..errors import ControlUnavailableError
from .section_socket import ViewerConnection

logger = logging.getLogger(__name__)


# Pydantic models for API
class SectionModel(BaseModel):
    """Section cue as sent by the director."""

    kind: Optional[str] = Field(default=None, min_length=1, max_length=1)
    ordinal: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_ordinal_has_kind(self) -> "SectionModel":
        if self.ordinal is not None and self.kind is None:
            raise ValueError("ordinal requires a kind")
        return self

    def to_state(self) -> SectionState:
        return SectionState(kind=self.kind, ordinal=self.ordinal)


class SectionResponse(BaseModel):
    kind: Optional[str] = None
    ordinal: Optional[int] = None
    display: str = ""

    @classmethod
    def from_state(cls, section: SectionState) -> "SectionResponse":
        return cls(**section.to_dict())


class SetSectionResponse(BaseModel):
    status: str = "ok"
    section: SectionResponse


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: float
    active_connections: int


class SystemStatus(BaseModel):
    is_online: bool = True
    section: str = ""
    active_connections: int = 0
    uptime: float = 0.0
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    memory_usage_mb: float = 0.0


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


def get_control(request: Request) -> SectionControl:
    return request.app.state.control


def create_app(
    registry: Optional[ConnectionRegistry] = None,
    static_dir: Optional[Union[str, Path]] = None,
    send_timeout: Optional[float] = DEFAULT_SEND_TIMEOUT,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        registry: Section store to serve; a fresh one is created if None
        static_dir: Optional directory with a built frontend (index.html)
        send_timeout: Per-frame send limit for viewer sockets, None for no limit

    Returns:
        Configured FastAPI application
    """
    if registry is None:
        registry = ConnectionRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Song Director API server starting")
        yield
        registry.close()
        logger.info("Song Director API server stopped")

    app = FastAPI(
        title="Song Director",
        description="Live section cue broadcast for performers",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.registry = registry
    app.state.control = SectionControl(registry)
    app.state.send_timeout = send_timeout

    # Viewers are usually phones and tablets on the local network
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get(SECTION_ROUTE, response_model=SectionResponse)
    def get_section(control: SectionControl = Depends(get_control)):
        """Current section cue, used to hydrate the director view."""
        return SectionResponse.from_state(control.get())

    @app.put(SECTION_ROUTE, response_model=SetSectionResponse)
    def set_section(section: SectionModel, control: SectionControl = Depends(get_control)):
        """Replace the section cue and notify every viewer."""
        new_section = section.to_state()
        try:
            control.set(new_section)
        except ControlUnavailableError as e:
            logger.error(f"Rejected section update: {e}")
            raise HTTPException(status_code=503, detail=str(e))
        return SetSectionResponse(section=SectionResponse.from_state(new_section))

    @app.get("/api/health", response_model=HealthResponse)
    def health_check(registry: ConnectionRegistry = Depends(get_registry)):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy" if not registry.closed else "stopping",
            version=__version__,
            timestamp=time.time(),
            active_connections=registry.active_connections,
        )

    @app.get("/api/status", response_model=SystemStatus)
    def get_system_status(registry: ConnectionRegistry = Depends(get_registry)):
        """Section cue, viewer count and process resource usage."""
        try:
            process = psutil.Process()
            cpu_percent = process.cpu_percent(interval=None)
            mem_info = process.memory_info()
            mem_percent = process.memory_percent()
            mem_used_mb = round(mem_info.rss / 1e6, 1)
        except Exception as e:
            logger.warning(f"Failed to get process resources: {e}")
            cpu_percent = 0.0
            mem_percent = 0.0
            mem_used_mb = 0.0

        return SystemStatus(
            is_online=not registry.closed,
            section=registry.cell.read().to_wire(),
            active_connections=registry.active_connections,
            uptime=time.time() - registry.started_at,
            cpu_usage=cpu_percent,
            memory_usage=mem_percent,
            memory_usage_mb=mem_used_mb,
        )

    @app.websocket(WS_PATH)
    async def section_socket(websocket: WebSocket):
        """Push channel: current cue on connect, then every change."""
        connection = ViewerConnection(websocket, websocket.app.state.registry, websocket.app.state.send_timeout)
        await connection.run()

    # Serve a prebuilt frontend when one is provided; mounted last so API routes win
    if static_dir:
        frontend_dir = Path(static_dir).expanduser()
        if (frontend_dir / "index.html").is_file():
            app.mount("/", StaticFiles(directory=str(frontend_dir), html=True), name="frontend")
            logger.info(f"Serving frontend from {frontend_dir}")
        else:
            logger.warning(f"No index.html in {frontend_dir}, frontend not mounted")

    return app


def run_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    debug: bool = False,
    static_dir: Optional[str] = None,
    send_timeout: Optional[float] = DEFAULT_SEND_TIMEOUT,
    registry: Optional[ConnectionRegistry] = None,
):
    """Run the API server."""
    app = create_app(registry=registry, static_dir=static_dir, send_timeout=send_timeout)

    logger.info(f"Song Director v{__version__} listening on http://{host}:{port}")
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "info",
        access_log=False,  # Keep control calls out of the log
    )
