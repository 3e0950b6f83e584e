"""
HTTP inspector with Swagger UI for browsing mock payloads.

This module exposes the same payloads the gRPC server answers with as JSON,
so example requests and responses can be looked at without a gRPC client.
"""

import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence

import uvicorn
from fastapi import FastAPI, HTTPException

from ..exceptions import UnknownMethodError, UnknownServiceError
from ..loader import PathLike
from ..models import HealthResponse, MethodInfo, PayloadResponse, ServiceInfo
from ..payload import MockPayload, render_json
from ..service import MockService
from .base import BaseMockServer

logger = logging.getLogger(__name__)


class MockHTTPServer(BaseMockServer):
    """HTTP inspector for mock payloads.

    Example (blocking):
        >>> server = MockHTTPServer(MockService.from_proto("greeter.proto"))
        >>> server.run(host="localhost", port=8000)

    Example (non-blocking):
        >>> server = MockHTTPServer(MockService.from_proto("greeter.proto"))
        >>> server.start(host="localhost", port=8000)  # Start in background
        >>> # ... do other work ...
        >>> server.stop()  # Stop the server
    """

    def __init__(self, service: MockService, title: Optional[str] = None):
        """Initialize the HTTP inspector.

        Args:
            service: The MockService whose payloads are shown
            title: Title for the Swagger UI (default: derived from the proto name)
        """
        super().__init__(service)
        self.title = title or f"{service.root.path.stem} mock API"

        self._app = self._create_app(self.title)

        # Server state
        self._server: Optional[uvicorn.Server] = None

    def _create_app(self, title: str) -> FastAPI:
        """Create and configure the FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):  # type: ignore[misc]
            logger.info(f"HTTP inspector starting for {self._service.root.path}")
            yield
            logger.info("HTTP inspector shutting down...")

        app = FastAPI(
            title=title,
            description=(
                "Browse the mock payloads served for "
                f"**{self._service.root.path.name}**."
            ),
            lifespan=lifespan,
            docs_url="/docs",
            redoc_url="/redoc",
            openapi_url="/openapi.json",
        )
        self._register_routes(app)
        return app

    def _service_info(self, name: str) -> ServiceInfo:
        described = self._service.describe(name)
        full_name, methods = next(iter(described.items()))
        return ServiceInfo(
            name=full_name,
            methods={
                method: MethodInfo(**info) for method, info in methods.items()
            },
        )

    def _payload_response(
        self, service: str, method: str, payload: MockPayload
    ) -> PayloadResponse:
        return PayloadResponse(
            service=self._service.service(service).full_name,
            method=method,
            type=payload.message.DESCRIPTOR.full_name,
            payload=render_json(payload),
        )

    def _register_routes(self, app: FastAPI) -> None:
        """Register all API routes."""

        @app.get("/", tags=["Health"])
        async def root() -> Dict[str, str]:
            """Root endpoint with API information."""
            return {
                "message": "gRPC mock inspector",
                "docs": "/docs",
                "proto": str(self._service.root.path),
            }

        @app.get("/health", response_model=HealthResponse, tags=["Health"])
        async def health_check() -> HealthResponse:
            """Check server health and the loaded proto."""
            return HealthResponse(
                status="healthy",
                proto=str(self._service.root.path),
                services=len(self._service.services()),
            )

        @app.get("/services", response_model=List[ServiceInfo], tags=["Services"])
        async def list_services() -> List[ServiceInfo]:
            """List bound services and their methods."""
            return [
                self._service_info(service.full_name)
                for service in self._service.services()
            ]

        @app.get("/services/{service}", response_model=ServiceInfo, tags=["Services"])
        async def get_service(service: str) -> ServiceInfo:
            """Describe one service."""
            try:
                return self._service_info(service)
            except UnknownServiceError as e:
                raise HTTPException(status_code=404, detail=str(e))

        @app.get(
            "/services/{service}/methods/{method}/response",
            response_model=PayloadResponse,
            tags=["Payloads"],
        )
        async def mock_response(service: str, method: str) -> PayloadResponse:
            """Synthesize a response the gRPC server would send for a method."""
            try:
                payload = self._service.mock_response(service, method)
            except (UnknownServiceError, UnknownMethodError) as e:
                raise HTTPException(status_code=404, detail=str(e))
            return self._payload_response(service, method, payload)

        @app.get(
            "/services/{service}/methods/{method}/request",
            response_model=PayloadResponse,
            tags=["Payloads"],
        )
        async def mock_request(service: str, method: str) -> PayloadResponse:
            """Synthesize an example request for a method."""
            try:
                payload = self._service.mock_request(service, method)
            except (UnknownServiceError, UnknownMethodError) as e:
                raise HTTPException(status_code=404, detail=str(e))
            return self._payload_response(service, method, payload)

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app

    def run(self, host: str = "localhost", port: int = 8000) -> None:
        """Run the HTTP inspector (blocking).

        Args:
            host: Host to bind to
            port: Port to bind to
        """
        logger.info(f"Starting HTTP inspector at http://{host}:{port}")
        logger.info(f"Swagger UI available at http://{host}:{port}/docs")
        uvicorn.run(self._app, host=host, port=port)

    def start(self, host: str = "localhost", port: int = 8000) -> None:
        """Start the inspector in a background thread (non-blocking).

        Raises:
            RuntimeError: If server is already running
        """
        if self.is_alive():
            raise RuntimeError("Server already started")

        config = uvicorn.Config(self._app, host=host, port=port, log_level="info")
        self._server = uvicorn.Server(config)

        self._thread = threading.Thread(target=self._server.run, daemon=True)
        self._thread.start()

        logger.info("Waiting for HTTP inspector to start...")
        time.sleep(1)

        logger.info(f"HTTP inspector started at http://{host}:{port}")

    def stop(self, grace: float = 5) -> None:
        """Stop the inspector if running in non-blocking mode.

        Args:
            grace: Not used for HTTP, kept for API consistency
        """
        if self._server is not None:
            logger.info("Stopping HTTP inspector...")
            self._server.should_exit = True
            self._server = None


def create_app(
    proto_path: PathLike,
    include_dirs: Sequence[PathLike] = (),
    title: Optional[str] = None,
) -> FastAPI:
    """Factory function to create the inspector app for a proto file.

    This is useful for running with external ASGI servers.

    Args:
        proto_path: Path to the .proto file
        include_dirs: Additional proto import directories
        title: Optional title for Swagger UI

    Returns:
        Configured FastAPI application
    """
    service = MockService.from_proto(proto_path, include_dirs)
    return MockHTTPServer(service, title=title).app
