"""
gRPC server answering every method of the loaded services with mocks.

Handlers are built per service by ``MethodDispatcher`` and registered as
generic handlers on an asyncio gRPC server.
"""

import asyncio
import logging
from typing import Optional

import grpc

from ..config import StreamConfig, TLSConfig
from ..dispatcher import MethodDispatcher
from ..service import MockService
from .base import BaseMockServer

logger = logging.getLogger(__name__)


class MockGRPCServer(BaseMockServer):
    """gRPC mock server.

    Example (blocking):
        >>> server = MockGRPCServer(MockService.from_proto("greeter.proto"))
        >>> server.run(host="0.0.0.0", port=50051)

    Example (non-blocking):
        >>> server = MockGRPCServer(MockService.from_proto("greeter.proto"))
        >>> server.start(host="localhost", port=50051)  # Start in background
        >>> # ... do other work ...
        >>> server.stop()  # Stop the server
    """

    def __init__(
        self,
        service: MockService,
        stream: Optional[StreamConfig] = None,
        tls: Optional[TLSConfig] = None,
    ):
        """Initialize the gRPC mock server.

        Args:
            service: The MockService whose payloads are served
            stream: Timing of streaming responses
            tls: TLS material; insecure when omitted or not enabled
        """
        super().__init__(service)
        self.stream = stream or StreamConfig()
        self.tls = tls or TLSConfig()

        # Server state
        self._server: Optional[grpc.aio.Server] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.port: Optional[int] = None

    def bind_services(self, server: grpc.aio.Server) -> int:
        """Register a generic handler for every bound service.

        Returns:
            Number of services registered
        """
        count = 0
        for descriptor in self._service.services():
            logger.info(f"[Service] {descriptor.full_name} detected")
            dispatcher = MethodDispatcher(
                descriptor,
                self._service.response_payloads(descriptor.full_name),
                stream_interval=self.stream.interval,
                stream_timeout=self.stream.timeout,
            )
            server.add_generic_rpc_handlers((dispatcher.generic_handler(),))
            for method in descriptor.methods_by_name:
                logger.info(f"    [Method] {method} registered")
            count += 1
        return count

    async def create_server(self, host: str, port: int) -> Optional[grpc.aio.Server]:
        """Create and bind the gRPC server without starting it.

        Returns:
            The server, or None when there is no service to serve
        """
        server = grpc.aio.server()
        if self.bind_services(server) == 0:
            logger.warning("No services found in your proto file")
            return None

        address = f"{host}:{port}"
        if self.tls.enabled:
            self.port = server.add_secure_port(address, self.tls.credentials())
        else:
            self.port = server.add_insecure_port(address)

        self._server = server
        return server

    async def serve(self, host: str = "0.0.0.0", port: int = 50051) -> None:
        """Serve until the server is stopped."""
        self._loop = asyncio.get_running_loop()
        server = await self.create_server(host, port)
        if server is None:
            return

        await server.start()
        logger.info(f"gRPC server listening on port {self.port}!")
        try:
            await server.wait_for_termination()
        finally:
            self._loop = None

    def run(self, host: str = "0.0.0.0", port: int = 50051) -> None:
        """Run the gRPC server (blocking).

        Args:
            host: Host to bind to
            port: Port to bind to (0 picks a free port)
        """
        logger.info(f"Starting gRPC server on {host}:{port}")
        try:
            asyncio.run(self.serve(host, port))
        except KeyboardInterrupt:
            logger.info("Shutting down gRPC server...")

    def stop(self, grace: float = 5) -> None:
        """Stop the server if running in non-blocking mode.

        Args:
            grace: Grace period in seconds for in-flight calls
        """
        server, loop = self._server, self._loop
        self._server = None
        if server is None:
            return

        logger.info("Stopping gRPC server...")
        if loop is not None and loop.is_running():
            future = asyncio.run_coroutine_threadsafe(server.stop(grace), loop)
            future.result(timeout=grace + 5)
