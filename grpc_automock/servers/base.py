"""
Abstract base class for mock servers.

This module defines the common interface that the gRPC server and the HTTP
inspector follow.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

from ..service import MockService

logger = logging.getLogger(__name__)


class BaseMockServer(ABC):
    """Abstract base class for mock servers.

    All servers share:
    - The shared service layer (MockService)
    - Non-blocking mode support (start/stop/is_alive)
    - Threading support for background execution
    """

    def __init__(self, service: MockService):
        """Initialize the base mock server.

        Args:
            service: The MockService whose payloads are served
        """
        self._service = service

        # Threading support for non-blocking mode
        self._thread: Optional[threading.Thread] = None

    @property
    def service(self) -> MockService:
        """Get the underlying mock service instance."""
        return self._service

    @abstractmethod
    def run(self, host: str, port: int) -> None:
        """Run the server (blocking) until it is stopped."""

    def start(self, host: str, port: int) -> None:
        """Start the server in a background thread (non-blocking).

        Args:
            host: Host to bind to
            port: Port to bind to

        Raises:
            RuntimeError: If server is already running
        """
        if self.is_alive():
            raise RuntimeError("Server already started")

        self._thread = threading.Thread(
            target=self._run_in_thread, args=(host, port), daemon=True
        )
        self._thread.start()

        logger.info("Waiting for server to start...")
        time.sleep(1)

    def _run_in_thread(self, host: str, port: int) -> None:
        try:
            self.run(host, port)
        except Exception as e:
            logger.error(f"Server error: {e}", exc_info=True)

    @abstractmethod
    def stop(self, grace: float = 5) -> None:
        """Stop the server if running in non-blocking mode.

        Args:
            grace: Grace period in seconds for in-flight calls
        """

    def is_alive(self) -> bool:
        """Check if the server thread is alive."""
        return self._thread is not None and self._thread.is_alive()
