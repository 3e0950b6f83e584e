"""
gRPC Automock

A mock gRPC server that answers every method of the services in a .proto
file with synthesized messages, so clients can be exercised before the
real backend exists.

Also provides an HTTP inspector for browsing the generated payloads.
"""

from .dispatcher import CallShape, MethodDispatcher
from .loader import ProtoRoot, load_proto, walk_services
from .payload import MockPayload, mock_request_methods, mock_response_methods
from .pump import StreamPump
from .servers import (
    BaseMockServer,
    MockGRPCServer,
    MockHTTPServer,
    create_app,
)
from .service import MockService
from .synthesis import TypeSynthesizer

__version__ = "0.4.0"
__all__ = [
    "BaseMockServer",
    "CallShape",
    "MethodDispatcher",
    "MockGRPCServer",
    "MockHTTPServer",
    "MockPayload",
    "MockService",
    "ProtoRoot",
    "StreamPump",
    "TypeSynthesizer",
    "create_app",
    "load_proto",
    "mock_request_methods",
    "mock_response_methods",
    "walk_services",
]
