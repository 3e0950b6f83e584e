"""
Server implementations for serving mock payloads.

This module contains implementations for different protocols:
- gRPC (the mock backend itself)
- HTTP/REST (an inspector for browsing payloads)
"""

from .base import BaseMockServer
from .grpc import MockGRPCServer
from .http import MockHTTPServer, create_app

__all__ = [
    "BaseMockServer",
    "MockGRPCServer",
    "MockHTTPServer",
    "create_app",
]
