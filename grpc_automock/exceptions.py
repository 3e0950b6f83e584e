"""
Exception types raised by grpc-automock.

Synthesis itself never raises for a well-formed descriptor tree; these
errors only surface while loading protos or binding services.
"""

from typing import Optional


class AutomockError(Exception):
    """Base class for all grpc-automock errors."""


class ProtoLoadError(AutomockError):
    """A .proto file could not be compiled into descriptors."""


class UnresolvableMethodType(AutomockError):
    """A method's request or response type is missing from the descriptor pool."""

    def __init__(self, service: str, method: str, type_name: str):
        self.service = service
        self.method = method
        self.type_name = type_name
        super().__init__(
            f"Cannot resolve type '{type_name}' of method "
            f"'{service}.{method}'"
        )


class UnknownServiceError(AutomockError, KeyError):
    """No service with the given name is bound."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Unknown service '{service}'")

    def __str__(self) -> str:
        return self.args[0]


class UnknownMethodError(AutomockError, KeyError):
    """The service exists but has no method with the given name."""

    def __init__(self, service: str, method: str, detail: Optional[str] = None):
        self.service = service
        self.method = method
        super().__init__(detail or f"Unknown method '{method}' on service '{service}'")

    def __str__(self) -> str:
        return self.args[0]
