"""
Shared service layer for mocked proto services.

This module binds payload factories to every service of a loaded proto and
offers a single interface used by both the gRPC server and the HTTP
inspector.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from google.protobuf.descriptor import ServiceDescriptor

from .exceptions import UnknownMethodError, UnknownServiceError, UnresolvableMethodType
from .loader import PathLike, ProtoRoot, load_proto, walk_services
from .payload import (
    MockPayload,
    PayloadFactory,
    mock_request_methods,
    mock_response_methods,
)
from .synthesis import MAX_DEPTH, TypeSynthesizer

logger = logging.getLogger(__name__)


class MockService:
    """Service layer for mock payload generation.

    Every service found in the proto root is bound on construction. A service
    with a method whose types cannot be resolved is skipped and recorded in
    ``failed``; the other services stay available.
    """

    def __init__(self, root: ProtoRoot, max_depth: int = MAX_DEPTH):
        """Initialize the mock service.

        Args:
            root: Loaded proto descriptors
            max_depth: Visits per message type before synthesis stops recursing
        """
        self.root = root
        self.synthesizer = TypeSynthesizer(max_depth=max_depth)

        self._services: Dict[str, ServiceDescriptor] = {}
        self._responses: Dict[str, Dict[str, PayloadFactory]] = {}
        self._requests: Dict[str, Dict[str, PayloadFactory]] = {}
        self.failed: Dict[str, UnresolvableMethodType] = {}

        for service in walk_services(root):
            try:
                self.bind(service)
            except UnresolvableMethodType as e:
                logger.error(f"Skipping service {service.full_name}: {e}")
                self.failed[service.full_name] = e

    @classmethod
    def from_proto(
        cls,
        proto_path: PathLike,
        include_dirs: Sequence[PathLike] = (),
        max_depth: int = MAX_DEPTH,
    ) -> "MockService":
        """Load a .proto file and bind all of its services."""
        return cls(load_proto(proto_path, include_dirs), max_depth=max_depth)

    def bind(self, service: ServiceDescriptor) -> None:
        """Bind request and response payload factories for a service.

        Raises:
            UnresolvableMethodType: If a method type is missing from the pool
        """
        responses = mock_response_methods(service, self.synthesizer, self.root.pool)
        requests = mock_request_methods(service, self.synthesizer, self.root.pool)

        self._services[service.full_name] = service
        self._responses[service.full_name] = responses
        self._requests[service.full_name] = requests
        logger.info(
            f"Bound service {service.full_name} with {len(responses)} method(s)"
        )

    def services(self) -> List[ServiceDescriptor]:
        """All bound services in load order."""
        return list(self._services.values())

    def service(self, name: str) -> ServiceDescriptor:
        """Find a bound service by full name, or by short name if unambiguous.

        Raises:
            UnknownServiceError: If no bound service matches
        """
        if name in self._services:
            return self._services[name]
        matches = [s for s in self._services.values() if s.name == name]
        if len(matches) == 1:
            return matches[0]
        raise UnknownServiceError(name)

    def response_payloads(self, service_name: str) -> Dict[str, PayloadFactory]:
        """Response payload factories of a bound service, keyed by method."""
        return self._responses[self.service(service_name).full_name]

    def request_payloads(self, service_name: str) -> Dict[str, PayloadFactory]:
        """Request payload factories of a bound service, keyed by method."""
        return self._requests[self.service(service_name).full_name]

    def mock_response(self, service_name: str, method_name: str) -> MockPayload:
        """Synthesize a fresh response payload for a method."""
        return self._factory(self.response_payloads(service_name), service_name, method_name)()

    def mock_request(self, service_name: str, method_name: str) -> MockPayload:
        """Synthesize a fresh example request payload for a method."""
        return self._factory(self.request_payloads(service_name), service_name, method_name)()

    @staticmethod
    def _factory(
        factories: Dict[str, PayloadFactory], service_name: str, method_name: str
    ) -> PayloadFactory:
        try:
            return factories[method_name]
        except KeyError:
            raise UnknownMethodError(service_name, method_name) from None

    def describe(self, service_name: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """Describe bound services and their methods.

        Args:
            service_name: Limit the description to one service

        Returns:
            Mapping of service full name to method name to method details
        """
        services = (
            [self.service(service_name)] if service_name else self.services()
        )
        return {
            service.full_name: {
                name: {
                    "request_type": method.input_type.full_name,
                    "response_type": method.output_type.full_name,
                    "client_streaming": method.client_streaming,
                    "server_streaming": method.server_streaming,
                }
                for name, method in service.methods_by_name.items()
            }
            for service in services
        }
