"""
Per-method call handlers for mocked gRPC services.

Every method is classified by its streaming flags and gets a ``grpc.aio``
handler of the matching shape:

- unary: returns one fresh payload without reading the request
- client streaming: logs each inbound message, returns one payload at the
  end of input
- server streaming (including bidirectional): pushes payloads periodically
  through a ``StreamPump`` until its timeout; inbound messages are not read
"""

import logging
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict

import grpc
from google.protobuf import message_factory, text_format
from google.protobuf.descriptor import MethodDescriptor, ServiceDescriptor
from google.protobuf.message import Message

from .payload import PayloadFactory
from .pump import DEFAULT_INTERVAL, DEFAULT_TIMEOUT, StreamPump

logger = logging.getLogger(__name__)


class CallShape(Enum):
    """Calling convention of a method."""

    UNARY = "unary"
    CLIENT_STREAMING = "client_streaming"
    SERVER_STREAMING = "server_streaming"


def call_shape(method: MethodDescriptor) -> CallShape:
    """Classify a method by its ``(client_streaming, server_streaming)`` flags.

    Bidirectional methods are served as server streaming.
    """
    if method.server_streaming:
        return CallShape.SERVER_STREAMING
    if method.client_streaming:
        return CallShape.CLIENT_STREAMING
    return CallShape.UNARY


class MethodDispatcher:
    """Builds gRPC handlers that answer every method of a service with mocks.

    Example:
        >>> dispatcher = MethodDispatcher(service, mock_response_methods(service))
        >>> server.add_generic_rpc_handlers((dispatcher.generic_handler(),))
    """

    def __init__(
        self,
        service: ServiceDescriptor,
        payloads: Dict[str, PayloadFactory],
        stream_interval: float = DEFAULT_INTERVAL,
        stream_timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the dispatcher.

        Args:
            service: The service to dispatch
            payloads: Response payload factory per method name
            stream_interval: Seconds between pushes on streaming responses
            stream_timeout: Seconds after which streaming responses end
        """
        self.service = service
        self.payloads = payloads
        self.stream_interval = stream_interval
        self.stream_timeout = stream_timeout

    def handlers(self) -> Dict[str, grpc.RpcMethodHandler]:
        """Build one handler per method, keyed by method name."""
        return {
            name: self.build_handler(method)
            for name, method in self.service.methods_by_name.items()
        }

    def generic_handler(self) -> grpc.GenericRpcHandler:
        """Wrap all method handlers into a generic handler for the service."""
        return grpc.method_handlers_generic_handler(
            self.service.full_name, self.handlers()
        )

    def build_handler(self, method: MethodDescriptor) -> grpc.RpcMethodHandler:
        """Build the handler for a single method according to its call shape."""
        request_class = message_factory.GetMessageClass(method.input_type)
        response_class = message_factory.GetMessageClass(method.output_type)
        serializers = {
            "request_deserializer": request_class.FromString,
            "response_serializer": response_class.SerializeToString,
        }

        shape = call_shape(method)
        if shape is CallShape.UNARY:
            return grpc.unary_unary_rpc_method_handler(
                self._unary(method), **serializers
            )
        if shape is CallShape.CLIENT_STREAMING:
            return grpc.stream_unary_rpc_method_handler(
                self._client_stream(method), **serializers
            )
        if method.client_streaming:
            return grpc.stream_stream_rpc_method_handler(
                self._server_stream(method), **serializers
            )
        return grpc.unary_stream_rpc_method_handler(
            self._server_stream(method), **serializers
        )

    def _produce(self, method: MethodDescriptor) -> Message:
        return self.payloads[method.name]().message

    def _unary(self, method: MethodDescriptor) -> Callable[..., Any]:
        async def handle(request: Message, context: grpc.aio.ServicerContext) -> Message:
            logger.debug(f"Unary call {method.full_name}")
            return self._produce(method)

        return handle

    def _client_stream(self, method: MethodDescriptor) -> Callable[..., Any]:
        async def handle(
            request_iterator: AsyncIterator[Message],
            context: grpc.aio.ServicerContext,
        ) -> Message:
            received = 0
            async for request in request_iterator:
                received += 1
                logger.debug(
                    f"Received data on {method.full_name}: "
                    f"{text_format.MessageToString(request, as_one_line=True)}"
                )
            logger.info(
                f"Client stream {method.full_name} ended after {received} messages"
            )
            return self._produce(method)

        return handle

    def _server_stream(self, method: MethodDescriptor) -> Callable[..., Any]:
        async def handle(request: Any, context: grpc.aio.ServicerContext) -> None:
            pump = StreamPump(
                lambda: self._produce(method),
                interval=self.stream_interval,
                timeout=self.stream_timeout,
                name=method.full_name,
            )
            await pump.run(context.write)

        return handle
