"""
Mock payloads for service methods.

A payload pairs the plain structure produced by ``TypeSynthesizer`` with the
schema-typed protobuf message built from it. Payload factories are bound per
method and synthesize a fresh payload on every call.
"""

import base64
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from google.protobuf import json_format, message_factory
from google.protobuf.descriptor import Descriptor, FieldDescriptor, ServiceDescriptor
from google.protobuf.descriptor_pool import DescriptorPool
from google.protobuf.message import Message

from .exceptions import UnresolvableMethodType
from .synthesis import TypeSynthesizer, is_map_field

logger = logging.getLogger(__name__)


class MethodType(Enum):
    """Which side of a method to mock."""

    REQUEST = "request"
    RESPONSE = "response"


@dataclass(frozen=True)
class MockPayload:
    """One synthesized message in plain and schema-typed form."""

    plain: Dict[str, Any]
    message: Message


PayloadFactory = Callable[[], MockPayload]


def build_message(descriptor: Descriptor, plain: Dict[str, Any]) -> Message:
    """Build a protobuf message of the given type from a plain structure.

    Args:
        descriptor: Message type of the result
        plain: Structure as produced by ``TypeSynthesizer.synthesize``

    Returns:
        A new message instance
    """
    message = message_factory.GetMessageClass(descriptor)()
    fill_message(message, plain)
    return message


def fill_message(message: Message, plain: Dict[str, Any]) -> None:
    """Copy a plain structure into an existing message in place."""
    descriptor = message.DESCRIPTOR
    for key, value in plain.items():
        if key in descriptor.oneofs_by_name:
            # {group: {field: value}}
            fill_message(message, value)
            continue
        field = descriptor.fields_by_name.get(key)
        if field is None:
            logger.debug(f"Ignoring unknown key '{key}' for {descriptor.full_name}")
            continue
        _assign(message, field, value)


def _assign(message: Message, field: FieldDescriptor, value: Any) -> None:
    if value is None:
        return

    if is_map_field(field):
        container = getattr(message, field.name)
        value_field = field.message_type.fields_by_name["value"]
        for key, item in value.items():
            if value_field.message_type is not None:
                fill_message(container[key], item or {})
            elif item is not None:
                container[key] = item
        return

    if field.is_repeated:
        container = getattr(message, field.name)
        for item in value:
            if field.message_type is not None:
                fill_message(container.add(), item or {})
            elif item is not None:
                container.append(item)
        return

    if field.message_type is not None:
        submessage = getattr(message, field.name)
        submessage.SetInParent()
        fill_message(submessage, value)
        return

    setattr(message, field.name, value)


def render_json(payload: MockPayload) -> Dict[str, Any]:
    """Render a payload as a JSON-compatible dict.

    Uses the proto JSON mapping when the message allows it. Some well-known
    types reject synthesized values there (an ``Any`` whose ``type_url`` names
    no known type, a ``FieldMask`` path with uppercase letters); those fall
    back to the plain structure with bytes base64-encoded and keys as strings.
    """
    try:
        return json_format.MessageToDict(
            payload.message, preserving_proto_field_name=True
        )
    except (json_format.Error, TypeError, ValueError) as e:
        logger.warning(
            f"Cannot render {payload.message.DESCRIPTOR.full_name} as proto JSON, "
            f"using the plain payload: {e}"
        )
        return _jsonable(payload.plain)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def lookup_type(
    pool: DescriptorPool, service: str, method: str, type_name: str
) -> Descriptor:
    """Find a message type by its fully-qualified name.

    Raises:
        UnresolvableMethodType: If the pool has no such type
    """
    try:
        return pool.FindMessageTypeByName(type_name)
    except KeyError as e:
        raise UnresolvableMethodType(service, method, type_name) from e


def mock_method_payloads(
    service: ServiceDescriptor,
    method_type: MethodType,
    synthesizer: Optional[TypeSynthesizer] = None,
    pool: Optional[DescriptorPool] = None,
) -> Dict[str, PayloadFactory]:
    """Bind a payload factory to every method of a service.

    Args:
        service: The service descriptor
        method_type: Mock requests or responses
        synthesizer: Synthesizer to use (a new one if omitted)
        pool: Pool to resolve type names in (the service's own by default)

    Returns:
        Mapping of method name to a zero-argument payload factory

    Raises:
        UnresolvableMethodType: If any method type is missing from the pool
    """
    synthesizer = synthesizer or TypeSynthesizer()
    pool = pool or service.file.pool

    factories: Dict[str, PayloadFactory] = {}
    for name, method in service.methods_by_name.items():
        declared = (
            method.input_type
            if method_type is MethodType.REQUEST
            else method.output_type
        )
        descriptor = lookup_type(pool, service.full_name, name, declared.full_name)
        synthesizer.prepare(descriptor)
        factories[name] = _payload_factory(synthesizer, descriptor)
    return factories


def _payload_factory(
    synthesizer: TypeSynthesizer, descriptor: Descriptor
) -> PayloadFactory:
    def factory() -> MockPayload:
        plain = synthesizer.synthesize(descriptor, {})
        return MockPayload(plain=plain, message=build_message(descriptor, plain))

    return factory


def mock_response_methods(
    service: ServiceDescriptor,
    synthesizer: Optional[TypeSynthesizer] = None,
    pool: Optional[DescriptorPool] = None,
) -> Dict[str, PayloadFactory]:
    """Payload factories for the responses of every method of a service."""
    return mock_method_payloads(service, MethodType.RESPONSE, synthesizer, pool)


def mock_request_methods(
    service: ServiceDescriptor,
    synthesizer: Optional[TypeSynthesizer] = None,
    pool: Optional[DescriptorPool] = None,
) -> Dict[str, PayloadFactory]:
    """Payload factories for the requests of every method of a service."""
    return mock_method_payloads(service, MethodType.REQUEST, synthesizer, pool)
