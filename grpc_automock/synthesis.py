"""
Schema-driven value synthesis for protobuf message types.

Every field of a message descriptor is resolved once into a ``FieldShape``
(map, message, enum, scalar or unresolved). Synthesis then walks those shapes
recursively and produces a plain Python structure:

- scalars come from ``heuristics.mock_scalar``
- enums take their first declared value
- repeated fields hold exactly one element
- map fields hold exactly one entry
- a oneof group always sets its first declared alternative

Recursion is bounded by a depth map (message full name -> visit count) that
is created fresh for each top-level call and threaded through every
recursive step of that call only.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from google.protobuf.descriptor import (
    Descriptor,
    EnumDescriptor,
    FieldDescriptor,
    OneofDescriptor,
)

from .heuristics import mock_scalar, scalar_type_name

logger = logging.getLogger(__name__)

MAX_DEPTH = 3

DepthMap = Dict[str, int]


class FieldKind(Enum):
    """What a field resolves to."""

    MAP = "map"
    MESSAGE = "message"
    ENUM = "enum"
    SCALAR = "scalar"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class FieldShape:
    """A field resolved into the variant synthesis dispatches on."""

    name: str
    kind: FieldKind
    repeated: bool = False
    scalar_type: Optional[str] = None
    message_type: Optional[Descriptor] = None
    enum_type: Optional[EnumDescriptor] = None
    key_type: Optional[str] = None
    value: Optional["FieldShape"] = None
    oneof: Optional[str] = None
    descriptor: Optional[FieldDescriptor] = field(default=None, compare=False, repr=False)


def is_map_field(field: FieldDescriptor) -> bool:
    """Check whether a field is a ``map<K, V>`` field."""
    message_type = field.message_type
    return (
        message_type is not None
        and field.is_repeated
        and message_type.GetOptions().map_entry
    )


def is_synthetic_oneof(oneof: OneofDescriptor) -> bool:
    """Check whether a oneof was generated for a proto3 ``optional`` field."""
    return len(oneof.fields) == 1 and oneof.name == f"_{oneof.fields[0].name}"


def real_oneofs(descriptor: Descriptor) -> List[OneofDescriptor]:
    """Oneof groups declared in the schema, excluding synthetic ones."""
    return [oneof for oneof in descriptor.oneofs if not is_synthetic_oneof(oneof)]


def resolve_field(field: FieldDescriptor) -> FieldShape:
    """Resolve a field descriptor into its ``FieldShape``."""
    oneof = field.containing_oneof
    oneof_name = None
    if oneof is not None and not is_synthetic_oneof(oneof):
        oneof_name = oneof.name

    if is_map_field(field):
        entry = field.message_type
        key_field = entry.fields_by_name["key"]
        value_shape = resolve_field(entry.fields_by_name["value"])
        return FieldShape(
            name=field.name,
            kind=FieldKind.MAP,
            key_type=scalar_type_name(key_field),
            value=value_shape,
            descriptor=field,
        )

    repeated = field.is_repeated
    if field.message_type is not None:
        return FieldShape(
            name=field.name,
            kind=FieldKind.MESSAGE,
            repeated=repeated,
            message_type=field.message_type,
            oneof=oneof_name,
            descriptor=field,
        )
    if field.enum_type is not None:
        return FieldShape(
            name=field.name,
            kind=FieldKind.ENUM,
            repeated=repeated,
            enum_type=field.enum_type,
            oneof=oneof_name,
            descriptor=field,
        )

    type_name = scalar_type_name(field)
    return FieldShape(
        name=field.name,
        kind=FieldKind.SCALAR if type_name else FieldKind.UNRESOLVED,
        repeated=repeated,
        scalar_type=type_name,
        oneof=oneof_name,
        descriptor=field,
    )


def mock_enum(enum_type: EnumDescriptor) -> int:
    """Return the number of the first declared enum value."""
    return enum_type.values[0].number


class TypeSynthesizer:
    """Turns message descriptors into plain mock structures.

    Field shapes are resolved per message type and cached; ``prepare`` does
    this eagerly for every type reachable from a root so that serving a call
    never has to resolve anything. The cache is derived from immutable
    descriptors only; all per-call state lives in the depth map.

    Example:
        >>> synthesizer = TypeSynthesizer()
        >>> resolved = synthesizer.prepare(HelloReply.DESCRIPTOR)
        >>> synthesizer.synthesize(HelloReply.DESCRIPTOR)
        {'message': 'Hello'}
    """

    def __init__(self, max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth
        self._shapes: Dict[str, Dict[str, FieldShape]] = {}

    def prepare(self, descriptor: Descriptor) -> int:
        """Resolve the shapes of ``descriptor`` and every type it reaches.

        Returns:
            Number of message types newly resolved
        """
        resolved = 0
        pending = deque([descriptor])
        while pending:
            current = pending.popleft()
            if current.full_name in self._shapes:
                continue
            shapes = self._resolve_type(current)
            resolved += 1
            for shape in shapes.values():
                target = shape.value if shape.kind is FieldKind.MAP else shape
                if target is not None and target.message_type is not None:
                    pending.append(target.message_type)
        return resolved

    def _resolve_type(self, descriptor: Descriptor) -> Dict[str, FieldShape]:
        shapes = {field.name: resolve_field(field) for field in descriptor.fields}
        self._shapes[descriptor.full_name] = shapes
        return shapes

    def shapes(self, descriptor: Descriptor) -> Dict[str, FieldShape]:
        """Field shapes of a message type in declaration order."""
        shapes = self._shapes.get(descriptor.full_name)
        if shapes is None:
            logger.debug(f"Resolving unprepared type {descriptor.full_name}")
            shapes = self._resolve_type(descriptor)
        return shapes

    def synthesize(
        self, descriptor: Descriptor, depth: Optional[DepthMap] = None
    ) -> Dict[str, Any]:
        """Synthesize a plain structure for a message type.

        Args:
            descriptor: The message type to mock
            depth: Depth map of the enclosing top-level call. Omit it to start
                a new top-level synthesis.

        Returns:
            Dictionary keyed by field name (oneof groups keyed by group name).
            Empty once the type has been visited more than ``max_depth`` times
            within the same top-level call.
        """
        if depth is None:
            depth = {}

        name = descriptor.full_name
        depth[name] = depth.get(name, 0) + 1
        if depth[name] > self.max_depth:
            return {}

        data: Dict[str, Any] = {}
        oneofs = {oneof.name: oneof for oneof in real_oneofs(descriptor)}
        for shape in self.shapes(descriptor).values():
            if shape.oneof is not None:
                if shape.oneof not in data:
                    data.update(self.pick_oneof(oneofs[shape.oneof], depth))
                continue

            value = self.synthesize_field(shape, depth)
            data[shape.name] = [value] if shape.repeated else value
        return data

    def synthesize_field(self, shape: FieldShape, depth: DepthMap) -> Any:
        """Synthesize the value of a single (non-repeated) field."""
        if shape.kind is FieldKind.MAP:
            key = mock_scalar(shape.key_type, shape.name)
            return {key: self._map_value(shape, depth)}
        if shape.kind is FieldKind.MESSAGE:
            return self.synthesize(shape.message_type, depth)
        if shape.kind is FieldKind.ENUM:
            return mock_enum(shape.enum_type)

        value = mock_scalar(shape.scalar_type, shape.name)
        if value is None and shape.descriptor is not None:
            # One forced re-resolution; anything still unresolved stays None.
            retried = resolve_field(shape.descriptor)
            if retried.kind in (FieldKind.MESSAGE, FieldKind.ENUM, FieldKind.MAP):
                return self.synthesize_field(retried, depth)
            value = mock_scalar(retried.scalar_type, retried.name)
        return value

    def _map_value(self, shape: FieldShape, depth: DepthMap) -> Any:
        value_shape = shape.value
        if value_shape is None:
            return {}
        if value_shape.kind is FieldKind.MESSAGE:
            message_type = value_shape.message_type
            if real_oneofs(message_type):
                return self.pick_oneofs(message_type, depth)
            return self.synthesize(message_type, depth)
        if value_shape.kind is FieldKind.ENUM:
            return mock_enum(value_shape.enum_type)
        if value_shape.kind is FieldKind.SCALAR:
            return mock_scalar(value_shape.scalar_type, shape.name)
        return {}

    def pick_oneof(self, oneof: OneofDescriptor, depth: DepthMap) -> Dict[str, Any]:
        """Synthesize a oneof group by always choosing its first alternative.

        Returns:
            ``{group_name: {first_field_name: value}}``
        """
        first = oneof.fields[0]
        shape = self.shapes(oneof.containing_type)[first.name]
        return {oneof.name: {first.name: self.synthesize_field(shape, depth)}}

    def pick_oneofs(self, descriptor: Descriptor, depth: DepthMap) -> Dict[str, Any]:
        """Pick every real oneof group of a message type."""
        picked: Dict[str, Any] = {}
        for oneof in real_oneofs(descriptor):
            picked.update(self.pick_oneof(oneof, depth))
        return picked
