"""
Scalar value heuristics.

Maps a protobuf scalar type name (and, for strings, the field name) to a
deterministic literal. The table is built once at import and never mutated.
"""

import uuid
from typing import Any, Dict, Optional

from google.protobuf.descriptor import FieldDescriptor

# Distinct magnitudes per width and signedness so values can be told apart.
SCALAR_VALUES: Dict[str, Any] = {
    "bool": True,
    "int32": 10,
    "int64": 20,
    "uint32": 100,
    "uint64": 200,
    "sint32": 1100,
    "sint64": 1200,
    "fixed32": 1400,
    "fixed64": 1500,
    "sfixed32": 1600,
    "sfixed64": 1700,
    "double": 1.4,
    "float": 1.1,
    "bytes": b"Hello",
}

SCALAR_TYPE_NAMES: Dict[int, str] = {
    FieldDescriptor.TYPE_DOUBLE: "double",
    FieldDescriptor.TYPE_FLOAT: "float",
    FieldDescriptor.TYPE_INT64: "int64",
    FieldDescriptor.TYPE_UINT64: "uint64",
    FieldDescriptor.TYPE_INT32: "int32",
    FieldDescriptor.TYPE_FIXED64: "fixed64",
    FieldDescriptor.TYPE_FIXED32: "fixed32",
    FieldDescriptor.TYPE_BOOL: "bool",
    FieldDescriptor.TYPE_STRING: "string",
    FieldDescriptor.TYPE_BYTES: "bytes",
    FieldDescriptor.TYPE_UINT32: "uint32",
    FieldDescriptor.TYPE_SFIXED32: "sfixed32",
    FieldDescriptor.TYPE_SFIXED64: "sfixed64",
    FieldDescriptor.TYPE_SINT32: "sint32",
    FieldDescriptor.TYPE_SINT64: "sint64",
}


def scalar_type_name(field: FieldDescriptor) -> Optional[str]:
    """Return the scalar type name of a field, or None for message/enum fields."""
    return SCALAR_TYPE_NAMES.get(field.type)


def interpret_via_field_name(field_name: str) -> str:
    """
    Guess a string value from the field name.

    Names starting or ending with ``id`` (case-insensitive) get a fresh
    UUID4, everything else gets ``"Hello"``.
    """
    lowered = field_name.lower()
    if lowered.startswith("id") or lowered.endswith("id"):
        return str(uuid.uuid4())
    return "Hello"


def mock_scalar(type_name: Optional[str], field_name: str) -> Optional[Any]:
    """
    Return the literal for a scalar type.

    Args:
        type_name: Scalar type name such as ``int32`` or ``string``
        field_name: Name of the field being mocked

    Returns:
        The literal value, or None when the type name is not a scalar
    """
    if type_name == "string":
        return interpret_via_field_name(field_name)
    if type_name is None:
        return None
    return SCALAR_VALUES.get(type_name)
