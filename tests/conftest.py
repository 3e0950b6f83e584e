"""Pytest configuration and fixtures."""

import pytest

from grpc_automock.loader import load_proto
from grpc_automock.service import MockService
from grpc_automock.synthesis import TypeSynthesizer

LEGACY_PROTO = """
syntax = "proto2";

package automock.legacy;

enum Level {
  LEVEL_HIGH = 5;
  LEVEL_LOW = 1;
}

message Record {
  optional Level level = 1;
  optional string id = 2;
}
"""

MOCK_PROTO = """
syntax = "proto3";

package automock.test;

import "legacy.proto";

enum Color {
  COLOR_RED = 0;
  COLOR_GREEN = 1;
}

message Scalars {
  double a_double = 1;
  float a_float = 2;
  int32 a_int32 = 3;
  int64 a_int64 = 4;
  uint32 a_uint32 = 5;
  uint64 a_uint64 = 6;
  sint32 a_sint32 = 7;
  sint64 a_sint64 = 8;
  fixed32 a_fixed32 = 9;
  fixed64 a_fixed64 = 10;
  sfixed32 a_sfixed32 = 11;
  sfixed64 a_sfixed64 = 12;
  bool a_bool = 13;
  string name = 14;
  bytes data = 15;
}

message User {
  string userId = 1;
  string name = 2;
  Color color = 3;
  repeated string tags = 4;
  optional string nickname = 5;
}

message Node {
  string label = 1;
  Node child = 2;
}

message Ping {
  Pong pong = 1;
  int32 seq = 2;
}

message Pong {
  Ping ping = 1;
}

message Choice {
  oneof pick {
    string a = 1;
    int32 b = 2;
    User c = 3;
  }
  int32 after = 4;
}

message Directory {
  map<string, User> users = 1;
  map<int32, string> labels = 2;
  map<string, Color> colors = 3;
  map<string, Choice> choices = 4;
  repeated Node nodes = 5;
}

message Archive {
  automock.legacy.Record record = 1;
}

message Empty {}

service UserService {
  rpc GetUser (Empty) returns (User);
  rpc UploadUsers (stream User) returns (Directory);
  rpc WatchUsers (Empty) returns (stream User);
  rpc Chat (stream User) returns (stream User);
}

service ArchiveService {
  rpc GetArchive (Empty) returns (Archive);
}
"""

WELL_KNOWN_PROTO = """
syntax = "proto3";

package automock.wkt;

import "google/protobuf/any.proto";
import "google/protobuf/empty.proto";
import "google/protobuf/field_mask.proto";

message Envelope {
  google.protobuf.Any anything = 1;
}

message Masked {
  google.protobuf.FieldMask mask = 1;
  map<int32, bytes> blobs = 2;
}

service WellKnownService {
  rpc GetEnvelope (google.protobuf.Empty) returns (Envelope);
  rpc GetMasked (google.protobuf.Empty) returns (Masked);
}
"""


@pytest.fixture(scope="session")
def proto_dir(tmp_path_factory):
    """Directory holding the sample protos."""
    directory = tmp_path_factory.mktemp("protos")
    (directory / "legacy.proto").write_text(LEGACY_PROTO)
    (directory / "mock.proto").write_text(MOCK_PROTO)
    (directory / "wkt.proto").write_text(WELL_KNOWN_PROTO)
    return directory


@pytest.fixture(scope="session")
def proto_path(proto_dir):
    """Path of the main sample proto."""
    return proto_dir / "mock.proto"


@pytest.fixture(scope="session")
def root(proto_path):
    """Descriptors loaded from the sample proto."""
    return load_proto(proto_path)


@pytest.fixture
def synthesizer():
    """A fresh synthesizer with the default depth limit."""
    return TypeSynthesizer()


@pytest.fixture
def mock_service(root):
    """Service layer bound to the sample proto."""
    return MockService(root)


@pytest.fixture
def lookup(root):
    """Look up a message type of the sample proto by short name."""

    def _lookup(name):
        if "." not in name:
            name = f"automock.test.{name}"
        return root.lookup_type(name)

    return _lookup


@pytest.fixture(scope="session")
def wkt_root(proto_dir):
    """Descriptors of a proto using well-known types."""
    return load_proto(proto_dir / "wkt.proto")


@pytest.fixture
def wkt_service(wkt_root):
    """Service layer bound to the well-known-types proto."""
    return MockService(wkt_root)
