"""
Loading .proto files into protobuf descriptors.

The proto is compiled with the protoc bundled in grpcio-tools into a
FileDescriptorSet (imports included), which is then registered into a fresh
DescriptorPool. No Python code is generated.
"""

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Sequence, Union

import grpc_tools
from grpc_tools import protoc
from google.protobuf import descriptor_pb2, descriptor_pool
from google.protobuf.descriptor import Descriptor, FileDescriptor, ServiceDescriptor

from .exceptions import ProtoLoadError

logger = logging.getLogger(__name__)

WELL_KNOWN_PROTOS = Path(grpc_tools.__file__).parent / "_proto"

PathLike = Union[str, Path]


@dataclass
class ProtoRoot:
    """Descriptors loaded from one .proto file and its imports."""

    path: Path
    pool: descriptor_pool.DescriptorPool
    files: List[FileDescriptor] = field(default_factory=list)

    def lookup_type(self, full_name: str) -> Descriptor:
        """Find a message type by fully-qualified name.

        Raises:
            KeyError: If the type is not defined
        """
        return self.pool.FindMessageTypeByName(full_name)


def compile_descriptor_set(
    proto_path: Path, include_dirs: Sequence[PathLike] = ()
) -> descriptor_pb2.FileDescriptorSet:
    """Run protoc on a .proto file and return its descriptor set.

    Raises:
        ProtoLoadError: If protoc reports an error
    """
    includes = [proto_path.parent, *(Path(d) for d in include_dirs), WELL_KNOWN_PROTOS]

    with tempfile.TemporaryDirectory() as tmp_dir:
        output = Path(tmp_dir) / "descriptor_set.pb"
        args = [
            "grpc_tools.protoc",
            *(f"-I{include}" for include in includes),
            f"--descriptor_set_out={output}",
            "--include_imports",
            str(proto_path),
        ]
        logger.debug(f"Running: {' '.join(args)}")

        if protoc.main(args) != 0 or not output.exists():
            raise ProtoLoadError(f"Failed to compile proto file {proto_path}")

        return descriptor_pb2.FileDescriptorSet.FromString(output.read_bytes())


def load_proto(
    proto_path: PathLike, include_dirs: Sequence[PathLike] = ()
) -> ProtoRoot:
    """Load a .proto file and everything it imports.

    Args:
        proto_path: Path to the .proto file
        include_dirs: Additional import directories

    Returns:
        The loaded descriptors

    Raises:
        ProtoLoadError: If the file does not exist or does not compile
    """
    path = Path(proto_path).resolve()
    if not path.is_file():
        raise ProtoLoadError(f"Proto file not found at {path}")

    descriptor_set = compile_descriptor_set(path, include_dirs)

    pool = descriptor_pool.DescriptorPool()
    try:
        for file_proto in descriptor_set.file:
            pool.Add(file_proto)
        files = [pool.FindFileByName(f.name) for f in descriptor_set.file]
    except (TypeError, KeyError) as e:
        raise ProtoLoadError(f"Invalid descriptors in {path}: {e}") from e

    logger.info(f"Loaded {len(files)} proto file(s) from {path}")
    return ProtoRoot(path=path, pool=pool, files=files)


def walk_services(root: ProtoRoot) -> Iterator[ServiceDescriptor]:
    """Yield every service defined in the loaded files, in load order."""
    for file in root.files:
        yield from file.services_by_name.values()
