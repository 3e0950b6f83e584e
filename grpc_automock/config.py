"""
Configuration models for the mock servers.

Built from CLI arguments via ``MockServerConfig.from_args`` or directly in
code. Validation errors surface as ``pydantic.ValidationError``.
"""

import argparse
from pathlib import Path
from typing import List, Optional

import grpc
from pydantic import BaseModel, Field, model_validator

from .pump import DEFAULT_INTERVAL, DEFAULT_TIMEOUT
from .synthesis import MAX_DEPTH


class StreamConfig(BaseModel):
    """Timing of server-streaming responses."""

    interval: float = Field(
        default=DEFAULT_INTERVAL, gt=0, description="Seconds between pushed messages"
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Seconds after which a stream ends"
    )


class TLSConfig(BaseModel):
    """TLS material for the gRPC server."""

    root_cert: Optional[Path] = Field(
        default=None, description="PEM root certificates used to verify clients"
    )
    cert_chain: Optional[Path] = Field(
        default=None, description="PEM certificate chain of the server"
    )
    private_key: Optional[Path] = Field(
        default=None, description="PEM private key of the server"
    )
    check_client_certificate: bool = Field(
        default=False, description="Require and verify client certificates"
    )

    @model_validator(mode="after")
    def _check_key_pair(self) -> "TLSConfig":
        if (self.cert_chain is None) != (self.private_key is None):
            raise ValueError("cert_chain and private_key must be given together")
        if self.root_cert is not None and self.cert_chain is None:
            raise ValueError("root_cert requires cert_chain and private_key")
        return self

    @property
    def enabled(self) -> bool:
        """Whether a key pair is configured."""
        return self.cert_chain is not None and self.private_key is not None

    def credentials(self) -> grpc.ServerCredentials:
        """Read the TLS files and build server credentials.

        Raises:
            RuntimeError: If TLS is not configured
            OSError: If a file cannot be read
        """
        if not self.enabled:
            raise RuntimeError("TLS is not configured")

        root_certificates = self.root_cert.read_bytes() if self.root_cert else None
        return grpc.ssl_server_credentials(
            [(self.private_key.read_bytes(), self.cert_chain.read_bytes())],
            root_certificates=root_certificates,
            require_client_auth=self.check_client_certificate,
        )


class MockServerConfig(BaseModel):
    """Settings of a mock server run."""

    proto: Path = Field(description="Path to the .proto file to mock")
    include_dirs: List[Path] = Field(
        default_factory=list, description="Additional proto import directories"
    )
    host: str = Field(default="0.0.0.0", description="Host to bind the gRPC server to")
    port: int = Field(default=50051, ge=0, le=65535, description="gRPC port")
    http_port: Optional[int] = Field(
        default=None,
        ge=0,
        le=65535,
        description="Port of the HTTP inspector (disabled when unset)",
    )
    max_depth: int = Field(
        default=MAX_DEPTH, ge=1, description="Visits per message type before mocks stop recursing"
    )
    stream: StreamConfig = Field(default_factory=StreamConfig)
    tls: TLSConfig = Field(default_factory=TLSConfig)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "MockServerConfig":
        """Build a config from parsed CLI arguments."""
        return cls(
            proto=args.proto,
            include_dirs=args.include_dirs or [],
            host=args.host,
            port=args.port,
            http_port=args.http_port,
            max_depth=args.max_depth,
            stream=StreamConfig(
                interval=args.stream_interval, timeout=args.stream_timeout
            ),
            tls=TLSConfig(
                root_cert=args.root_cert,
                cert_chain=args.cert_chain,
                private_key=args.private_key,
                check_client_certificate=args.check_client_cert,
            ),
        )
