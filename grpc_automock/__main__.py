"""
Entrypoint for running grpc_automock as a module.
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import MockServerConfig
from .exceptions import AutomockError
from .pump import DEFAULT_INTERVAL, DEFAULT_TIMEOUT
from .servers import MockGRPCServer, MockHTTPServer
from .service import MockService
from .synthesis import MAX_DEPTH

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="grpc-automock",
        description="Serve mock responses for every service in a .proto file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mock all services of a proto on the default port
  python -m grpc_automock protos/greeter.proto

  # Resolve imports from extra directories
  python -m grpc_automock protos/api.proto -I third_party -I protos/common

  # Serve over TLS and browse payloads at http://localhost:8000/docs
  python -m grpc_automock api.proto --cert-chain server.crt --private-key server.key \\
      --http-port 8000
        """,
    )
    parser.add_argument("proto", type=str, help="Path to the .proto file to mock")
    parser.add_argument(
        "-I",
        "--include-dir",
        type=str,
        action="append",
        dest="include_dirs",
        default=None,
        help="Additional proto import directory (repeatable)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind the gRPC server to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=50051,
        help="Port of the gRPC server (default: 50051)",
    )
    parser.add_argument(
        "--http-port",
        type=int,
        default=None,
        help="Also start the HTTP inspector on this port",
    )
    parser.add_argument(
        "--root-cert",
        type=str,
        default=None,
        help="PEM root certificates used to verify clients",
    )
    parser.add_argument(
        "--cert-chain",
        type=str,
        default=None,
        help="PEM certificate chain of the server (enables TLS)",
    )
    parser.add_argument(
        "--private-key",
        type=str,
        default=None,
        help="PEM private key of the server (enables TLS)",
    )
    parser.add_argument(
        "--check-client-cert",
        action="store_true",
        default=False,
        help="Require and verify client certificates",
    )
    parser.add_argument(
        "--stream-interval",
        type=float,
        default=DEFAULT_INTERVAL,
        help=f"Seconds between streamed messages (default: {DEFAULT_INTERVAL})",
    )
    parser.add_argument(
        "--stream-timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Seconds after which streams end (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=MAX_DEPTH,
        help=f"Visits per message type before mocks stop recursing (default: {MAX_DEPTH})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the mock server."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        config = MockServerConfig.from_args(args)
    except ValidationError as e:
        parser.error(str(e))

    http_server: Optional[MockHTTPServer] = None
    try:
        service = MockService.from_proto(
            config.proto, config.include_dirs, max_depth=config.max_depth
        )

        if config.http_port is not None:
            http_server = MockHTTPServer(service)
            http_server.start(host=config.host, port=config.http_port)

        grpc_server = MockGRPCServer(service, stream=config.stream, tls=config.tls)
        grpc_server.run(host=config.host, port=config.port)

    except KeyboardInterrupt:
        logger.info("\nServer stopped by user")
        return 0
    except (AutomockError, OSError, RuntimeError) as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        return 1
    finally:
        if http_server is not None:
            http_server.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
