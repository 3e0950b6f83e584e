#!/usr/bin/env python3
"""
gRPC client example against the mock server.

This starts a mock server for examples/greeter.proto and calls each of its
methods with a plain grpc channel, using message classes built from the
loaded descriptors.

Requirements:
    pip install grpc-automock

Usage:
    # Automatically start local server and connect (default):
    python grpc_example.py

    # Connect to an external mock server:
    python grpc_example.py --external --host localhost --port 50051
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

import grpc
from google.protobuf import message_factory, text_format

from grpc_automock import MockGRPCServer, MockService
from grpc_automock.config import StreamConfig

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PROTO = Path(__file__).parent / "greeter.proto"


def run_greeter(host: str, port: int, start_server: bool = True) -> None:
    """Call every Greeter method once and log the mock answers."""
    service = MockService.from_proto(PROTO)
    greeter = service.service("helloworld.Greeter")
    server: Optional[MockGRPCServer] = None

    request_class = message_factory.GetMessageClass(
        service.root.lookup_type("helloworld.HelloRequest")
    )
    reply_class = message_factory.GetMessageClass(
        service.root.lookup_type("helloworld.HelloReply")
    )
    summary_class = message_factory.GetMessageClass(
        service.root.lookup_type("helloworld.HelloSummary")
    )

    try:
        if start_server:
            logger.info("Starting local mock server...")
            server = MockGRPCServer(service, stream=StreamConfig(interval=0.5, timeout=3))
            server.start(host=host, port=port)
            if not server.is_alive():
                raise RuntimeError("Failed to start local server")

        with grpc.insecure_channel(f"{host}:{port}") as channel:
            prefix = f"/{greeter.full_name}"

            say_hello = channel.unary_unary(
                f"{prefix}/SayHello",
                request_serializer=request_class.SerializeToString,
                response_deserializer=reply_class.FromString,
            )
            reply = say_hello(request_class(name="world"))
            logger.info(f"SayHello -> {text_format.MessageToString(reply, as_one_line=True)}")

            collect = channel.stream_unary(
                f"{prefix}/CollectHellos",
                request_serializer=request_class.SerializeToString,
                response_deserializer=summary_class.FromString,
            )
            summary = collect(iter([request_class(name="a"), request_class(name="b")]))
            logger.info(f"CollectHellos -> {text_format.MessageToString(summary, as_one_line=True)}")

            stream = channel.unary_stream(
                f"{prefix}/StreamHellos",
                request_serializer=request_class.SerializeToString,
                response_deserializer=reply_class.FromString,
            )
            for count, pushed in enumerate(stream(request_class(name="stream")), start=1):
                logger.info(f"StreamHellos #{count} -> {pushed.message} ({pushed.request_id})")

    finally:
        if server is not None:
            logger.info("Stopping local server...")
            server.stop()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Call the Greeter service of a gRPC mock server.",
    )
    parser.add_argument(
        "--external",
        action="store_true",
        help="Connect to external server instead of starting local one",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Server host (default: localhost)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=50051,
        help="Server port (default: 50051)",
    )
    args = parser.parse_args()

    try:
        run_greeter(host=args.host, port=args.port, start_server=not args.external)
        return 0
    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Error running client: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    exit(main())
