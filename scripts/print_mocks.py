#!/usr/bin/env python3
"""
Script to print mock payloads for every method of a proto file as JSON.

Usage:
    python scripts/print_mocks.py path/to/service.proto [-I include_dir] [--requests]
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from grpc_automock.exceptions import ProtoLoadError  # noqa: E402
from grpc_automock.payload import render_json  # noqa: E402
from grpc_automock.service import MockService  # noqa: E402

parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
parser.add_argument("proto", help="Path to the .proto file")
parser.add_argument("-I", "--include-dir", action="append", dest="include_dirs", default=[])
parser.add_argument(
    "--requests", action="store_true", help="Print example requests instead of responses"
)
args = parser.parse_args()

try:
    service = MockService.from_proto(args.proto, args.include_dirs)
except ProtoLoadError as e:
    print(f"Error: {e}")
    sys.exit(1)

mocks = {}
for descriptor in service.services():
    methods = mocks.setdefault(descriptor.full_name, {})
    for method in descriptor.methods_by_name:
        if args.requests:
            payload = service.mock_request(descriptor.full_name, method)
        else:
            payload = service.mock_response(descriptor.full_name, method)
        methods[method] = render_json(payload)

for name, error in service.failed.items():
    print(f"Warning: skipped {name}: {error}", file=sys.stderr)

print(json.dumps(mocks, indent=2))
