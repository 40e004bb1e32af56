#!/usr/bin/env python3
"""
Run the upload pipeline once from the command line.

Reads a file (or stdin), wraps it in an API Gateway proxy event and calls
the Lambda handler, then prints the response. Handy for checking
credentials and region before deploying.

Usage:
    python scripts/invoke_local.py --file payload.bin
    echo hello | python scripts/invoke_local.py --raw
    python scripts/invoke_local.py --file payload.bin --mock

Requires:
    - .env file (or environment) with AWS settings, unless --mock is given
"""

import base64
import json
import os
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def build_event(payload: bytes) -> dict:
    """Proxy event with a base64 body, as API Gateway sends binary payloads."""
    return {
        "body": base64.b64encode(payload).decode("ascii"),
        "isBase64Encoded": True,
    }


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Upload a payload through the pipeline')
    parser.add_argument('--file', help='Payload file path (default: stdin)')
    variant = parser.add_mutually_exclusive_group()
    variant.add_argument('--raw', action='store_true', help='Upload without compression')
    variant.add_argument('--compressed', action='store_true', help='Compress before upload')
    parser.add_argument('--mock', action='store_true', help='Use in-memory storage')
    args = parser.parse_args()

    if args.mock:
        os.environ["STORAGE_MOCK_MODE"] = "true"

    if args.file:
        if not os.path.exists(args.file):
            print(f"ERROR: Cannot find {args.file}")
            sys.exit(1)
        payload = Path(args.file).read_bytes()
    else:
        payload = sys.stdin.buffer.read()

    from payload_uploader import handler

    if args.raw:
        entrypoint = handler.raw_handler
    elif args.compressed:
        entrypoint = handler.compressed_handler
    else:
        entrypoint = handler.lambda_handler

    print(f"Uploading {len(payload)} bytes via {entrypoint.__name__}")
    response = entrypoint(build_event(payload), None)
    print(json.dumps(response, indent=2))

    sys.exit(0 if response["statusCode"] == 200 else 1)


if __name__ == '__main__':
    main()
