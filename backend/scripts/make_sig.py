#!/usr/bin/env python3

import json
import sys

from paybridge.services.razorpay_verify import compute_signature


def make_razorpay_signature(secret: str, payload: str) -> str:
    """Generate an X-Razorpay-Signature value for testing."""
    return compute_signature(payload.encode("utf-8"), secret)


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: make_sig.py <secret> <payload>")
        sys.exit(1)

    secret = sys.argv[1]
    payload = sys.argv[2]

    # Validate payload is valid JSON
    try:
        json.loads(payload)
    except json.JSONDecodeError:
        print("Error: Payload must be valid JSON", file=sys.stderr)
        sys.exit(1)

    print(make_razorpay_signature(secret, payload))
