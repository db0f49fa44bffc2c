import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


class RazorpaySignatureError(Exception):
    pass


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the raw request body, as sent in X-Razorpay-Signature."""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify(raw_body: bytes, header: str | None, secret: str) -> None:
    """
    Raise RazorpaySignatureError if signature invalid.

    The digest is taken over the body bytes exactly as received; re-serialising
    the parsed JSON would change key order and whitespace.
    """
    if not header:
        raise RazorpaySignatureError("Missing signature")
    if not secret:
        raise RazorpaySignatureError("Webhook secret not configured")

    expected = compute_signature(raw_body, secret)
    if not hmac.compare_digest(expected, header.strip()):
        logger.error(f"Signature mismatch for body of {len(raw_body)} bytes")
        raise RazorpaySignatureError("Invalid signature")
