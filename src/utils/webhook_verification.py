"""
Webhook Signature Verification

Utilities for signing and verifying HMAC SHA256 signatures on bot webhook messages.
Signatures are always computed over the exact bytes that were (or will be)
transmitted, so inbound bodies must be captured before any JSON parsing.
"""

import hashlib
import hmac
from collections.abc import MutableMapping
from typing import Any, Dict, Optional, Tuple, Union

from aws_lambda_powertools import Logger

logger = Logger(child=True)

SIGNATURE_HEADER = "X-Webhook-Signature"
SIGNATURE_PREFIX = "sha256="

# Request fields populated by capture_raw_body
RAW_BODY_FIELD = "raw_body"
RAW_ENCODING_FIELD = "raw_encoding"


def _to_bytes(payload: Union[bytes, str], encoding: Optional[str] = None) -> bytes:
    if payload is None:
        return b""
    if isinstance(payload, str):
        return payload.encode(encoding or "utf-8")
    return bytes(payload)


def compute_signature(payload: Union[bytes, str], secret: str) -> str:
    """
    Compute the HMAC SHA256 hex digest of a raw payload.

    Args:
        payload: Raw message bytes (str is encoded as UTF-8)
        secret: Channel secret key shared with the bot platform

    Returns:
        Lowercase hex digest
    """
    return hmac.new(secret.encode("utf-8"), _to_bytes(payload), hashlib.sha256).hexdigest()


def build_signature_header(payload: Union[bytes, str], secret: str) -> str:
    """
    Build the signature header value for a payload.

    Example:
        >>> build_signature_header(b'{"a":1}', "topsecret")
        'sha256=...'
    """
    return SIGNATURE_PREFIX + compute_signature(payload, secret)


def verify_inbound_signature(
    signature_header: Optional[str],
    payload: Union[bytes, str],
    secret: str,
    encoding: Optional[str] = None,
) -> bool:
    """
    Verify the signature of a message received from the bot.

    Args:
        signature_header: Value of the signature header (e.g., "sha256=abc123...")
        payload: Raw message body, as captured before JSON parsing
        secret: Channel secret key
        encoding: Encoding of the raw body, used when payload is a str

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature_header:
        logger.warning("Missing webhook signature")
        return False

    calculated = build_signature_header(_to_bytes(payload, encoding), secret)

    # Constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(
        str(signature_header).encode("utf-8"), calculated.encode("utf-8")
    ):
        logger.warning(
            "Invalid webhook signature",
            extra={"received_signature": signature_header, "calculated_signature": calculated},
        )
        return False

    return True


def get_header(headers: Optional[Dict[str, str]], header_name: str) -> str:
    """
    Look up a request header, matching the name case-insensitively since
    API Gateway may normalize header names.

    Returns:
        Header value or empty string if not found
    """
    if not headers:
        return ""

    # Try exact case first
    value = headers.get(header_name)
    if value:
        return value

    wanted = header_name.lower()
    for name, value in headers.items():
        if name.lower() == wanted and value:
            return value

    return ""


def capture_raw_body(request: Any, buffer: bytes, encoding: Optional[str]) -> None:
    """
    Save the raw body and its encoding on the request for later verification.

    Must run before the body is parsed as JSON. Mappings (such as API Gateway
    events) receive the values as keys, other request objects as attributes,
    under RAW_BODY_FIELD and RAW_ENCODING_FIELD.

    Args:
        request: Inbound request object or event
        buffer: Raw message body
        encoding: Encoding of the raw message body
    """
    if isinstance(request, MutableMapping):
        request[RAW_BODY_FIELD] = buffer
        request[RAW_ENCODING_FIELD] = encoding
    else:
        setattr(request, RAW_BODY_FIELD, buffer)
        setattr(request, RAW_ENCODING_FIELD, encoding)


def read_raw_body(request: Any) -> Tuple[Optional[bytes], Optional[str]]:
    """Return the (raw body, encoding) pair stored by capture_raw_body."""
    if isinstance(request, MutableMapping):
        return request.get(RAW_BODY_FIELD), request.get(RAW_ENCODING_FIELD)
    return getattr(request, RAW_BODY_FIELD, None), getattr(request, RAW_ENCODING_FIELD, None)


def extract_signature(headers: Optional[Dict[str, str]], header_name: str = SIGNATURE_HEADER) -> str:
    """
    Extract webhook signature from request headers.

    Args:
        headers: Request headers dictionary
        header_name: Name of the signature header

    Returns:
        Signature string or empty string if not found
    """
    return get_header(headers, header_name)
