# utils.py

import hmac
import hashlib
import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="

# Repository owners and names may only contain ASCII letters, digits, '.', '-' and '_'.
SAFE_INPUT_PATTERN = re.compile(r"[A-Za-z0-9._-]*")


def compute_signature(request_body: bytes, secret: str) -> str:
    """
    Lowercase hex HMAC-SHA256 of the raw request body keyed with the shared secret.
    """
    mac = hmac.new(secret.encode("utf-8"), msg=request_body, digestmod=hashlib.sha256)
    return mac.hexdigest()


def verify_signature(request_body: bytes, secret: Optional[str], signature: Optional[str]) -> bool:
    """
    Check an X-Hub-Signature-256 value against the request body.

    Never raises: an empty body, secret or signature, or a signature without the
    'sha256=' prefix, is simply not valid.
    """
    if not signature:
        logger.warning("No signature provided.")
        return False
    if not request_body:
        logger.warning("Empty request body, nothing to verify.")
        return False
    if not secret:
        logger.warning("Webhook secret is not configured. Rejecting signature.")
        return False
    if not signature.startswith(SIGNATURE_PREFIX):
        logger.warning("Unsupported signature format.")
        return False

    expected = compute_signature(request_body, secret)
    received = signature[len(SIGNATURE_PREFIX):]

    is_valid = hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
    if is_valid:
        logger.debug("Webhook signature verified successfully.")
    else:
        logger.warning("Webhook signature verification failed.")
    return is_valid


def is_input_valid(value: Optional[str]) -> bool:
    """
    True when the whole value is made of safe characters only.

    The empty string matches; callers that need a non-empty identifier reject it themselves.
    """
    if value is None:
        return False
    return SAFE_INPUT_PATTERN.fullmatch(value) is not None
