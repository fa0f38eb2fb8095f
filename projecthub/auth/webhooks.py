from __future__ import annotations

import hashlib
import hmac
from typing import Optional, Tuple

from fastapi import HTTPException

from projecthub.core.settings import S


def parse_signature_header(header: str) -> Tuple[str, str]:
    """`t=<timestamp>,v1=<hex digest>` -> (timestamp, digest)."""
    parts = {}
    for chunk in header.split(","):
        key, sep, value = chunk.strip().partition("=")
        if sep:
            parts[key] = value
    timestamp = parts.get("t", "")
    signature = parts.get("v1", "")
    if not timestamp or not signature:
        raise HTTPException(400, "Malformed Clerk signature")
    return timestamp, signature


def sign_payload(secret: str, timestamp: str, raw_body: bytes) -> str:
    message = timestamp.encode("utf-8") + b"." + raw_body
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_clerk_webhook(raw_body: bytes, signature_header: Optional[str]) -> None:
    if not signature_header:
        raise HTTPException(400, "Missing Clerk signature")
    if not S.clerk_webhook_secret:
        raise HTTPException(500, "Missing Clerk webhook secret")
    timestamp, signature = parse_signature_header(signature_header)
    expected = sign_payload(S.clerk_webhook_secret, timestamp, raw_body)
    if not hmac.compare_digest(signature, expected):
        raise HTTPException(400, "Invalid Clerk signature")
