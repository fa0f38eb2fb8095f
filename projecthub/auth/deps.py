from __future__ import annotations

import base64
import json
from functools import lru_cache
from typing import Any, Dict, Optional

import jwt
import requests
from fastapi import HTTPException, Request

from projecthub.core.settings import S


def _clerk_enabled() -> bool:
    return bool(S.clerk_issuer)


def _clerk_jwks_url() -> str:
    return S.clerk_jwks_url or f"{S.clerk_issuer}/.well-known/jwks.json"


@lru_cache(maxsize=1)
def _clerk_jwks() -> Dict[str, Any]:
    resp = requests.get(_clerk_jwks_url(), timeout=10)
    resp.raise_for_status()
    return resp.json()


def _resolve_clerk_key(kid: str) -> Dict[str, Any]:
    keys = _clerk_jwks().get("keys", [])
    for key in keys:
        if key.get("kid") == kid:
            return key
    raise HTTPException(401, "Unknown Clerk key id")


def _decode_clerk_token(token: str) -> Dict[str, Any]:
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(401, "Invalid token header") from exc

    key = _resolve_clerk_key(header.get("kid", ""))
    public_key = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key))
    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            issuer=S.clerk_issuer,
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(401, "Token expired") from exc
    except jwt.PyJWTError as exc:
        raise HTTPException(401, "Invalid token") from exc

    parties = S.clerk_authorized_parties
    azp = payload.get("azp")
    if parties and azp and azp not in parties:
        raise HTTPException(401, "Unexpected authorized party")

    return payload


def _decode_jwt_sub(token: str) -> Optional[str]:
    if token.count(".") != 2:
        return None
    _, payload, _ = token.split(".", 2)
    if not payload:
        return None
    padding = "=" * (-len(payload) % 4)
    try:
        decoded = base64.urlsafe_b64decode(payload + padding)
        data = json.loads(decoded.decode("utf-8"))
    except (ValueError, json.JSONDecodeError, UnicodeDecodeError):
        return None
    sub = data.get("sub") if isinstance(data, dict) else None
    return sub if isinstance(sub, str) and sub.strip() else None


def extract_bearer_token(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise HTTPException(401, "Missing Authorization header")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(401, "Invalid Authorization header")
    return token.strip()


def _has_credentials(request: Request) -> bool:
    if request.headers.get("authorization"):
        return True
    return not _clerk_enabled() and bool(request.headers.get("x-user-sub"))


async def get_authenticated_user_sub(request: Request) -> str:
    """
    Clerk user id of the caller.

    With CLERK_ISSUER set the bearer token is a Clerk session JWT verified against
    the instance JWKS. Dev fallback: X-User-Sub header, or Authorization: Bearer <user_id>.
    """
    if _clerk_enabled():
        token = extract_bearer_token(request.headers.get("authorization", ""))
        payload = _decode_clerk_token(token)
        user_sub = payload.get("sub")
        if not user_sub:
            raise HTTPException(401, "Token missing subject")
        return str(user_sub)

    fallback_user = request.headers.get("x-user-sub")
    if fallback_user:
        return fallback_user

    token = extract_bearer_token(request.headers.get("authorization", ""))
    return _decode_jwt_sub(token) or token


async def get_optional_user_sub(request: Request) -> Optional[str]:
    """Like get_authenticated_user_sub, but anonymous callers get None. Bad credentials still 401."""
    if not _has_credentials(request):
        return None
    return await get_authenticated_user_sub(request)
