from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.settings import S

FileTuple = Tuple[str, bytes, str]


def _max_mb() -> int:
    return max(1, S.upload_max_bytes // (1024 * 1024))


def validate_upload(name: str, content_type: Optional[str], size: int) -> List[str]:
    if content_type not in S.upload_allowed_types:
        return [f"Unsupported file type: {name}"]
    if size > S.upload_max_bytes:
        return [f"File too large (max {_max_mb()}MB): {name}"]
    return []


def decode_inline_files(items: Iterable[Dict[str, Any]]) -> List[FileTuple]:
    """Base64 `{content, type, name}` objects -> (name, bytes, type). All-or-nothing."""
    decoded: List[FileTuple] = []
    errors: List[str] = []
    for index, item in enumerate(items):
        content, ctype, name = item.get("content"), item.get("type"), item.get("name")
        if not content or not ctype or not name:
            raise HTTPException(400, "Invalid file data: Each image must include content, type, and name.")
        try:
            raw = base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(400, f"Invalid base64 content at index {index}") from exc
        errors.extend(validate_upload(name, ctype, len(raw)))
        decoded.append((name, raw, ctype))
    if errors:
        raise HTTPException(400, "; ".join(errors))
    return decoded


def upload_file(name: str, content: bytes, content_type: Optional[str]) -> Dict[str, Any]:
    errors = validate_upload(name, content_type, len(content))
    if errors:
        raise HTTPException(400, errors[0])
    return directus.upload_files([(name, content, content_type or "application/octet-stream")])[0]


def upload_inline_files(items: Iterable[Dict[str, Any]]) -> List[Any]:
    files = decode_inline_files(items)
    if not files:
        return []
    return [row.get("id") for row in directus.upload_files(files)]
