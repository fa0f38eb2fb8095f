from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests
from fastapi import HTTPException

from projecthub.core.log import get_logger
from projecthub.core.settings import S
from projecthub.metrics import record_upstream_failure

log = get_logger(__name__)

_SET_TYPES = (list, tuple, set, frozenset)


class DirectusError(Exception):
    """Non-2xx response or transport failure talking to Directus. status_code 0 means no response."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        return f"Directus {self.status_code}: {self.message}"


# ============================================================
# Config
# ============================================================

def _base_url() -> str:
    if not S.directus_api_url:
        raise HTTPException(500, "Directus not configured (set DIRECTUS_API_URL)")
    return S.directus_api_url


def _token(admin: bool = False) -> str:
    token = (S.directus_admin_token or S.directus_api_token) if admin else S.directus_api_token
    if not token:
        raise HTTPException(500, "Directus not configured (set DIRECTUS_API_TOKEN)")
    return token


def _headers(admin: bool = False, json_body: bool = False) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {_token(admin)}", "Accept": "application/json"}
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


# ============================================================
# Query building
# ============================================================

def _join_ids(values: Iterable[Any]) -> str:
    return ",".join(str(v) for v in values)


def filter_params(**predicates: Any) -> Dict[str, str]:
    """
    Build Directus filter query parameters.

    Scalars become ``filter[field][_eq]``, sequences become ``filter[field][_in]``.
    A ``__eq`` / ``__in`` suffix on the keyword forces the operator. Predicates
    are ANDed by Directus.
    """
    params: Dict[str, str] = {}
    for key, value in predicates.items():
        field, _, op = key.partition("__")
        if not op:
            op = "in" if isinstance(value, _SET_TYPES) else "eq"
        if op not in ("eq", "in"):
            raise ValueError(f"Unsupported filter operator: {op}")
        if op == "in":
            values = value if isinstance(value, _SET_TYPES) else [value]
            params[f"filter[{field}][_in]"] = _join_ids(values)
        else:
            params[f"filter[{field}][_eq]"] = str(value)
    return params


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "")[:500]
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors and isinstance(errors, list) and isinstance(errors[0], dict):
        return str(errors[0].get("message") or "")[:500]
    return str(body)[:500]


def _request(
    method: str,
    path: str,
    *,
    params: Optional[Dict[str, str]] = None,
    json: Any = None,
    files: Optional[Sequence[Tuple[str, Tuple[str, bytes, str]]]] = None,
    admin: bool = False,
) -> Any:
    url = f"{_base_url()}{path}"
    headers = _headers(admin=admin, json_body=json is not None)
    try:
        resp = requests.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json,
            files=files,
            timeout=S.directus_timeout_seconds,
        )
    except requests.RequestException as exc:
        record_upstream_failure(method)
        log.warning("directus %s %s failed: %s", method, path, exc.__class__.__name__)
        raise DirectusError(0, f"{method} {path} failed: {exc.__class__.__name__}") from exc

    if not 200 <= resp.status_code < 300:
        record_upstream_failure(method)
        message = _error_message(resp)
        log.warning("directus %s %s -> %s %s", method, path, resp.status_code, message)
        raise DirectusError(resp.status_code, message or f"{method} {path} failed")

    if resp.status_code == 204 or not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        raise DirectusError(resp.status_code, f"{method} {path} returned invalid JSON") from exc


def _data(body: Any) -> Any:
    if isinstance(body, dict):
        return body.get("data")
    return None


# ============================================================
# Items
# ============================================================

def list_items(
    collection: str,
    filters: Optional[Dict[str, str]] = None,
    *,
    fields: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    params: Dict[str, str] = dict(filters or {})
    if fields:
        params["fields"] = fields
    # Directus pages at 100 rows by default; -1 returns every matching row.
    params["limit"] = str(-1 if limit is None else limit)
    rows = _data(_request("GET", f"/items/{collection}", params=params))
    return list(rows or [])


def first_item(collection: str, filters: Dict[str, str], *, fields: Optional[str] = None) -> Optional[Dict[str, Any]]:
    rows = list_items(collection, filters, fields=fields, limit=1)
    return rows[0] if rows else None


def get_item(collection: str, item_id: Any, *, fields: Optional[str] = None) -> Dict[str, Any]:
    params = {"fields": fields} if fields else None
    return _data(_request("GET", f"/items/{collection}/{item_id}", params=params)) or {}


def create_item(collection: str, payload: Dict[str, Any], *, admin: bool = False) -> Dict[str, Any]:
    return _data(_request("POST", f"/items/{collection}", json=payload, admin=admin)) or {}


def update_item(collection: str, item_id: Any, payload: Dict[str, Any], *, admin: bool = False) -> Dict[str, Any]:
    return _data(_request("PATCH", f"/items/{collection}/{item_id}", json=payload, admin=admin)) or {}


def delete_item(collection: str, item_id: Any, *, admin: bool = False) -> None:
    _request("DELETE", f"/items/{collection}/{item_id}", admin=admin)


# ============================================================
# Files
# ============================================================

def upload_files(files: Sequence[Tuple[str, bytes, str]]) -> List[Dict[str, Any]]:
    """Multipart POST of (name, content, content_type) tuples; Directus answers with one row or a list."""
    parts = [("file", (name, content, content_type)) for name, content, content_type in files]
    data = _data(_request("POST", "/files", files=parts, admin=True))
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and data.get("id"):
        return [data]
    raise DirectusError(200, "Unexpected response structure from file upload")


def asset_url(file_id: Any, key: Optional[str] = None) -> str:
    url = f"{S.directus_api_url}/assets/{file_id}"
    return f"{url}?key={key}" if key else url
