from __future__ import annotations

import os
from dataclasses import dataclass


def _csv(value: str) -> tuple:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    # Directus
    directus_api_url: str = os.environ.get("DIRECTUS_API_URL", "").rstrip("/")
    directus_api_token: str = os.environ.get("DIRECTUS_API_TOKEN", "")
    directus_admin_token: str = os.environ.get("DIRECTUS_ADMIN_TOKEN", "")
    directus_timeout_seconds: float = float(os.environ.get("DIRECTUS_TIMEOUT_SECONDS", "15"))

    # Collections
    comments_collection: str = os.environ.get("COMMENTS_COLLECTION", "Project_Comments")
    reactions_collection: str = os.environ.get("REACTIONS_COLLECTION", "Comment_likes")
    users_collection: str = os.environ.get("USERS_COLLECTION", "users")
    projects_collection: str = os.environ.get("PROJECTS_COLLECTION", "projects")
    project_users_collection: str = os.environ.get("PROJECT_USERS_COLLECTION", "Projects_Users")

    # Clerk (optional wiring; dev fallback when unset)
    clerk_issuer: str = os.environ.get("CLERK_ISSUER", "").rstrip("/")
    clerk_jwks_url: str = os.environ.get("CLERK_JWKS_URL", "")
    clerk_authorized_parties: tuple = _csv(os.environ.get("CLERK_AUTHORIZED_PARTIES", ""))
    clerk_webhook_secret: str = os.environ.get("CLERK_WEBHOOK_SECRET", "")

    # Uploads
    upload_max_bytes: int = int(os.environ.get("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))
    upload_allowed_types: tuple = _csv(
        os.environ.get("UPLOAD_ALLOWED_TYPES", "image/jpeg,image/png,image/gif,image/webp")
    )

    # Observability
    log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()
    audit_log_enabled: bool = os.environ.get("AUDIT_LOG_ENABLED", "1") not in ("0", "false", "False")
    metrics_enabled: bool = os.environ.get("METRICS_ENABLED", "1") not in ("0", "false", "False")

    cors_allow_origins: tuple = _csv(os.environ.get("CORS_ALLOW_ORIGINS", "*"))


S = Settings()
