from __future__ import annotations

import json

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from projecthub.auth.webhooks import verify_clerk_webhook
from projecthub.core.directus import DirectusError
from projecthub.core.log import get_logger
from projecthub.models import ClerkWebhookEvent
from projecthub.services.audit import audit_event
from projecthub.services.identity import sync_user

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

log = get_logger(__name__)

SYNCED_EVENT_TYPES = ("user.created", "user.updated")


@router.post("/clerk")
async def clerk_webhook(req: Request):
    raw = await req.body()
    verify_clerk_webhook(raw, req.headers.get("clerk-signature"))

    try:
        event = ClerkWebhookEvent.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        raise HTTPException(400, "Invalid webhook payload") from exc

    if event.type and event.type not in SYNCED_EVENT_TYPES:
        return {"success": True, "ignored": event.type}

    data = event.data
    email = data.email_addresses[0].email_address if data.email_addresses else ""
    try:
        directus_id, created = sync_user(
            data.id,
            email,
            username=data.username,
            first_name=data.first_name,
            last_name=data.last_name,
            profile_image=data.image_url,
        )
    except DirectusError as exc:
        log.error("clerk webhook sync for %s failed: %s", data.id, exc)
        raise HTTPException(502, "Directus user sync failed") from exc

    audit_event("clerk_webhook_sync", data.id, req, directus_id=directus_id, created=created)
    return {"success": True}
