"""
SEOWorks webhook endpoints

The webhook is authenticated with the shared ``x-api-key`` header rather
than a user session. The key is checked before the body is read. The
orphaned-task endpoints are for super admins and use the normal session.
"""
import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services import orphan_service
from app.services.webhook_service import handle_webhook, verify_webhook_secret
from app.utils.errors import ValidationError

router = APIRouter(prefix="/seoworks", tags=["seoworks"])


class ProcessOrphansBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: Optional[str] = None
    user_email: Optional[str] = None
    dealership_id: Optional[str] = None


@router.post("/webhook")
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    """Apply a task lifecycle event from SEOWorks."""
    verify_webhook_secret(request.headers.get("x-api-key"))

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")

    result = handle_webhook(db, body)
    return result.to_dict()


@router.get("/webhook")
async def webhook_status(x_api_key: Optional[str] = Header(None)):
    """Lets SEOWorks confirm the endpoint and key are configured."""
    verify_webhook_secret(x_api_key)
    return {"status": "ok", "message": "SEOWorks webhook endpoint is active"}


@router.get("/orphaned-tasks")
async def list_orphaned_tasks(
    processed: Optional[bool] = Query(None),
    client_id: Optional[str] = Query(None, alias="clientId"),
    client_email: Optional[str] = Query(None, alias="clientEmail"),
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    return orphan_service.list_orphaned_tasks(
        db, user, processed=processed, client_id=client_id, client_email=client_email,
    )


@router.post("/orphaned-tasks/process")
async def process_orphaned_tasks(
    body: ProcessOrphansBody,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    """Replay stored unmatched events for a user now that they exist."""
    result = orphan_service.process_orphaned_tasks(
        db, user, user_id=body.user_id, user_email=body.user_email, dealership_id=body.dealership_id,
    )
    return {"success": True, **result}
