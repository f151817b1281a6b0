"""
SEO request endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services import request_service

router = APIRouter(prefix="/requests", tags=["requests"])


class CreateRequestBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    dealership_id: Optional[str] = None
    title: str
    type: str
    description: Optional[str] = None
    priority: str = "MEDIUM"
    package_type: Optional[str] = None
    target_cities: List[str] = Field(default_factory=list)
    target_models: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)


class StatusUpdateBody(BaseModel):
    status: str
    notes: Optional[str] = None


@router.post("", status_code=201)
async def create_request(
    body: CreateRequestBody,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    """Submit a request for the given dealership (defaults to the caller's current one)."""
    request = request_service.create_request(
        db,
        user,
        dealership_id=body.dealership_id or user.dealership_id,
        title=body.title,
        request_type=body.type,
        description=body.description,
        priority=body.priority,
        package_type=body.package_type,
        target_cities=body.target_cities,
        target_models=body.target_models,
        keywords=body.keywords,
    )
    return request.to_dict()


@router.get("")
async def list_requests(
    dealership_id: Optional[str] = Query(None, alias="dealershipId"),
    status: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    requests = request_service.list_requests(db, user, dealership_id=dealership_id, status=status, limit=limit)
    return {"requests": [r.to_dict() for r in requests], "count": len(requests)}


@router.get("/{request_id}")
async def get_request(request_id: str, db: Session = Depends(get_db), user: User = Depends(current_user)):
    return request_service.get_request(db, user, request_id).to_dict()


@router.patch("/{request_id}/status")
async def update_status(
    request_id: str,
    body: StatusUpdateBody,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    """Move a request through PENDING -> IN_PROGRESS -> COMPLETED/CANCELLED."""
    request = request_service.update_status(db, user, request_id, body.status, notes=body.notes)
    return {"success": True, "request": request.to_dict()}
