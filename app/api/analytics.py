"""
Dealership analytics endpoint (GA4 + Search Console)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services import analytics_service

router = APIRouter(tags=["analytics"])


@router.get("/dealerships/{dealership_id}/analytics")
async def dealership_analytics(
    dealership_id: str,
    days: int = Query(30),
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    return await analytics_service.get_dealership_analytics(db, user, dealership_id, days=days)
