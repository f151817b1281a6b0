"""
Package catalog and progress endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services import request_service
from app.services.package_catalog import SEO_PACKAGES

router = APIRouter(tags=["packages"])


@router.get("/packages")
async def list_packages():
    """All package tiers with their monthly quotas."""
    return {"packages": [package.to_dict() for package in SEO_PACKAGES.values()]}


@router.get("/dealerships/{dealership_id}/package-progress")
async def package_progress(
    dealership_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    """Delivered vs. quota for the dealership's current billing period."""
    return request_service.period_progress(db, user, dealership_id)
