"""
Agency and dealership directory endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services import tenant_service

router = APIRouter(tags=["dealerships"])


class PackageBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    package_type: str


@router.get("/agencies")
async def list_agencies(db: Session = Depends(get_db), user: User = Depends(current_user)):
    agencies = tenant_service.list_agencies(db, user)
    return {
        "agencies": [
            {
                "id": a.id,
                "name": a.name,
                "slug": a.slug,
                "dealershipCount": len(a.dealerships),
                "createdAt": a.created_at.isoformat() if a.created_at else None,
            }
            for a in agencies
        ]
    }


@router.get("/dealerships")
async def list_dealerships(db: Session = Depends(get_db), user: User = Depends(current_user)):
    """Dealerships visible to the caller, with the caller's current one marked."""
    dealerships = tenant_service.visible_dealerships(db, user)
    return {
        "dealerships": [tenant_service.dealership_to_dict(d) for d in dealerships],
        "currentDealershipId": user.dealership_id,
    }


@router.get("/dealerships/{dealership_id}")
async def get_dealership(dealership_id: str, db: Session = Depends(get_db), user: User = Depends(current_user)):
    dealership = tenant_service.require_dealership_access(db, user, dealership_id)
    return tenant_service.dealership_to_dict(dealership)


@router.put("/dealerships/{dealership_id}/package")
async def set_package(
    dealership_id: str,
    body: PackageBody,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    """Assign a package tier (admins only); starts a fresh billing period."""
    dealership = tenant_service.set_package(db, user, dealership_id, body.package_type)
    return {"success": True, "dealership": tenant_service.dealership_to_dict(dealership)}


@router.post("/dealerships/{dealership_id}/switch")
async def switch_dealership(dealership_id: str, db: Session = Depends(get_db), user: User = Depends(current_user)):
    """Make this dealership the caller's current one."""
    dealership = tenant_service.switch_dealership(db, user, dealership_id)
    return {"success": True, "currentDealershipId": dealership.id, "dealership": tenant_service.dealership_to_dict(dealership)}
