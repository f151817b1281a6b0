"""Authentication API: login, logout, current user."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import get_settings
from app.middleware.auth_middleware import current_user
from app.models.base import get_db
from app.models.user import User
from app.services import auth_service
from app.utils.errors import AuthenticationError

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


def _user_out(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "role": u.role,
        "agencyId": u.agency_id,
        "dealershipId": u.dealership_id,
        "isActive": u.is_active,
        "lastLogin": u.last_login.isoformat() if u.last_login else None,
    }


@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return a session cookie (the token is also in the body for API clients)."""
    user = auth_service.authenticate(db, body.email, body.password)
    if not user:
        raise AuthenticationError("Invalid email or password")

    settings = get_settings()
    token = auth_service.create_session(db, user.id)
    response = JSONResponse(content={"success": True, "token": token, "user": _user_out(user)})
    response.set_cookie(
        key="session_token",
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=60 * 60 * settings.session_duration_hours,
        path="/",
    )
    return response


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    """Clear session and cookie."""
    token = getattr(request.state, "session_token", None)
    if token:
        auth_service.delete_session(db, token)
    response = JSONResponse(content={"success": True})
    response.delete_cookie("session_token", path="/")
    return response


@router.get("/me")
async def me(user: User = Depends(current_user)):
    """Return current authenticated user."""
    return _user_out(user)
