"""Authentication middleware: protects all routes except public paths."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from app.models.base import SessionLocal, get_db
from app.models.user import User
from app.services import auth_service
from app.utils.errors import AuthenticationError

# Paths that never require a session. The SEOWorks webhook carries its own API key.
PUBLIC_PREFIXES = (
    "/auth/login",
    "/seoworks/webhook",
    "/health",
    "/status",
    "/docs",
    "/openapi.json",
    "/redoc",
)


def _session_token(request: Request):
    token = request.cookies.get("session_token")
    if token:
        return token
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if any(path.startswith(p) for p in PUBLIC_PREFIXES):
            return await call_next(request)

        token = _session_token(request)
        user = None
        if token:
            db = SessionLocal()
            try:
                user = auth_service.validate_session(db, token)
            finally:
                db.close()

        if user:
            # Routes reload the user in their own session via current_user
            request.state.user_id = user.id
            request.state.session_token = token
            return await call_next(request)

        return JSONResponse(status_code=401, content={"error": "Not authenticated"})


def current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: the authenticated user, bound to the request's DB session."""
    user_id = getattr(request.state, "user_id", None)
    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if not user or not user.is_active:
        raise AuthenticationError("Not authenticated")
    return user
