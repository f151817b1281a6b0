"""Authentication service: password hashing, sessions, user accounts"""
import secrets
from datetime import datetime, timedelta
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User, UserRole, UserSession
from app.utils.logger import log

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """Verify credentials and return user, or None."""
    user = db.query(User).filter(User.email == email.lower().strip(), User.is_active == True).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    user.last_login = datetime.utcnow()
    db.commit()
    return user


def create_session(db: Session, user_id: str) -> str:
    """Create a new session token for the user."""
    settings = get_settings()
    token = secrets.token_hex(32)
    session = UserSession(
        user_id=user_id,
        token=token,
        expires_at=datetime.utcnow() + timedelta(hours=settings.session_duration_hours),
    )
    db.add(session)
    db.commit()
    return token


def validate_session(db: Session, token: str) -> Optional[User]:
    """Return the user for a valid, non-expired session token."""
    session = (
        db.query(UserSession)
        .filter(UserSession.token == token, UserSession.expires_at > datetime.utcnow())
        .first()
    )
    if not session:
        return None
    return db.query(User).filter(User.id == session.user_id, User.is_active == True).first()


def delete_session(db: Session, token: str) -> None:
    """Remove a session (logout)."""
    db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()


def create_user(
    db: Session,
    email: str,
    password: Optional[str] = None,
    name: Optional[str] = None,
    role: str = UserRole.USER.value,
    agency_id: Optional[str] = None,
    dealership_id: Optional[str] = None,
) -> User:
    """Create a new user account."""
    user = User(
        email=email.lower().strip(),
        password_hash=hash_password(password) if password else None,
        name=name,
        role=UserRole(role).value,
        agency_id=agency_id,
        dealership_id=dealership_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_initial_user(db: Session) -> None:
    """Create the first super admin from env vars if no users exist."""
    settings = get_settings()
    if not settings.initial_admin_email or not settings.initial_admin_password:
        return
    if db.query(User).first():
        return
    create_user(
        db,
        settings.initial_admin_email,
        settings.initial_admin_password,
        name="Admin",
        role=UserRole.SUPER_ADMIN.value,
    )
    log.info(f"Seeded initial admin user: {settings.initial_admin_email}")
