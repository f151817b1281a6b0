"""User and session models for authentication"""
from enum import Enum

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.models.base import Base, new_id


class UserRole(str, Enum):
    USER = "USER"
    AGENCY_ADMIN = "AGENCY_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    # USER | AGENCY_ADMIN | SUPER_ADMIN
    agency_id = Column(String(32), ForeignKey("agencies.id"), nullable=True, index=True)
    dealership_id = Column(String(32), ForeignKey("dealerships.id"), nullable=True, index=True)
    # Current dealership; scopes what a USER sees
    email_notifications = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    last_login = Column(DateTime, nullable=True)

    agency = relationship("Agency", back_populates="users")
    dealership = relationship("Dealership", foreign_keys=[dealership_id])

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN.value

    @property
    def is_agency_admin(self) -> bool:
        return self.role == UserRole.AGENCY_ADMIN.value

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    token = Column(String(64), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
