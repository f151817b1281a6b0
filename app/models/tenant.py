"""
Tenant hierarchy: agency -> dealership -> user

Dealerships carry the package assignment and the usage counters for the
current billing period. Finished periods are archived in MonthlyUsage.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base, new_id


class Agency(Base):
    __tablename__ = "agencies"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    dealerships = relationship("Dealership", back_populates="agency")
    users = relationship("User", back_populates="agency")

    def __repr__(self):
        return f"<Agency '{self.name}'>"


class Dealership(Base):
    __tablename__ = "dealerships"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    agency_id = Column(String(32), ForeignKey("agencies.id"), nullable=False, index=True)
    client_id = Column(String, unique=True, index=True, nullable=True)
    # Identifier the fulfillment vendor uses for this dealership
    website = Column(String, nullable=True)

    # Package
    package_type = Column(String(20), nullable=True)
    # SILVER | GOLD | PLATINUM, NULL = no active package
    billing_period_start = Column(DateTime, nullable=True)
    billing_period_end = Column(DateTime, nullable=True)

    # Usage in the current billing period
    pages_used_this_period = Column(Integer, default=0, nullable=False)
    blogs_used_this_period = Column(Integer, default=0, nullable=False)
    gbp_posts_used_this_period = Column(Integer, default=0, nullable=False)
    improvements_used_this_period = Column(Integer, default=0, nullable=False)

    # Reporting integrations
    ga4_property_id = Column(String, nullable=True)
    search_console_site_url = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    agency = relationship("Agency", back_populates="dealerships")
    usage_history = relationship("MonthlyUsage", back_populates="dealership")

    def __repr__(self):
        return f"<Dealership '{self.name}' ({self.package_type})>"


class MonthlyUsage(Base):
    """Archived usage counters for a finished billing period"""
    __tablename__ = "monthly_usage"
    __table_args__ = (
        UniqueConstraint("dealership_id", "year", "month", name="uq_monthly_usage_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    dealership_id = Column(String(32), ForeignKey("dealerships.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    package_type = Column(String(20), nullable=False)

    pages_used = Column(Integer, default=0, nullable=False)
    blogs_used = Column(Integer, default=0, nullable=False)
    gbp_posts_used = Column(Integer, default=0, nullable=False)
    improvements_used = Column(Integer, default=0, nullable=False)

    archived_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    dealership = relationship("Dealership", back_populates="usage_history")
