"""
SEO request records

A request is one deliverable unit for a dealership. It may be linked to the
fulfillment vendor's task id, which is unique so concurrent webhook
deliveries for the same task cannot create two rows.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from app.models.base import Base, new_id


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value) -> Optional["RequestStatus"]:
        """Case-insensitive lookup; "completed", "in-progress" etc. all resolve."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.COMPLETED, RequestStatus.CANCELLED)

    def can_transition_to(self, target: "RequestStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.IN_PROGRESS, RequestStatus.COMPLETED, RequestStatus.CANCELLED},
    RequestStatus.IN_PROGRESS: {RequestStatus.COMPLETED, RequestStatus.CANCELLED},
    RequestStatus.COMPLETED: set(),
    RequestStatus.CANCELLED: set(),
}


class RequestPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SeoRequest(Base):
    __tablename__ = "requests"

    id = Column(String(32), primary_key=True, default=new_id)
    seoworks_task_id = Column(String, unique=True, index=True, nullable=True)

    # Ownership
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    dealership_id = Column(String(32), ForeignKey("dealerships.id"), nullable=False, index=True)
    agency_id = Column(String(32), ForeignKey("agencies.id"), nullable=True, index=True)

    # Details
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)
    # page | blog | gbp_post | improvement | maintenance
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    priority = Column(String(10), nullable=False, default=RequestPriority.MEDIUM.value)
    package_type = Column(String(20), nullable=True)

    # Targeting
    target_cities = Column(JSON, nullable=True)
    target_models = Column(JSON, nullable=True)
    keywords = Column(JSON, nullable=True)

    # Progress
    pages_completed = Column(Integer, default=0, nullable=False)
    blogs_completed = Column(Integer, default=0, nullable=False)
    gbp_posts_completed = Column(Integer, default=0, nullable=False)
    improvements_completed = Column(Integer, default=0, nullable=False)
    completed_tasks = Column(JSON, nullable=False, default=list)
    # [{title, type, url, completedAt, publishedDate?}]

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    user = relationship("User")
    dealership = relationship("Dealership")

    @property
    def status_enum(self) -> Optional[RequestStatus]:
        return RequestStatus.parse(self.status)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seoworksTaskId": self.seoworks_task_id,
            "userId": self.user_id,
            "dealershipId": self.dealership_id,
            "agencyId": self.agency_id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "status": self.status,
            "priority": self.priority,
            "packageType": self.package_type,
            "targetCities": self.target_cities or [],
            "targetModels": self.target_models or [],
            "keywords": self.keywords or [],
            "pagesCompleted": self.pages_completed,
            "blogsCompleted": self.blogs_completed,
            "gbpPostsCompleted": self.gbp_posts_completed,
            "improvementsCompleted": self.improvements_completed,
            "completedTasks": list(self.completed_tasks or []),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self):
        return f"<SeoRequest {self.id} {self.type} {self.status}>"


class OrphanedTask(Base):
    """A vendor event that matched no request, kept so it can be replayed later"""
    __tablename__ = "orphaned_tasks"

    id = Column(String(32), primary_key=True, default=new_id)
    external_id = Column(String, nullable=False, index=True)
    event_type = Column(String(30), nullable=False)
    task_type = Column(String, nullable=False)
    status = Column(String(30), nullable=False)
    client_id = Column(String, nullable=True, index=True)
    client_email = Column(String, nullable=True, index=True)
    completion_date = Column(DateTime, nullable=True)
    reason = Column(String, nullable=True)
    payload = Column(JSON, nullable=False)
    # The validated webhook body, camelCase as received

    processed = Column(Boolean, default=False, nullable=False, index=True)
    processed_at = Column(DateTime, nullable=True)
    linked_request_id = Column(String(32), ForeignKey("requests.id"), nullable=True)
    resolution = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "externalId": self.external_id,
            "eventType": self.event_type,
            "taskType": self.task_type,
            "status": self.status,
            "clientId": self.client_id,
            "clientEmail": self.client_email,
            "completionDate": self.completion_date.isoformat() if self.completion_date else None,
            "reason": self.reason,
            "processed": self.processed,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
            "linkedRequestId": self.linked_request_id,
            "resolution": self.resolution,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<OrphanedTask {self.external_id} {self.event_type} processed={self.processed}>"
