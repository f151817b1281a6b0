"""
SEO request store

Create, read and move requests through their status lifecycle:
PENDING -> IN_PROGRESS -> COMPLETED, or -> CANCELLED. COMPLETED and
CANCELLED are terminal. Completion is recorded in one place so the
per-request counters and the dealership's period usage never drift apart.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.request import RequestPriority, RequestStatus, SeoRequest
from app.models.tenant import Dealership
from app.models.user import User
from app.services import notification_service
from app.services.package_catalog import (
    BLOGS,
    GBP_POSTS,
    IMPROVEMENTS,
    PAGES,
    bucket_for,
    normalize_task_type,
    parse_package_type,
)
from app.services.package_progress import calculate_package_progress
from app.services.tenant_service import (
    current_usage,
    ensure_billing_period,
    increment_usage,
    require_dealership_access,
)
from app.utils.errors import (
    AuthorizationError,
    NotFoundError,
    QuotaExceededError,
    StateConflictError,
    ValidationError,
)
from app.utils.logger import log

# Usage bucket -> SeoRequest counter column
REQUEST_COUNTERS = {
    PAGES: "pages_completed",
    BLOGS: "blogs_completed",
    GBP_POSTS: "gbp_posts_completed",
    IMPROVEMENTS: "improvements_completed",
}


# ── Access ─────────────────────────────────────────────────

def can_view_request(user: User, request: SeoRequest) -> bool:
    if user.is_super_admin:
        return True
    if user.is_agency_admin:
        return user.agency_id is not None and request.agency_id == user.agency_id
    return request.user_id == user.id or request.dealership_id == user.dealership_id


def can_modify_request(user: User, request: SeoRequest) -> bool:
    if user.is_super_admin:
        return True
    if user.is_agency_admin:
        return user.agency_id is not None and request.agency_id == user.agency_id
    return request.user_id == user.id


# ── Queries ────────────────────────────────────────────────

def get_request(db: Session, user: User, request_id: str) -> SeoRequest:
    request = db.query(SeoRequest).filter(SeoRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Request not found")
    if not can_view_request(user, request):
        raise AuthorizationError("Access denied to this request")
    return request


def list_requests(
    db: Session,
    user: User,
    dealership_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
) -> List[SeoRequest]:
    query = db.query(SeoRequest)

    if dealership_id:
        require_dealership_access(db, user, dealership_id)
        query = query.filter(SeoRequest.dealership_id == dealership_id)
    elif user.is_super_admin:
        pass
    elif user.is_agency_admin:
        query = query.filter(SeoRequest.agency_id == user.agency_id)
    else:
        query = query.filter(SeoRequest.dealership_id == user.dealership_id)

    if status:
        parsed = RequestStatus.parse(status)
        if parsed is None:
            raise ValidationError(f"Invalid status: {status}")
        query = query.filter(SeoRequest.status == parsed.value)

    return query.order_by(SeoRequest.created_at.desc()).limit(limit).all()


# ── Mutations ──────────────────────────────────────────────

def create_request(
    db: Session,
    user: User,
    dealership_id: str,
    title: str,
    request_type: str,
    description: Optional[str] = None,
    priority: str = RequestPriority.MEDIUM.value,
    package_type: Optional[str] = None,
    target_cities: Optional[list] = None,
    target_models: Optional[list] = None,
    keywords: Optional[list] = None,
) -> SeoRequest:
    """Submit a new request for a dealership the caller can access."""
    dealership = require_dealership_access(db, user, dealership_id)

    task_type = normalize_task_type(request_type)
    if task_type is None:
        raise ValidationError(f"Invalid request type: {request_type}")
    if not title or not title.strip():
        raise ValidationError("Title is required")
    try:
        priority_value = RequestPriority(str(priority).upper()).value
    except ValueError:
        raise ValidationError(f"Invalid priority: {priority}")

    package_value = None
    if package_type:
        package_value = parse_package_type(package_type).value
    elif dealership.package_type:
        package_value = dealership.package_type

    request = SeoRequest(
        user_id=user.id,
        dealership_id=dealership.id,
        agency_id=dealership.agency_id,
        title=title.strip(),
        description=description,
        type=task_type.value,
        status=RequestStatus.PENDING.value,
        priority=priority_value,
        package_type=package_value,
        target_cities=target_cities or [],
        target_models=target_models or [],
        keywords=keywords or [],
        completed_tasks=[],
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    log.info(f"Request {request.id} ({request.type}) created by user {user.id} for dealership {dealership.id}")
    return request


def record_completion(
    db: Session,
    request: SeoRequest,
    completed_at: Optional[datetime] = None,
    completed_task: Optional[dict] = None,
) -> SeoRequest:
    """
    Mark a request COMPLETED and account for the delivered item.

    Appends ``completed_task`` to the request's list, bumps the request's
    counter for the task bucket and the dealership's period usage. A full
    quota is logged, not raised: the work has already been delivered.
    Does not commit.
    """
    request.status = RequestStatus.COMPLETED.value
    request.completed_at = completed_at or datetime.utcnow()

    if completed_task is not None:
        # Reassign so the JSON column is flagged dirty
        request.completed_tasks = [*(request.completed_tasks or []), completed_task]

    task_type = (completed_task or {}).get("type") or request.type
    bucket = bucket_for(task_type) or bucket_for(request.type)
    if not bucket:
        log.info(f"Request {request.id} completed with untracked type '{task_type}'")
        return request

    column = REQUEST_COUNTERS[bucket]
    setattr(request, column, (getattr(request, column) or 0) + 1)

    dealership = request.dealership or db.query(Dealership).filter(Dealership.id == request.dealership_id).first()
    if dealership is None:
        log.warning(f"Request {request.id} has no dealership; usage not recorded")
        return request
    try:
        increment_usage(db, dealership, bucket)
    except (QuotaExceededError, ValidationError) as exc:
        log.warning(f"Usage not recorded for request {request.id}: {exc.message}")
    return request


def update_status(
    db: Session,
    user: User,
    request_id: str,
    new_status: str,
    notes: Optional[str] = None,
) -> SeoRequest:
    """
    Move a request to ``new_status``.

    Terminal requests are immutable here; backwards moves are rejected.
    Setting the current status again is a no-op.
    """
    target = RequestStatus.parse(new_status)
    if target is None:
        raise ValidationError(f"Invalid status: {new_status}")

    request = db.query(SeoRequest).filter(SeoRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Request not found")
    if not can_modify_request(user, request):
        log.warning(f"User {user.id} denied status change on request {request_id}")
        raise AuthorizationError("Access denied to this request")

    current = request.status_enum or RequestStatus.PENDING
    if current.is_terminal:
        raise StateConflictError("Cannot update status of completed or cancelled request")
    if current == target:
        return request
    if not current.can_transition_to(target):
        raise StateConflictError(f"Cannot change status from {current.value} to {target.value}")

    old_status = current.value
    if target == RequestStatus.COMPLETED:
        record_completion(db, request)
    else:
        request.status = target.value
    if notes:
        request.description = f"{request.description}\n\n{notes}" if request.description else notes

    db.commit()
    db.refresh(request)
    log.info(f"Request {request.id} status {old_status} -> {request.status} by user {user.id}")

    notification_service.notify_status_changed(request, request.user, old_status, request.status)
    return request


# ── Progress ───────────────────────────────────────────────

def period_progress(db: Session, user: User, dealership_id: str, now: Optional[datetime] = None) -> dict:
    """Package progress for a dealership's current billing period, plus its usage counters."""
    dealership = require_dealership_access(db, user, dealership_id)
    if not dealership.package_type:
        raise ValidationError("Dealership does not have an active package.")

    ensure_billing_period(db, dealership, now)
    db.commit()

    start, end = dealership.billing_period_start, dealership.billing_period_end
    in_period = (
        db.query(SeoRequest)
        .filter(
            SeoRequest.dealership_id == dealership.id,
            func.coalesce(SeoRequest.completed_at, SeoRequest.created_at).between(start, end),
        )
        .all()
    )

    progress = calculate_package_progress(dealership.package_type, in_period)
    return {
        "dealershipId": dealership.id,
        "billingPeriodStart": start.isoformat(),
        "billingPeriodEnd": end.isoformat(),
        **progress.to_dict(),
        "usage": current_usage(dealership),
    }
