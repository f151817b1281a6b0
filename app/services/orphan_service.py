"""
Orphaned SEOWorks events

The webhook stores events that matched no request. Once the client's user
and dealership exist, a super admin replays them: a completed task becomes a
completed request that counts toward the dealership's usage, other events
are applied to the request if one exists by now and are otherwise just
marked processed.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.request import OrphanedTask
from app.models.tenant import Dealership
from app.models.user import User
from app.services.webhook_service import SeoworksWebhookService
from app.utils.errors import AuthorizationError, NotFoundError, ValidationError
from app.utils.logger import log


def _require_super_admin(user: User) -> None:
    if not user.is_super_admin:
        raise AuthorizationError("Super admin required")


def list_orphaned_tasks(
    db: Session,
    user: User,
    processed: Optional[bool] = None,
    client_id: Optional[str] = None,
    client_email: Optional[str] = None,
    limit: int = 100,
) -> dict:
    """Most recent orphaned events plus counts by (processed, eventType, taskType)."""
    _require_super_admin(user)

    filters = []
    if processed is not None:
        filters.append(OrphanedTask.processed.is_(processed))
    if client_id:
        filters.append(OrphanedTask.client_id == client_id)
    if client_email:
        filters.append(OrphanedTask.client_email == client_email.strip().lower())

    tasks = (
        db.query(OrphanedTask)
        .filter(*filters)
        .order_by(OrphanedTask.created_at.desc())
        .limit(limit)
        .all()
    )
    counts = (
        db.query(OrphanedTask.processed, OrphanedTask.event_type, OrphanedTask.task_type, func.count(OrphanedTask.id))
        .filter(*filters)
        .group_by(OrphanedTask.processed, OrphanedTask.event_type, OrphanedTask.task_type)
        .all()
    )
    return {
        "orphanedTasks": [t.to_dict() for t in tasks],
        "summary": [
            {"processed": bool(done), "eventType": event_type, "taskType": task_type, "count": count}
            for done, event_type, task_type, count in counts
        ],
        "total": len(tasks),
    }


def _resolve_owner(db: Session, user_id: Optional[str], user_email: Optional[str]) -> User:
    if user_id:
        owner = db.query(User).filter(User.id == user_id).first()
    else:
        owner = db.query(User).filter(User.email == user_email.strip().lower()).first()
    if not owner:
        raise NotFoundError("User not found")
    return owner


def process_orphaned_tasks(
    db: Session,
    admin: User,
    user_id: Optional[str] = None,
    user_email: Optional[str] = None,
    dealership_id: Optional[str] = None,
) -> dict:
    """
    Replay unprocessed orphaned events for one owner, oldest first.

    Events match when their client email is the owner's, or their client id
    is the owner's id or the dealership's vendor ``client_id``. The
    dealership defaults to the owner's current one. Each event is committed
    on its own; one that fails is logged, counted and left unprocessed.
    """
    _require_super_admin(admin)
    if not user_id and not user_email:
        raise ValidationError("userId or userEmail is required")

    owner = _resolve_owner(db, user_id, user_email)
    dealership_id = dealership_id or owner.dealership_id
    if not dealership_id:
        raise ValidationError("User has no current dealership; dealershipId is required")
    dealership = db.query(Dealership).filter(Dealership.id == dealership_id).first()
    if not dealership:
        raise NotFoundError("Dealership not found")

    matches = [OrphanedTask.client_email == owner.email, OrphanedTask.client_id == owner.id]
    if dealership.client_id:
        matches.append(OrphanedTask.client_id == dealership.client_id)
    orphans = (
        db.query(OrphanedTask)
        .filter(OrphanedTask.processed.is_(False), or_(*matches))
        .order_by(OrphanedTask.created_at.asc())
        .all()
    )

    summary = {
        "userId": owner.id,
        "dealershipId": dealership.id,
        "found": len(orphans),
        "processed": 0,
        "created": 0,
        "failed": 0,
    }
    if not orphans:
        log.info(f"No orphaned SEOWorks tasks for user {owner.id}")
        return summary

    service = SeoworksWebhookService(db)
    for orphan in orphans:
        orphan_id = orphan.id
        try:
            result = service.replay_orphan(orphan, owner, dealership)
            orphan.processed = True
            orphan.processed_at = datetime.utcnow()
            if result is None:
                orphan.resolution = f"Processed for user {owner.id}: no request to apply {orphan.event_type} to"
            else:
                orphan.linked_request_id = result.request_id
                action = "created" if result.created else "applied to"
                orphan.resolution = f"Processed for user {owner.id}: {action} request {result.request_id}"
                summary["created"] += int(result.created)
            db.commit()
            summary["processed"] += 1
        except Exception as exc:
            db.rollback()
            summary["failed"] += 1
            log.error(f"Failed to replay orphaned task {orphan_id}: {exc}")

    log.info(
        f"Replayed orphaned SEOWorks tasks for user {owner.id} at dealership {dealership.id}: "
        f"found={summary['found']} processed={summary['processed']} "
        f"created={summary['created']} failed={summary['failed']}"
    )
    return summary
