"""
SEOWorks webhook reconciliation

SEOWorks (the fulfillment vendor) posts task lifecycle events. Each event is
matched to a request through the vendor task id and applied exactly once:
re-deliveries of an event that already moved a request to a terminal state
change nothing.

Matching is strict by default: an unknown task id is a 404. With
``SEOWORKS_AUTO_CREATE_REQUESTS`` enabled, an unknown task creates a request
owned by the client's user (or the configured fallback user). An event that
matches nothing is stored as an OrphanedTask before the 404 so it can be
replayed once its owner exists.
"""
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Callable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.models.request import OrphanedTask, RequestPriority, RequestStatus, SeoRequest
from app.models.tenant import Dealership
from app.models.user import User
from app.services import notification_service
from app.services.package_catalog import TaskType, normalize_task_type
from app.services.request_service import record_completion
from app.utils.errors import AuthenticationError, DealerSeoError, NotFoundError, ValidationError
from app.utils.helpers import normalize_url, parse_iso_datetime
from app.utils.logger import log

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

EventType = Literal["task.created", "task.updated", "task.completed", "task.cancelled"]

# Vendor task ids look like "task-p-123" (page), "task-b-..." (blog), "task-g-..." (GBP post)
_TASK_ID_PREFIXES = {
    "p": TaskType.PAGE,
    "b": TaskType.BLOG,
    "g": TaskType.GBP_POST,
}


class _VendorModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SeoworksDeliverable(_VendorModel):
    type: NonEmptyStr
    title: NonEmptyStr
    url: Optional[str] = None
    published_date: Optional[datetime] = None


class SeoworksTaskData(_VendorModel):
    external_id: NonEmptyStr
    task_type: NonEmptyStr
    status: NonEmptyStr
    client_id: Optional[str] = None
    client_email: Optional[str] = None
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None
    deliverables: List[SeoworksDeliverable] = Field(default_factory=list)


class SeoworksWebhookPayload(_VendorModel):
    event_type: EventType
    timestamp: datetime
    data: SeoworksTaskData


@dataclass
class WebhookResult:
    request_id: str
    status: str
    event_type: str
    created: bool = False
    changed: bool = True
    notifications: List[Callable[[], Any]] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "requestId": self.request_id,
            "status": self.status,
            "eventType": self.event_type,
            "created": self.created,
            "changed": self.changed,
        }


def verify_webhook_secret(provided: Optional[str], settings: Optional[Settings] = None) -> None:
    """Constant-time check of the ``x-api-key`` header against the shared secret."""
    settings = settings or get_settings()
    expected = settings.seoworks_webhook_secret
    if not expected:
        log.error("SEOWORKS_WEBHOOK_SECRET is not configured - rejecting webhook")
        raise AuthenticationError("Unauthorized")
    if not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        log.warning("SEOWorks webhook rejected: invalid API key")
        raise AuthenticationError("Unauthorized")


def parse_webhook_payload(body: Any) -> SeoworksWebhookPayload:
    try:
        return SeoworksWebhookPayload.model_validate(body)
    except PydanticValidationError as exc:
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationError("Invalid webhook payload", details=details)


def infer_request_type(data: SeoworksTaskData) -> TaskType:
    """Deliverable type, then task-id prefix, then task type; page if nothing matches."""
    for deliverable in data.deliverables:
        task_type = normalize_task_type(deliverable.type)
        if task_type:
            return task_type

    parts = data.external_id.lower().split("-")
    if len(parts) >= 3 and parts[0] == "task" and parts[1] in _TASK_ID_PREFIXES:
        return _TASK_ID_PREFIXES[parts[1]]

    return normalize_task_type(data.task_type) or TaskType.PAGE


def build_completed_task(data: SeoworksTaskData, completed_at: datetime) -> dict:
    first = data.deliverables[0] if data.deliverables else None
    task_type = normalize_task_type(data.task_type)
    task = {
        "title": first.title if first else data.task_type,
        "type": task_type.value if task_type else data.task_type.lower(),
        "url": normalize_url(first.url) if first else None,
        "completedAt": completed_at.isoformat(),
    }
    if first and first.published_date:
        task["publishedDate"] = parse_iso_datetime(first.published_date).isoformat()
    return task


class SeoworksWebhookService:
    """Apply one SEOWorks event to the request store."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def process(self, payload: SeoworksWebhookPayload) -> WebhookResult:
        data = payload.data
        log.info(f"SEOWorks {payload.event_type} for task {data.external_id} (status={data.status})")

        request, created = self._resolve_request(payload)
        result = self._apply(request, payload, created)

        self.db.commit()
        self.db.refresh(request)
        result.status = request.status

        for notify in result.notifications:
            try:
                notify()
            except Exception as exc:
                log.error(f"Notification for request {request.id} failed: {exc}")

        log.info(
            f"SEOWorks {payload.event_type} applied to request {request.id}: "
            f"status={request.status} created={created} changed={result.changed}"
        )
        return result

    def _apply(self, request: SeoRequest, payload: SeoworksWebhookPayload, created: bool) -> WebhookResult:
        handlers = {
            "task.created": self._on_created,
            "task.updated": self._on_updated,
            "task.completed": self._on_completed,
            "task.cancelled": self._on_cancelled,
        }
        result = WebhookResult(
            request_id=request.id,
            status=request.status,
            event_type=payload.event_type,
            created=created,
        )
        handlers[payload.event_type](request, payload, result)
        return result

    # ── Matching ──────────────────────────────────────────

    def _find_request(self, external_id: str) -> Optional[SeoRequest]:
        return (
            self.db.query(SeoRequest)
            .filter(SeoRequest.seoworks_task_id == external_id)
            .with_for_update()
            .first()
        )

    def _resolve_request(self, payload: SeoworksWebhookPayload) -> Tuple[SeoRequest, bool]:
        data = payload.data
        request = self._find_request(data.external_id)
        if request:
            return request, False

        if not self.settings.seoworks_auto_create_requests:
            log.warning(f"SEOWorks task {data.external_id} does not match any request")
            self._store_orphan(payload, "No matching request")
            raise NotFoundError(f"No request found for task {data.external_id}")

        return self._auto_create(payload)

    def _resolve_owner(self, data: SeoworksTaskData) -> Optional[User]:
        for email in (data.client_email, self.settings.seoworks_fallback_user_email):
            if not email:
                continue
            user = self.db.query(User).filter(User.email == email.strip().lower()).first()
            if user:
                return user
        return None

    def _resolve_dealership(self, data: SeoworksTaskData, owner: User) -> Optional[Dealership]:
        if data.client_id:
            dealership = self.db.query(Dealership).filter(Dealership.client_id == data.client_id).first()
            if dealership:
                return dealership
        if owner.dealership_id:
            return self.db.query(Dealership).filter(Dealership.id == owner.dealership_id).first()
        return None

    def _new_request(self, data: SeoworksTaskData, owner: User, dealership: Dealership) -> SeoRequest:
        title = data.deliverables[0].title if data.deliverables else data.task_type
        return SeoRequest(
            seoworks_task_id=data.external_id,
            user_id=owner.id,
            dealership_id=dealership.id,
            agency_id=dealership.agency_id,
            title=f"SEOWorks: {title}",
            description=data.notes or f"Created from SEOWorks task {data.external_id}",
            type=infer_request_type(data).value,
            status=RequestStatus.IN_PROGRESS.value,
            priority=RequestPriority.MEDIUM.value,
            package_type=dealership.package_type or self.settings.default_package_type,
            completed_tasks=[],
        )

    def _auto_create(self, payload: SeoworksWebhookPayload) -> Tuple[SeoRequest, bool]:
        data = payload.data
        owner = self._resolve_owner(data)
        if owner is None:
            self._store_orphan(payload, "No owner could be resolved")
            raise NotFoundError(f"No request found for task {data.external_id} and no owner could be resolved")
        dealership = self._resolve_dealership(data, owner)
        if dealership is None:
            self._store_orphan(payload, "No dealership could be resolved")
            raise NotFoundError(f"No dealership could be resolved for task {data.external_id}")

        request = self._new_request(data, owner, dealership)
        self.db.add(request)
        try:
            self.db.flush()
        except IntegrityError:
            # Another delivery for the same task created the row first
            self.db.rollback()
            existing = self._find_request(data.external_id)
            if existing is None:
                raise
            log.info(f"SEOWorks task {data.external_id} was created concurrently; using request {existing.id}")
            return existing, False

        log.info(
            f"Auto-created request {request.id} ({request.type}) for SEOWorks task {data.external_id} "
            f"owned by user {owner.id} at dealership {dealership.id}"
        )
        return request, True

    # ── Orphaned events ───────────────────────────────────

    def _store_orphan(self, payload: SeoworksWebhookPayload, reason: str) -> OrphanedTask:
        """Persist an unmatched event; commits so the record survives the 404."""
        data = payload.data
        pending = (
            self.db.query(OrphanedTask)
            .filter(
                OrphanedTask.external_id == data.external_id,
                OrphanedTask.event_type == payload.event_type,
                OrphanedTask.processed.is_(False),
            )
            .first()
        )
        if pending:
            log.info(f"SEOWorks {payload.event_type} for task {data.external_id} already stored as orphan {pending.id}")
            return pending

        orphan = OrphanedTask(
            external_id=data.external_id,
            event_type=payload.event_type,
            task_type=data.task_type,
            status=data.status,
            client_id=data.client_id,
            client_email=data.client_email.strip().lower() if data.client_email else None,
            completion_date=parse_iso_datetime(data.completion_date),
            reason=reason,
            payload=payload.model_dump(mode="json", by_alias=True),
        )
        self.db.add(orphan)
        self.db.commit()
        log.warning(f"Stored SEOWorks {payload.event_type} for task {data.external_id} as orphan {orphan.id}: {reason}")
        return orphan

    def replay_orphan(self, orphan: OrphanedTask, owner: User, dealership: Dealership) -> Optional[WebhookResult]:
        """
        Apply a stored event now that its owner is known. Does not commit.

        A completed event with no request creates one for ``owner`` at
        ``dealership``. Any other event applies only to a request that exists
        by now; otherwise there is nothing to do and ``None`` is returned.
        No notifications are sent for replayed events.
        """
        payload = SeoworksWebhookPayload.model_validate(orphan.payload)
        request = self._find_request(payload.data.external_id)
        created = False
        if request is None:
            if payload.event_type != "task.completed":
                return None
            request = self._new_request(payload.data, owner, dealership)
            self.db.add(request)
            self.db.flush()
            created = True
        return self._apply(request, payload, created)

    # ── Event handlers ────────────────────────────────────

    def _skip_terminal(self, request: SeoRequest, payload: SeoworksWebhookPayload, result: WebhookResult) -> bool:
        current = request.status_enum
        if current and current.is_terminal:
            log.info(
                f"Ignoring SEOWorks {payload.event_type} for task {payload.data.external_id}: "
                f"request {request.id} is already {current.value}"
            )
            result.changed = False
            return True
        return False

    def _queue_status_notice(self, request: SeoRequest, old_status: str, result: WebhookResult) -> None:
        new_status = request.status
        result.notifications.append(
            lambda: notification_service.notify_status_changed(request, request.user, old_status, new_status)
        )

    def _on_created(self, request: SeoRequest, payload: SeoworksWebhookPayload, result: WebhookResult) -> None:
        if self._skip_terminal(request, payload, result):
            return
        if request.status_enum == RequestStatus.PENDING:
            request.status = RequestStatus.IN_PROGRESS.value
            self._queue_status_notice(request, RequestStatus.PENDING.value, result)
        else:
            result.changed = result.created

    def _on_updated(self, request: SeoRequest, payload: SeoworksWebhookPayload, result: WebhookResult) -> None:
        if self._skip_terminal(request, payload, result):
            return
        vendor_status = RequestStatus.parse(payload.data.status)
        if request.status_enum == RequestStatus.PENDING and vendor_status == RequestStatus.IN_PROGRESS:
            request.status = RequestStatus.IN_PROGRESS.value
            self._queue_status_notice(request, RequestStatus.PENDING.value, result)
        else:
            result.changed = result.created
        if payload.data.notes:
            log.debug(f"SEOWorks notes for task {payload.data.external_id}: {payload.data.notes}")

    def _on_completed(self, request: SeoRequest, payload: SeoworksWebhookPayload, result: WebhookResult) -> None:
        if self._skip_terminal(request, payload, result):
            return
        data = payload.data
        completed_at = parse_iso_datetime(data.completion_date) or datetime.utcnow()
        completed_task = build_completed_task(data, completed_at)
        old_status = request.status

        record_completion(self.db, request, completed_at=completed_at, completed_task=completed_task)

        result.notifications.append(
            lambda: notification_service.notify_task_completed(request, request.user, completed_task)
        )
        self._queue_status_notice(request, old_status, result)

    def _on_cancelled(self, request: SeoRequest, payload: SeoworksWebhookPayload, result: WebhookResult) -> None:
        if self._skip_terminal(request, payload, result):
            return
        old_status = request.status
        request.status = RequestStatus.CANCELLED.value
        if payload.data.notes:
            request.description = (
                f"{request.description}\n\nCancelled by SEOWorks: {payload.data.notes}"
                if request.description else f"Cancelled by SEOWorks: {payload.data.notes}"
            )
        self._queue_status_notice(request, old_status, result)


def handle_webhook(db: Session, body: Any) -> WebhookResult:
    """Validate and apply a raw webhook body; unexpected failures roll back and surface as 500."""
    payload = parse_webhook_payload(body)
    try:
        return SeoworksWebhookService(db).process(payload)
    except DealerSeoError:
        db.rollback()
        raise
    except Exception as exc:
        db.rollback()
        log.error(f"SEOWorks webhook for task {payload.data.external_id} failed: {exc}")
        raise DealerSeoError("Failed to process webhook") from exc
