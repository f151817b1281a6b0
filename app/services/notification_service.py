"""Email notifications for request lifecycle changes (sent via Resend).

Every public function here is best effort: the state change that triggered
the email has already been committed, so delivery failures are logged and
reported as ``False``, never raised.
"""
from html import escape
from typing import Optional

import resend

from app.config import get_settings
from app.models.request import SeoRequest
from app.models.user import User
from app.utils.logger import log

CONTENT_TASK_TYPES = {"page", "blog", "gbp_post"}


def _send(to: str, subject: str, html: str) -> bool:
    settings = get_settings()
    if not settings.resend_api_key:
        log.info(f"RESEND_API_KEY not configured - skipping email '{subject}' to {to}")
        return False

    resend.api_key = settings.resend_api_key
    try:
        resend.Emails.send({
            "from": settings.notification_from_email,
            "to": [to],
            "subject": subject,
            "html": html,
        })
        log.info(f"Notification email sent to {to}: {subject}")
        return True
    except Exception as exc:
        log.error(f"Failed to send notification email to {to}: {exc}")
        return False


def _request_url(request: SeoRequest) -> str:
    settings = get_settings()
    return f"{settings.app_base_url.rstrip('/')}/requests/{request.id}"


def _wants_email(user: Optional[User]) -> bool:
    return bool(user and user.email and user.is_active and user.email_notifications)


def notify_task_completed(request: SeoRequest, user: Optional[User], completed_task: dict) -> bool:
    """Tell the owner a deliverable was published."""
    if not _wants_email(user):
        return False
    try:
        title = escape(str(completed_task.get("title") or request.title))
        task_type = str(completed_task.get("type") or request.type)
        url = completed_task.get("url")
        if task_type.lower() in CONTENT_TASK_TYPES:
            subject = f"New content published: {completed_task.get('title') or request.title}"
        else:
            subject = f"Task completed: {completed_task.get('title') or request.title}"
        link = f"<p><a href='{escape(url)}'>View it live</a></p>" if url else ""
        html = (
            f"<div style='font-family:sans-serif;max-width:480px;margin:0 auto;padding:32px 20px'>"
            f"<h2>{title}</h2>"
            f"<p>Your SEO team just completed a <strong>{escape(task_type)}</strong> task "
            f"for <strong>{escape(request.title)}</strong>.</p>"
            f"{link}"
            f"<p><a href='{_request_url(request)}'>Open the request</a></p>"
            f"</div>"
        )
        return _send(user.email, subject, html)
    except Exception as exc:
        log.error(f"Task completed notification failed for request {request.id}: {exc}")
        return False


def notify_status_changed(request: SeoRequest, user: Optional[User], old_status: str, new_status: str) -> bool:
    """Tell the owner their request moved to a new status."""
    if not _wants_email(user) or old_status == new_status:
        return False
    try:
        pretty_old = old_status.replace("_", " ").title()
        pretty_new = new_status.replace("_", " ").title()
        html = (
            f"<div style='font-family:sans-serif;max-width:480px;margin:0 auto;padding:32px 20px'>"
            f"<h2>{escape(request.title)}</h2>"
            f"<p>Status changed from <strong>{pretty_old}</strong> to <strong>{pretty_new}</strong>.</p>"
            f"<p><a href='{_request_url(request)}'>Open the request</a></p>"
            f"</div>"
        )
        return _send(user.email, f"Request update: {request.title} is {pretty_new}", html)
    except Exception as exc:
        log.error(f"Status change notification failed for request {request.id}: {exc}")
        return False
