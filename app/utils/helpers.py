"""
Helper utilities
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def calculate_date_range(days: int = 30) -> tuple[datetime, datetime]:
    """Calculate date range for analysis"""
    end_date = datetime.utcnow()
    start_date = end_date - timedelta(days=days)
    return start_date, end_date


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Prefix https:// when a vendor-supplied URL has no scheme."""
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None
    if _SCHEME_RE.match(url):
        return url
    return f"https://{url.lstrip('/')}"


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string into a naive UTC datetime ("Z" suffix allowed)."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
