"""
Dealership analytics

GA4 traffic and Search Console performance for a dealership's dashboard.
A source that is not configured reports ``connected: False``; a source that
fails reports its error without failing the other one. Results in which
every source succeeded are cached per dealership and window.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.connectors.base_connector import BaseConnector
from app.connectors.ga4_connector import GA4Connector
from app.connectors.search_console_connector import SearchConsoleConnector
from app.models.tenant import Dealership
from app.models.user import User
from app.services.tenant_service import require_dealership_access
from app.utils.cache import _MISS, get_cached, set_cached
from app.utils.errors import ValidationError
from app.utils.helpers import calculate_date_range
from app.utils.logger import log

MAX_DAYS = 365


def build_connectors(dealership: Dealership, settings: Settings) -> Dict[str, Optional[BaseConnector]]:
    """Connector per source, or None where the dealership has no property/site configured."""
    return {
        "ga4": GA4Connector(dealership.ga4_property_id, settings.ga4_credentials_path)
        if dealership.ga4_property_id else None,
        "searchConsole": SearchConsoleConnector(dealership.search_console_site_url, settings.gsc_credentials_path)
        if dealership.search_console_site_url else None,
    }


async def _source_report(connector: Optional[BaseConnector], start_date, end_date) -> Dict[str, Any]:
    if connector is None:
        return {"connected": False}
    if not connector.has_credentials:
        log.warning(f"{connector.name} configured for dealership but credentials file is missing")
        return {"connected": False, "error": "Credentials not configured"}
    try:
        return {"connected": True, "data": await connector.fetch(start_date, end_date)}
    except Exception as e:
        log.error(f"{connector.name} fetch failed: {str(e)}")
        return {"connected": True, "error": str(e)}


async def get_dealership_analytics(
    db: Session,
    user: User,
    dealership_id: str,
    days: int = 30,
    connectors: Optional[Dict[str, Optional[BaseConnector]]] = None,
) -> Dict[str, Any]:
    if days < 1 or days > MAX_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_DAYS}")

    dealership = require_dealership_access(db, user, dealership_id)
    settings = get_settings()

    cache_key = f"analytics:{dealership.id}:{days}"
    cached = get_cached(cache_key)
    if cached is not _MISS:
        return cached

    start_date, end_date = calculate_date_range(days)
    connectors = connectors if connectors is not None else build_connectors(dealership, settings)

    result = {
        "dealershipId": dealership.id,
        "days": days,
        "startDate": start_date.date().isoformat(),
        "endDate": end_date.date().isoformat(),
    }
    for name, connector in connectors.items():
        result[name] = await _source_report(connector, start_date, end_date)

    if any(isinstance(section, dict) and "error" in section for section in result.values()):
        log.info(f"Analytics for dealership {dealership.id} has failed sources; not caching")
    else:
        set_cached(cache_key, result, settings.analytics_cache_seconds)
    return result
