"""
Tenant directory, access control and billing-period usage

Agencies own dealerships; users belong to an agency and have a current
dealership. Usage counters live on the dealership and roll over at the
start of each calendar month (UTC).
"""
from calendar import monthrange
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models.tenant import Agency, Dealership, MonthlyUsage
from app.models.user import User, UserRole
from app.services.package_catalog import (
    BLOGS,
    GBP_POSTS,
    IMPROVEMENTS,
    PAGES,
    get_package,
    parse_package_type,
)
from app.utils.errors import AuthorizationError, NotFoundError, QuotaExceededError, ValidationError
from app.utils.logger import log

# Usage bucket -> Dealership column
USAGE_COLUMNS = {
    PAGES: "pages_used_this_period",
    BLOGS: "blogs_used_this_period",
    GBP_POSTS: "gbp_posts_used_this_period",
    IMPROVEMENTS: "improvements_used_this_period",
}


# ── Access control ─────────────────────────────────────────

def can_access_dealership(user: User, dealership: Dealership) -> bool:
    if user.is_super_admin:
        return True
    if user.is_agency_admin:
        return user.agency_id is not None and dealership.agency_id == user.agency_id
    return user.dealership_id == dealership.id


def require_dealership_access(db: Session, user: User, dealership_id: str) -> Dealership:
    """Load a dealership the caller may see, or raise 404/403."""
    dealership = db.query(Dealership).filter(Dealership.id == dealership_id).first()
    if not dealership:
        raise NotFoundError("Dealership not found")
    if not can_access_dealership(user, dealership):
        log.warning(f"User {user.id} denied access to dealership {dealership_id}")
        raise AuthorizationError("Access denied to this dealership")
    return dealership


def require_admin(user: User) -> None:
    if user.role not in (UserRole.SUPER_ADMIN.value, UserRole.AGENCY_ADMIN.value):
        raise AuthorizationError("Access denied - Admin required")


def visible_dealerships(db: Session, user: User) -> List[Dealership]:
    query = db.query(Dealership)
    if user.is_super_admin:
        pass
    elif user.is_agency_admin:
        query = query.filter(Dealership.agency_id == user.agency_id)
    else:
        query = query.filter(Dealership.id == user.dealership_id)
    return query.order_by(Dealership.name).all()


def list_agencies(db: Session, user: User) -> List[Agency]:
    if not user.is_super_admin:
        raise AuthorizationError("Super admin required")
    return db.query(Agency).order_by(Agency.name).all()


def switch_dealership(db: Session, user: User, dealership_id: str) -> Dealership:
    dealership = require_dealership_access(db, user, dealership_id)
    user.dealership_id = dealership.id
    db.commit()
    log.info(f"User {user.id} switched to dealership {dealership.id}")
    return dealership


def set_package(db: Session, user: User, dealership_id: str, package_type: str) -> Dealership:
    """Assign a package and start a fresh billing period."""
    require_admin(user)
    dealership = require_dealership_access(db, user, dealership_id)
    new_type = parse_package_type(package_type)

    _archive_period(db, dealership)
    dealership.package_type = new_type.value
    _open_period(dealership, datetime.utcnow())
    db.commit()
    db.refresh(dealership)
    log.info(f"Dealership {dealership.id} package set to {new_type.value} by user {user.id}")
    return dealership


def dealership_to_dict(dealership: Dealership) -> dict:
    return {
        "id": dealership.id,
        "name": dealership.name,
        "agencyId": dealership.agency_id,
        "agencyName": dealership.agency.name if dealership.agency else None,
        "clientId": dealership.client_id,
        "website": dealership.website,
        "activePackageType": dealership.package_type,
        "billingPeriodStart": dealership.billing_period_start.isoformat() if dealership.billing_period_start else None,
        "billingPeriodEnd": dealership.billing_period_end.isoformat() if dealership.billing_period_end else None,
        "usage": current_usage(dealership),
        "ga4Connected": bool(dealership.ga4_property_id),
        "searchConsoleConnected": bool(dealership.search_console_site_url),
    }


# ── Billing period ─────────────────────────────────────────

def month_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """First and last instant of the calendar month containing ``moment``."""
    start = datetime(moment.year, moment.month, 1)
    last_day = monthrange(moment.year, moment.month)[1]
    end = datetime(moment.year, moment.month, last_day, 23, 59, 59, 999999)
    return start, end


def _open_period(dealership: Dealership, now: datetime) -> None:
    start, end = month_bounds(now)
    dealership.billing_period_start = start
    dealership.billing_period_end = end
    for column in USAGE_COLUMNS.values():
        setattr(dealership, column, 0)


def _archive_period(db: Session, dealership: Dealership) -> Optional[MonthlyUsage]:
    """
    Write the running period's counters to MonthlyUsage.

    A month can be archived twice (package change mid-month, then the
    month-end rollover); the second write adds to the existing row.
    """
    if not dealership.billing_period_start or not dealership.package_type:
        return None

    period = dealership.billing_period_start
    usage = current_usage(dealership)
    archived = (
        db.query(MonthlyUsage)
        .filter(
            MonthlyUsage.dealership_id == dealership.id,
            MonthlyUsage.year == period.year,
            MonthlyUsage.month == period.month,
        )
        .first()
    )
    if archived is None:
        archived = MonthlyUsage(
            dealership_id=dealership.id,
            year=period.year,
            month=period.month,
            pages_used=0,
            blogs_used=0,
            gbp_posts_used=0,
            improvements_used=0,
        )
        db.add(archived)

    archived.package_type = dealership.package_type
    archived.pages_used += usage[PAGES]
    archived.blogs_used += usage[BLOGS]
    archived.gbp_posts_used += usage[GBP_POSTS]
    archived.improvements_used += usage[IMPROVEMENTS]
    archived.archived_at = datetime.utcnow()

    log.info(
        f"Archived usage for dealership {dealership.id} "
        f"{period.year}-{period.month:02d}: {usage}"
    )
    return archived


def current_usage(dealership: Dealership) -> dict:
    return {bucket: getattr(dealership, column) or 0 for bucket, column in USAGE_COLUMNS.items()}


def ensure_billing_period(db: Session, dealership: Dealership, now: Optional[datetime] = None) -> Dealership:
    """
    Roll the dealership into the billing period containing ``now``.

    A finished period's counters are archived into MonthlyUsage before being
    zeroed. Dealerships without a package are left untouched. Does not
    commit; callers own the transaction.
    """
    if not dealership.package_type:
        return dealership

    now = now or datetime.utcnow()
    if dealership.billing_period_end and dealership.billing_period_start and \
            dealership.billing_period_start <= now <= dealership.billing_period_end:
        return dealership

    _archive_period(db, dealership)
    _open_period(dealership, now)
    db.flush()
    return dealership


def increment_usage(db: Session, dealership: Dealership, bucket: str, now: Optional[datetime] = None) -> Dealership:
    """Count one delivered item against the dealership's current period."""
    if not dealership.package_type:
        raise ValidationError("Dealership does not have an active package.")
    if bucket not in USAGE_COLUMNS:
        raise ValidationError(f"Unknown usage bucket: {bucket}")

    ensure_billing_period(db, dealership, now)

    column = USAGE_COLUMNS[bucket]
    used = getattr(dealership, column) or 0
    limit = get_package(dealership.package_type).limit_for(bucket)
    if used >= limit:
        raise QuotaExceededError(f"Usage limit for {bucket} exceeded for dealership {dealership.id}.")

    setattr(dealership, column, used + 1)
    db.flush()
    return dealership
