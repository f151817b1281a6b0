"""
Tests for billing-period usage and tenant access.

  - Monthly rollover archives the finished period
  - Quota enforcement on increment
  - Dealership visibility by role
"""
from datetime import datetime, timedelta

import pytest

from app.models.tenant import MonthlyUsage
from app.models.user import UserRole
from app.services import tenant_service
from app.services.tenant_service import ensure_billing_period, increment_usage, month_bounds
from app.utils.errors import AuthorizationError, NotFoundError, QuotaExceededError, ValidationError
from tests.factories import make_agency, make_dealership, make_user

SEPT = datetime(2026, 9, 14, 10, 0)
OCT = datetime(2026, 10, 3, 8, 30)


# ────────────────────────────────────────────
# BILLING PERIOD
# ────────────────────────────────────────────


class TestMonthBounds:

    def test_covers_whole_month(self):
        start, end = month_bounds(datetime(2024, 2, 10))
        assert start == datetime(2024, 2, 1)
        assert end.date() == datetime(2024, 2, 29).date()
        assert end.hour == 23


class TestRollover:

    def test_archives_and_resets_when_period_ended(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type="GOLD", now=SEPT)
        dealership.pages_used_this_period = 2
        dealership.blogs_used_this_period = 5
        db.commit()

        ensure_billing_period(db, dealership, now=OCT)
        db.commit()

        archived = db.query(MonthlyUsage).filter(MonthlyUsage.dealership_id == dealership.id).one()
        assert (archived.year, archived.month) == (2026, 9)
        assert archived.pages_used == 2
        assert archived.blogs_used == 5
        assert archived.package_type == "GOLD"

        assert dealership.pages_used_this_period == 0
        assert dealership.blogs_used_this_period == 0
        assert dealership.billing_period_start == datetime(2026, 10, 1)

    def test_no_op_inside_current_period(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, now=OCT)
        dealership.pages_used_this_period = 1
        db.commit()

        ensure_billing_period(db, dealership, now=OCT)

        assert dealership.pages_used_this_period == 1
        assert db.query(MonthlyUsage).count() == 0

    def test_first_period_opens_without_archive(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type=None)
        dealership.package_type = "SILVER"
        db.commit()

        ensure_billing_period(db, dealership, now=OCT)

        assert dealership.billing_period_start == datetime(2026, 10, 1)
        assert db.query(MonthlyUsage).count() == 0

    def test_package_change_archives_running_period(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type="GOLD")
        dealership.pages_used_this_period = 4
        dealership.gbp_posts_used_this_period = 2
        db.commit()
        admin = make_user(db, "a@hub.test", agency=agency, role=UserRole.AGENCY_ADMIN.value)

        tenant_service.set_package(db, admin, dealership.id, "PLATINUM")

        archived = db.query(MonthlyUsage).filter(MonthlyUsage.dealership_id == dealership.id).one()
        assert archived.package_type == "GOLD"
        assert archived.pages_used == 4
        assert archived.gbp_posts_used == 2
        assert dealership.pages_used_this_period == 0

    def test_month_end_merges_with_mid_month_archive(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type="GOLD")
        dealership.pages_used_this_period = 4
        db.commit()
        admin = make_user(db, "a@hub.test", agency=agency, role=UserRole.AGENCY_ADMIN.value)
        tenant_service.set_package(db, admin, dealership.id, "PLATINUM")
        dealership.pages_used_this_period = 3
        db.commit()

        next_month = month_bounds(datetime.utcnow())[1] + timedelta(days=1)
        ensure_billing_period(db, dealership, now=next_month)
        db.commit()

        archived = db.query(MonthlyUsage).filter(MonthlyUsage.dealership_id == dealership.id).one()
        assert archived.pages_used == 7
        assert archived.package_type == "PLATINUM"

    def test_ignores_dealership_without_package(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type=None)

        ensure_billing_period(db, dealership, now=OCT)

        assert dealership.billing_period_start is None


# ────────────────────────────────────────────
# QUOTA
# ────────────────────────────────────────────


class TestIncrementUsage:

    def test_increments_bucket(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, now=OCT)

        increment_usage(db, dealership, "gbpPosts", now=OCT)

        assert dealership.gbp_posts_used_this_period == 1

    def test_rejects_at_limit(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type="SILVER", now=OCT)
        dealership.pages_used_this_period = 3
        db.commit()

        with pytest.raises(QuotaExceededError, match="Usage limit for pages exceeded"):
            increment_usage(db, dealership, "pages", now=OCT)
        assert dealership.pages_used_this_period == 3

    def test_rollover_frees_quota(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type="SILVER", now=SEPT)
        dealership.pages_used_this_period = 3
        db.commit()

        increment_usage(db, dealership, "pages", now=OCT)

        assert dealership.pages_used_this_period == 1

    def test_requires_active_package(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency, package_type=None)

        with pytest.raises(ValidationError, match="does not have an active package"):
            increment_usage(db, dealership, "pages")

    def test_unknown_bucket(self, db):
        agency = make_agency(db)
        dealership = make_dealership(db, agency)

        with pytest.raises(ValidationError):
            increment_usage(db, dealership, "videos")


# ────────────────────────────────────────────
# ACCESS
# ────────────────────────────────────────────


class TestDealershipAccess:

    @pytest.fixture
    def two_agencies(self, db):
        north = make_agency(db, "North Group")
        south = make_agency(db, "South Group")
        return {
            "north": north,
            "south": south,
            "north_store": make_dealership(db, north, name="North Ford", client_id="n-1"),
            "north_store_2": make_dealership(db, north, name="North Kia", client_id="n-2"),
            "south_store": make_dealership(db, south, name="South Ford", client_id="s-1"),
        }

    def test_user_sees_only_current_dealership(self, db, two_agencies):
        user = make_user(db, "u@north.test", agency=two_agencies["north"], dealership=two_agencies["north_store"])
        visible = tenant_service.visible_dealerships(db, user)
        assert [d.name for d in visible] == ["North Ford"]

    def test_agency_admin_sees_agency(self, db, two_agencies):
        admin = make_user(db, "a@north.test", agency=two_agencies["north"], role=UserRole.AGENCY_ADMIN.value)
        visible = tenant_service.visible_dealerships(db, admin)
        assert {d.name for d in visible} == {"North Ford", "North Kia"}

    def test_super_admin_sees_all(self, db, two_agencies):
        root = make_user(db, "root@hub.test", role=UserRole.SUPER_ADMIN.value)
        assert len(tenant_service.visible_dealerships(db, root)) == 3

    def test_cross_agency_access_denied(self, db, two_agencies):
        admin = make_user(db, "a@north.test", agency=two_agencies["north"], role=UserRole.AGENCY_ADMIN.value)
        with pytest.raises(AuthorizationError):
            tenant_service.require_dealership_access(db, admin, two_agencies["south_store"].id)

    def test_missing_dealership(self, db, two_agencies):
        root = make_user(db, "root@hub.test", role=UserRole.SUPER_ADMIN.value)
        with pytest.raises(NotFoundError):
            tenant_service.require_dealership_access(db, root, "missing")

    def test_list_agencies_requires_super_admin(self, db, two_agencies):
        admin = make_user(db, "a@north.test", agency=two_agencies["north"], role=UserRole.AGENCY_ADMIN.value)
        with pytest.raises(AuthorizationError):
            tenant_service.list_agencies(db, admin)

    def test_set_package_resets_period(self, db, two_agencies):
        admin = make_user(db, "a@north.test", agency=two_agencies["north"], role=UserRole.AGENCY_ADMIN.value)
        store = two_agencies["north_store"]
        store.pages_used_this_period = 4
        db.commit()

        tenant_service.set_package(db, admin, store.id, "platinum")

        assert store.package_type == "PLATINUM"
        assert store.pages_used_this_period == 0

    def test_set_package_requires_admin(self, db, two_agencies):
        user = make_user(db, "u@north.test", agency=two_agencies["north"], dealership=two_agencies["north_store"])
        with pytest.raises(AuthorizationError):
            tenant_service.set_package(db, user, two_agencies["north_store"].id, "GOLD")

    def test_switch_dealership(self, db, two_agencies):
        admin = make_user(db, "a@north.test", agency=two_agencies["north"], role=UserRole.AGENCY_ADMIN.value)
        tenant_service.switch_dealership(db, admin, two_agencies["north_store_2"].id)
        assert admin.dealership_id == two_agencies["north_store_2"].id
