"""
Tests for the request store: creation and status lifecycle.
"""
from datetime import datetime

import pytest

from app.models.request import RequestStatus
from app.models.user import UserRole
from app.services import request_service
from app.utils.errors import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from tests.factories import make_request, make_user


class TestStatusParsing:

    @pytest.mark.parametrize("raw", ["completed", "COMPLETED", " Completed "])
    def test_case_insensitive(self, raw):
        assert RequestStatus.parse(raw) is RequestStatus.COMPLETED

    def test_in_progress_spellings(self):
        assert RequestStatus.parse("in-progress") is RequestStatus.IN_PROGRESS
        assert RequestStatus.parse("in progress") is RequestStatus.IN_PROGRESS

    def test_unknown(self):
        assert RequestStatus.parse("archived") is None

    def test_terminal_states_have_no_exits(self):
        for status in (RequestStatus.COMPLETED, RequestStatus.CANCELLED):
            assert status.is_terminal
            assert not any(status.can_transition_to(target) for target in RequestStatus)


class TestCreateRequest:

    def test_creates_pending_request(self, db, tenant):
        request = request_service.create_request(
            db, tenant["user"], tenant["dealership"].id, title="Civic trim page", request_type="PAGE",
            keywords=["honda civic"],
        )
        assert request.status == "PENDING"
        assert request.type == "page"
        assert request.package_type == "GOLD"
        assert request.agency_id == tenant["agency"].id
        assert request.keywords == ["honda civic"]

    def test_rejects_unknown_type(self, db, tenant):
        with pytest.raises(ValidationError):
            request_service.create_request(db, tenant["user"], tenant["dealership"].id, "Title", "video")

    def test_rejects_blank_title(self, db, tenant):
        with pytest.raises(ValidationError):
            request_service.create_request(db, tenant["user"], tenant["dealership"].id, "  ", "blog")


class TestUpdateStatus:

    def test_pending_to_in_progress(self, db, tenant):
        request = make_request(db, tenant["user"], tenant["dealership"])

        updated = request_service.update_status(db, tenant["user"], request.id, "in_progress")

        assert updated.status == "IN_PROGRESS"

    def test_completion_records_usage(self, db, tenant):
        request = make_request(db, tenant["user"], tenant["dealership"], type="blog", status="IN_PROGRESS")

        updated = request_service.update_status(db, tenant["user"], request.id, "COMPLETED")

        assert updated.status == "COMPLETED"
        assert updated.completed_at is not None
        assert updated.blogs_completed == 1
        db.refresh(tenant["dealership"])
        assert tenant["dealership"].blogs_used_this_period == 1

    @pytest.mark.parametrize("terminal", ["COMPLETED", "CANCELLED"])
    def test_terminal_request_is_immutable(self, db, tenant, terminal):
        completed_at = datetime(2026, 10, 2, 12, 0)
        request = make_request(db, tenant["user"], tenant["dealership"], status=terminal, completed_at=completed_at)

        with pytest.raises(StateConflictError, match="Cannot update status of completed or cancelled request"):
            request_service.update_status(db, tenant["user"], request.id, "IN_PROGRESS")

        db.refresh(request)
        assert request.status == terminal
        assert request.completed_at == completed_at

    def test_backwards_move_rejected(self, db, tenant):
        request = make_request(db, tenant["user"], tenant["dealership"], status="IN_PROGRESS")
        with pytest.raises(StateConflictError):
            request_service.update_status(db, tenant["user"], request.id, "PENDING")

    def test_same_status_is_no_op(self, db, tenant):
        request = make_request(db, tenant["user"], tenant["dealership"], status="IN_PROGRESS")
        updated = request_service.update_status(db, tenant["user"], request.id, "in_progress")
        assert updated.status == "IN_PROGRESS"

    def test_invalid_status(self, db, tenant):
        request = make_request(db, tenant["user"], tenant["dealership"])
        with pytest.raises(ValidationError):
            request_service.update_status(db, tenant["user"], request.id, "archived")

    def test_missing_request(self, db, tenant):
        with pytest.raises(NotFoundError):
            request_service.update_status(db, tenant["user"], "missing", "IN_PROGRESS")

    def test_user_cannot_modify_colleagues_request(self, db, tenant):
        colleague = make_user(db, "colleague@northside.test", agency=tenant["agency"], dealership=tenant["dealership"])
        request = make_request(db, colleague, tenant["dealership"])

        with pytest.raises(AuthorizationError):
            request_service.update_status(db, tenant["user"], request.id, "CANCELLED")

    def test_agency_admin_can_modify_agency_requests(self, db, tenant):
        admin = make_user(db, "admin@northside.test", agency=tenant["agency"], role=UserRole.AGENCY_ADMIN.value)
        request = make_request(db, tenant["user"], tenant["dealership"])

        updated = request_service.update_status(db, admin, request.id, "CANCELLED", notes="Duplicate")

        assert updated.status == "CANCELLED"
        assert "Duplicate" in updated.description

    def test_notes_append_to_description(self, db, tenant):
        request = make_request(db, tenant["user"], tenant["dealership"])
        updated = request_service.update_status(db, tenant["user"], request.id, "IN_PROGRESS", notes="Started")
        assert updated.description == "Started"
