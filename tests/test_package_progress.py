"""
Tests for package progress calculation.

Pure computation over request summaries; no database required.
"""
from types import SimpleNamespace

import pytest

from app.services.package_progress import calculate_package_progress


def _req(type, status="COMPLETED"):
    return {"type": type, "status": status}


class TestPackageProgress:

    def test_gold_with_three_completed_pages(self):
        progress = calculate_package_progress("GOLD", [_req("page")] * 3)

        assert progress.breakdown["pages"].completed == 3
        assert progress.breakdown["pages"].total == 6
        assert progress.completed_tasks == 3
        assert progress.total_tasks == 42
        assert progress.active_tasks == 39

    def test_empty_request_list(self):
        progress = calculate_package_progress("SILVER", [])
        assert progress.completed_tasks == 0
        assert progress.active_tasks == 24
        assert all(bucket.completed == 0 for bucket in progress.breakdown.values())

    @pytest.mark.parametrize("status", ["COMPLETED", "completed", "Completed"])
    def test_status_match_is_case_insensitive(self, status):
        progress = calculate_package_progress("GOLD", [_req("blog", status)])
        assert progress.completed_tasks == 1
        assert progress.breakdown["blogs"].completed == 1

    @pytest.mark.parametrize("status", ["PENDING", "IN_PROGRESS", "CANCELLED", None])
    def test_only_completed_requests_count(self, status):
        progress = calculate_package_progress("GOLD", [_req("page", status)])
        assert progress.completed_tasks == 0

    def test_unknown_type_counts_toward_total_only(self):
        progress = calculate_package_progress("GOLD", [_req("video"), _req("page")])
        assert progress.completed_tasks == 2
        assert sum(bucket.completed for bucket in progress.breakdown.values()) == 1

    def test_type_aliases_land_in_the_right_bucket(self):
        progress = calculate_package_progress("PLATINUM", [
            _req("gbp-post"), _req("GBP_POST"), _req("seochange"), _req("maintenance"),
        ])
        assert progress.breakdown["gbpPosts"].completed == 2
        assert progress.breakdown["improvements"].completed == 2

    def test_accepts_objects(self):
        requests = [SimpleNamespace(type="page", status="COMPLETED")]
        assert calculate_package_progress("GOLD", requests).completed_tasks == 1

    def test_breakdown_totals_come_from_the_catalog(self):
        progress = calculate_package_progress("PLATINUM", [])
        assert {name: b.total for name, b in progress.breakdown.items()} == {
            "pages": 9, "blogs": 12, "gbpPosts": 20, "improvements": 20,
        }

    def test_to_dict(self):
        data = calculate_package_progress("GOLD", [_req("page")] * 3).to_dict()
        assert data["packageType"] == "GOLD"
        assert data["completedTasks"] == 3
        assert data["activeTasks"] == 39
        assert data["breakdown"]["pages"] == {"completed": 3, "total": 6}
