"""
Package progress calculation

Pure computation over request summaries: how much of a dealership's
package has been delivered. Callers filter the requests to the dealership
and billing period first.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Union

from app.models.request import RequestStatus
from app.services.package_catalog import (
    BUCKETS,
    IMPROVEMENTS,
    PackageType,
    bucket_for,
    get_package,
)


@dataclass
class BucketProgress:
    total: int
    completed: int = 0

    def to_dict(self) -> dict:
        return {"completed": self.completed, "total": self.total}


@dataclass
class PackageProgress:
    package_type: PackageType
    total_tasks: int
    completed_tasks: int = 0
    breakdown: Dict[str, BucketProgress] = field(default_factory=dict)

    @property
    def active_tasks(self) -> int:
        return self.total_tasks - self.completed_tasks

    def to_dict(self) -> dict:
        return {
            "packageType": self.package_type.value,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "activeTasks": self.active_tasks,
            "breakdown": {name: bucket.to_dict() for name, bucket in self.breakdown.items()},
        }


def _field(item: Any, name: str):
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def calculate_package_progress(
    package_type: Union[PackageType, str],
    requests: Iterable[Any],
) -> PackageProgress:
    """
    Count completed requests against the package quota.

    ``requests`` may be mappings or objects exposing ``type`` and ``status``.
    Status matching is case-insensitive, so "completed" and the persisted
    "COMPLETED" both count. Every completed request counts toward
    ``completed_tasks``; only recognised types move a breakdown bucket.
    """
    package = get_package(package_type)
    limits = {**package.breakdown, IMPROVEMENTS: package.improvements}

    progress = PackageProgress(
        package_type=package.package_type,
        total_tasks=package.total_tasks,
        breakdown={name: BucketProgress(total=limits[name]) for name in BUCKETS},
    )

    for request in requests:
        if RequestStatus.parse(_field(request, "status")) is not RequestStatus.COMPLETED:
            continue
        progress.completed_tasks += 1
        bucket = bucket_for(_field(request, "type"))
        if bucket:
            progress.breakdown[bucket].completed += 1

    return progress
