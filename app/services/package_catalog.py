"""
SEO package catalog

Single source of truth for package quotas and task-type buckets. Every
caller that needs to turn a task type into a usage counter goes through
TASK_TYPE_TO_BUCKET.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

from app.utils.errors import ValidationError


class PackageType(str, Enum):
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


class TaskType(str, Enum):
    PAGE = "page"
    BLOG = "blog"
    GBP_POST = "gbp_post"
    IMPROVEMENT = "improvement"
    MAINTENANCE = "maintenance"


# Vendor and legacy spellings seen in the wild
_TASK_TYPE_ALIASES = {
    "page": TaskType.PAGE,
    "pages": TaskType.PAGE,
    "blog": TaskType.BLOG,
    "blogs": TaskType.BLOG,
    "gbp_post": TaskType.GBP_POST,
    "gbp-post": TaskType.GBP_POST,
    "gbppost": TaskType.GBP_POST,
    "gbp": TaskType.GBP_POST,
    "improvement": TaskType.IMPROVEMENT,
    "improvements": TaskType.IMPROVEMENT,
    "seochange": TaskType.IMPROVEMENT,
    "seo_change": TaskType.IMPROVEMENT,
    "maintenance": TaskType.MAINTENANCE,
}

PAGES = "pages"
BLOGS = "blogs"
GBP_POSTS = "gbpPosts"
IMPROVEMENTS = "improvements"

BUCKETS = (PAGES, BLOGS, GBP_POSTS, IMPROVEMENTS)

TASK_TYPE_TO_BUCKET: Mapping[TaskType, str] = MappingProxyType({
    TaskType.PAGE: PAGES,
    TaskType.BLOG: BLOGS,
    TaskType.GBP_POST: GBP_POSTS,
    TaskType.IMPROVEMENT: IMPROVEMENTS,
    TaskType.MAINTENANCE: IMPROVEMENTS,
})


@dataclass(frozen=True)
class Package:
    """Monthly deliverable quota for one tier.

    ``breakdown`` covers the content deliverables (pages, blogs, GBP posts);
    improvements are tracked separately so the tier total is
    ``sum(breakdown) + improvements``.
    """
    package_type: PackageType
    name: str
    pages: int
    blogs: int
    gbp_posts: int
    improvements: int

    @property
    def breakdown(self) -> dict:
        return {PAGES: self.pages, BLOGS: self.blogs, GBP_POSTS: self.gbp_posts}

    @property
    def total_tasks(self) -> int:
        return self.pages + self.blogs + self.gbp_posts + self.improvements

    def limit_for(self, bucket: str) -> int:
        limits = {**self.breakdown, IMPROVEMENTS: self.improvements}
        if bucket not in limits:
            raise ValidationError(f"Unknown usage bucket: {bucket}")
        return limits[bucket]

    def to_dict(self) -> dict:
        return {
            "packageType": self.package_type.value,
            "name": self.name,
            "totalTasks": self.total_tasks,
            "breakdown": self.breakdown,
            "improvements": self.improvements,
        }


SEO_PACKAGES: Mapping[PackageType, Package] = MappingProxyType({
    PackageType.SILVER: Package(PackageType.SILVER, "Silver", pages=3, blogs=4, gbp_posts=8, improvements=9),
    PackageType.GOLD: Package(PackageType.GOLD, "Gold", pages=6, blogs=8, gbp_posts=16, improvements=12),
    PackageType.PLATINUM: Package(PackageType.PLATINUM, "Platinum", pages=9, blogs=12, gbp_posts=20, improvements=20),
})


def parse_package_type(value: Union[PackageType, str, None]) -> PackageType:
    """Coerce a package name ("gold", "GOLD", PackageType.GOLD) to the enum."""
    if isinstance(value, PackageType):
        return value
    try:
        return PackageType(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown package type: {value}")


def get_package(package_type: Union[PackageType, str]) -> Package:
    return SEO_PACKAGES[parse_package_type(package_type)]


def package_limit(package_type: Union[PackageType, str], bucket: str) -> int:
    return get_package(package_type).limit_for(bucket)


def normalize_task_type(value: Optional[str]) -> Optional[TaskType]:
    """Map any known spelling of a task type to TaskType, else None."""
    if not value:
        return None
    return _TASK_TYPE_ALIASES.get(str(value).strip().lower())


def bucket_for(task_type: Union[TaskType, str, None]) -> Optional[str]:
    """Usage bucket for a task type, or None for unrecognised types."""
    if not isinstance(task_type, TaskType):
        task_type = normalize_task_type(task_type)
    if task_type is None:
        return None
    return TASK_TYPE_TO_BUCKET[task_type]
