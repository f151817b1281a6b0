"""Database models for Dealer SEO Hub"""

from app.models.tenant import Agency, Dealership, MonthlyUsage
from app.models.user import User, UserSession, UserRole
from app.models.request import SeoRequest, RequestStatus, RequestPriority, OrphanedTask
