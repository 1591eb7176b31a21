"""Service layer for business logic."""

from server.services.auth_service import AuthService
from server.services.dashboard_service import DashboardService
from server.services.file_service import FileService
from server.services.shared_service import SharedFileService
from server.services.subscription_service import SubscriptionService

__all__ = [
    "AuthService",
    "DashboardService",
    "FileService",
    "SharedFileService",
    "SubscriptionService",
]
