"""API routes package."""

from server.routes.auth_routes import router as auth_router
from server.routes.dashboard_routes import router as dashboard_router
from server.routes.file_routes import router as file_router
from server.routes.shared_routes import router as shared_router
from server.routes.subject_routes import router as subject_router

__all__ = ["auth_router", "dashboard_router", "file_router", "shared_router", "subject_router"]
