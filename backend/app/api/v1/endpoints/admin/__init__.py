"""
Admin API endpoints for the Campus Connect dashboard.
All endpoints require the authority role.
"""
from fastapi import APIRouter, Depends

from app.api.v1.endpoints.admin import users, analytics
from app.modules.auth.dependencies import get_current_authority

admin_router = APIRouter(
    prefix="/admin",
    tags=["Admin Dashboard"],
    dependencies=[Depends(get_current_authority)],
)

# Include all admin sub-routers
admin_router.include_router(analytics.router, prefix="/analytics", tags=["Admin Analytics"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
