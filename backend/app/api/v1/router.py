from fastapi import APIRouter
from app.api.v1.endpoints import auth, issues, comments, health
from app.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
# issues before comments: POST /issues/{id}/comments belongs to the issue thread
api_router.include_router(issues.router)
api_router.include_router(comments.router)
api_router.include_router(admin_router)
