"""
Main API router configuration.
"""

from fastapi import APIRouter
from secrets_manager.api.endpoints import activity_logs, auth, projects, secrets, user_projects, users

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(secrets.router, prefix="/secrets", tags=["secrets"])
api_router.include_router(user_projects.router, prefix="/user-projects", tags=["memberships"])
api_router.include_router(activity_logs.router, prefix="/activity-logs", tags=["activity"])
