"""API V1 Router"""

from fastapi import APIRouter

from qpy_submission.api.v1.endpoints import backup, settings, submissions

api_router = APIRouter()

api_router.include_router(settings.router, prefix="/assignments", tags=["Assignment Settings"])
api_router.include_router(submissions.router, prefix="/assignments", tags=["Submissions"])
api_router.include_router(backup.router, tags=["Backup and Restore"])
