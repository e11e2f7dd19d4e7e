from fastapi import APIRouter

from . import applications, auth, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(applications.router)
api_router.include_router(users.router)
api_router.include_router(auth.router)

__all__ = ["api_router"]
