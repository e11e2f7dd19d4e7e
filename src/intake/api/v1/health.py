from fastapi import APIRouter

from intake.utils.logging import get_project_version

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "version": get_project_version()}
