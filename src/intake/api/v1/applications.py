"""
/api/v1/applications

POST is public (anyone may submit an application); every other route needs a
signed-in principal.
"""
from fastapi import APIRouter, Depends, Query, status

from intake.api.dependencies import get_application_service
from intake.config.settings import Settings, get_settings
from intake.core.result import render
from intake.schemas.application import ApplicationCreate, ApplicationUpdate
from intake.security.gate import get_current_principal
from intake.services.application_service import ApplicationService

router = APIRouter(prefix="/applications", tags=["applications"])

authenticated = [Depends(get_current_principal)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreate,
    service: ApplicationService = Depends(get_application_service),
):
    return render(await service.create_application(payload))


@router.get("", dependencies=authenticated)
async def list_applications(
    page: int = Query(1, description="1-based page number, values below 1 are treated as 1"),
    limit: int | None = Query(None, description="Page size, clamped to [1, MAX_PAGE_SIZE]"),
    search: str | None = Query(None, description="Case-insensitive match on name, email, national ID or registration type"),
    status_filter: str | None = Query(None, alias="status", description="PENDING, APPROVED, REJECTED or All"),
    service: ApplicationService = Depends(get_application_service),
    settings: Settings = Depends(get_settings),
):
    page_size = limit if limit is not None else settings.DEFAULT_PAGE_SIZE
    return render(await service.list_applications(page=page, page_size=page_size, search=search, status=status_filter))


@router.get("/{application_id}", dependencies=authenticated)
async def get_application(
    application_id: int,
    service: ApplicationService = Depends(get_application_service),
):
    return render(await service.find_one(application_id))


@router.patch("/{application_id}", dependencies=authenticated)
async def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    service: ApplicationService = Depends(get_application_service),
):
    return render(await service.update_application(application_id, payload))


@router.delete("/{application_id}", dependencies=authenticated)
async def delete_application(
    application_id: int,
    service: ApplicationService = Depends(get_application_service),
):
    return render(await service.delete(application_id))
