"""
/api/v1/users

Create and update take multipart forms so an avatar image can ride along.

Access:
    POST            open (self-registration); only an ADMIN may create another ADMIN
    GET (list)      ADMIN
    GET/PATCH /{id} signed in; non-admins only their own record, never their role or isActive
    DELETE /{id}    ADMIN
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError

from intake.api.dependencies import get_user_service
from intake.api.v1.error_handlers import validation_failure_from
from intake.config.settings import Settings, get_settings
from intake.core.result import Failure, render, validation_error
from intake.media.validation import AvatarFile
from intake.models.user import Role
from intake.schemas.user import UserCreate, UserUpdate
from intake.security.gate import Principal, get_current_principal, get_optional_principal, require_roles
from intake.services.user_service import UserService, role_problem

router = APIRouter(prefix="/users", tags=["users"])


async def _read_avatar(avatar: UploadFile | None) -> AvatarFile | None:
    # browsers send an empty part when no file is picked
    if avatar is None or not avatar.filename:
        return None
    content = await avatar.read()
    return AvatarFile(
        content=content,
        filename=avatar.filename,
        content_type=avatar.content_type or "application/octet-stream",
    )


def _forbidden() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def _role_failure(role: str | None) -> Failure | None:
    if role is None:
        return None
    problem = role_problem(role)
    return validation_error(problem["message"], [problem]) if problem else None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    email: str = Form(...),
    password: str = Form(...),
    first_name: str = Form(..., alias="firstName"),
    last_name: str = Form(..., alias="lastName"),
    phone: str | None = Form(None),
    role: str | None = Form(None),
    is_active: bool = Form(True, alias="isActive"),
    avatar: UploadFile | None = File(None),
    principal: Principal | None = Depends(get_optional_principal),
    service: UserService = Depends(get_user_service),
):
    fields = {
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
        "phone": phone,
        "is_active": is_active,
    }
    if role is not None:
        fields["role"] = role = role.upper()
    failure = _role_failure(role)
    if failure is not None:
        return render(failure)

    try:
        payload = UserCreate.model_validate(fields)
    except ValidationError as e:
        return render(validation_failure_from(e))

    if payload.role == Role.ADMIN and (principal is None or principal.role != Role.ADMIN):
        raise _forbidden()

    return render(await service.create_user(payload, avatar=await _read_avatar(avatar)))


@router.get("", dependencies=[Depends(require_roles(Role.ADMIN))])
async def list_users(
    page: int = Query(1),
    limit: int | None = Query(None),
    search: str | None = Query(None, description="Case-insensitive match on email, name or phone"),
    role: str | None = Query(None, description="ADMIN, USER or All"),
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
):
    page_size = limit if limit is not None else settings.DEFAULT_PAGE_SIZE
    return render(await service.list_users(page=page, page_size=page_size, search=search, role=role))


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
):
    if principal.role != Role.ADMIN and principal.id != user_id:
        raise _forbidden()
    return render(await service.find_one(user_id))


@router.patch("/{user_id}")
async def update_user(
    user_id: int,
    email: str | None = Form(None),
    password: str | None = Form(None),
    first_name: str | None = Form(None, alias="firstName"),
    last_name: str | None = Form(None, alias="lastName"),
    phone: str | None = Form(None),
    role: str | None = Form(None),
    is_active: bool | None = Form(None, alias="isActive"),
    avatar: UploadFile | None = File(None),
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
):
    if principal.role != Role.ADMIN and (principal.id != user_id or role is not None or is_active is not None):
        raise _forbidden()

    if role is not None:
        role = role.upper()
    failure = _role_failure(role)
    if failure is not None:
        return render(failure)

    submitted = {
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
        "phone": phone,
        "role": role,
        "is_active": is_active,
    }
    # only the fields the client actually sent
    try:
        payload = UserUpdate.model_validate({k: v for k, v in submitted.items() if v is not None})
    except ValidationError as e:
        return render(validation_failure_from(e))

    return render(await service.update_user(user_id, payload, avatar=await _read_avatar(avatar)))


@router.delete("/{user_id}", dependencies=[Depends(require_roles(Role.ADMIN))])
async def delete_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
):
    return render(await service.delete(user_id))
