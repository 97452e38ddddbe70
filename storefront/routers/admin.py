# storefront/routers/admin.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import create_access_token, require_admin, token_lifetime_seconds
from storefront.core.errors import Forbidden
from storefront.database import get_session
from storefront.repositories.stats_repo import StatsRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.stats import AdminDashboardStats
from storefront.schemas.user import (
    AdminUserCreate,
    AuthData,
    LoginRequest,
    UserCreateData,
    UserRead,
    UserRoleUpdate,
    UserUpdate,
)
from storefront.services.stats_service import StatsService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["Admin"])

stats_service = StatsService(StatsRepository())
user_service = UserService(UserRepository())


# -------- Auth --------


@router.post("/login", response_model=ApiResponse[AuthData])
def admin_login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
):
    """
    Sign in to the admin panel.

    Issues an admin-namespace token; customer tokens are not accepted by
    admin endpoints and vice versa.
    """
    user = user_service.authenticate(session, payload.email, payload.password)
    if user.roles != "Admin":
        raise Forbidden("Admin access required")
    return ApiResponse(
        message="Admin login successful",
        data=AuthData(
            access_token=create_access_token(user.id, "admin"),
            expires=token_lifetime_seconds(),
            user=UserRead.model_validate(user),
        ),
    )


# -------- Dashboard --------


@router.get(
    "/dashboard",
    response_model=ApiResponse[AdminDashboardStats],
    dependencies=[Depends(require_admin)],
)
def get_admin_dashboard_stats(session: Session = Depends(get_session)):
    """
    Headline counts for the admin dashboard.

    Only accessible with an admin token.
    """
    return ApiResponse(
        message="Dashboard stats loaded",
        data=stats_service.get_admin_dashboard_stats(session),
    )


# -------- Users --------


@router.get(
    "/users",
    response_model=ApiResponse[list[UserRead]],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    List all users (admin only).

    Pagination via skip/limit.
    """
    users = user_service.list_users(session, skip, limit)
    return ApiResponse(
        message="Users loaded",
        data=[UserRead.model_validate(u) for u in users],
    )


@router.post(
    "/users",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_user(
    payload: AdminUserCreate,
    session: Session = Depends(get_session),
):
    user = user_service.create(session, UserCreateData(**payload.model_dump()))
    return ApiResponse(message="User created", data=UserRead.model_validate(user))


@router.get(
    "/users/{user_id}",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
):
    user = user_service.get_user(session, user_id)
    return ApiResponse(message="User loaded", data=UserRead.model_validate(user))


@router.put(
    "/users/{user_id}",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def update_user(
    user_id: int,
    payload: UserUpdate,
    session: Session = Depends(get_session),
):
    user = user_service.update_profile(session, user_service.get_user(session, user_id), payload)
    return ApiResponse(message="User updated", data=UserRead.model_validate(user))


@router.put(
    "/users/{user_id}/role",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def change_role(
    user_id: int,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
):
    """
    Update a user's role (admin only).

    Allowed roles: User, Admin. An admin demoted here loses access to admin
    endpoints on the next request, even with a live token.
    """
    user = user_service.update_role(session, user_id, payload.roles)
    return ApiResponse(message="Role updated", data=UserRead.model_validate(user))
