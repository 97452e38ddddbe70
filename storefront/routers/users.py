# storefront/routers/users.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import require_auth
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.user import ChangePasswordRequest, UserRead, UserUpdate
from storefront.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ApiResponse[UserRead])
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires a customer access token.
    """
    return ApiResponse(message="Profile loaded", data=UserRead.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserRead])
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Email and role are not editable here.
    """
    user = service.update_profile(session, current_user, payload)
    return ApiResponse(message="Profile updated", data=UserRead.model_validate(user))


@router.put("/change-password", response_model=ApiResponse[None])
def change_password(
    payload: ChangePasswordRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Change own password; the current password must be supplied.
    """
    service.change_own_password(session, current_user, payload.password, payload.new_password)
    return ApiResponse(message="Password changed")
