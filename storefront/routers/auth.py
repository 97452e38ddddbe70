# storefront/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import create_access_token, require_auth, token_lifetime_seconds
from storefront.database import get_session
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.common import ApiResponse
from storefront.schemas.user import (
    AuthData,
    LoginRequest,
    RegisterRequest,
    UserCreateData,
    UserRead,
)
from storefront.services.user_service import UserService

router = APIRouter(tags=["Auth"])

repo = UserRepository()
service = UserService(repo)


def _auth_payload(user: User) -> AuthData:
    return AuthData(
        access_token=create_access_token(user.id, "user"),
        expires=token_lifetime_seconds(),
        user=UserRead.model_validate(user),
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
):
    """
    Create a customer account and sign it in.

    - 422 with data.email if the email is taken.
    """
    user = service.create(session, UserCreateData(**payload.model_dump(), roles="User"))
    return ApiResponse(message="Registered successfully", data=_auth_payload(user))


@router.post("/login", response_model=ApiResponse[AuthData])
def login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
):
    user = service.authenticate(session, payload.email, payload.password)
    return ApiResponse(message="Login successful", data=_auth_payload(user))


@router.post("/logout", response_model=ApiResponse[None])
def logout(current_user: User = Depends(require_auth)):
    """
    Tokens are stateless; the client drops its copy.
    Kept so clients have a single place to call on sign-out.
    """
    return ApiResponse(message="Logout successful")
