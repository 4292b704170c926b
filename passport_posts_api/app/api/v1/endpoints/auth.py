"""
Authentication endpoints for API v1.

Registration, the one‑time admin bootstrap, login and logout.  The
creation and login responses carry the user together with a bearer
token to send as ``Authorization: Bearer <token>``.
"""

from fastapi import APIRouter, Depends, status

from passport_posts_api.app.core.errors import Unauthenticated, ValidationError
from passport_posts_api.app.core.security import create_access_token, get_current_user
from passport_posts_api.app.schemas.base import DataResponse, MessageDataResponse
from passport_posts_api.app.schemas.user import UserCreate, UserLogin, UserRead, UserWithToken
from passport_posts_api.app.services.user_service import UserService


router = APIRouter()


def _with_token(user: UserRead) -> UserWithToken:
    token = create_access_token({"sub": str(user.id)})
    return UserWithToken(**user.model_dump(), token=token)


@router.post("/create-admin", response_model=DataResponse[UserWithToken], status_code=status.HTTP_201_CREATED)
async def create_admin(user: UserCreate) -> DataResponse[UserWithToken]:
    """Create the single administrator account.

    Fails with 400 once an admin exists.
    """
    admin = await UserService.create_admin(user)
    return DataResponse(data=_with_token(admin))


@router.post("/register", response_model=DataResponse[UserWithToken], status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate) -> DataResponse[UserWithToken]:
    """Register a regular user."""
    created = await UserService.create_user(user)
    return DataResponse(data=_with_token(created))


@router.post("/login", response_model=DataResponse[UserWithToken])
async def login(credentials: UserLogin) -> DataResponse[UserWithToken]:
    """Authenticate with e‑mail and password and return a token."""
    if not credentials.email or not credentials.password:
        raise ValidationError("Please provide an email and password")
    user = await UserService.authenticate(credentials.email, credentials.password)
    if not user:
        raise Unauthenticated("Invalid credentials")
    return DataResponse(data=_with_token(user))


@router.get("/me", response_model=DataResponse[UserRead])
async def read_me(current_user: dict = Depends(get_current_user)) -> DataResponse[UserRead]:
    return DataResponse(data=await UserService.get_user(current_user["user_id"]))


@router.post("/logout", response_model=MessageDataResponse[UserRead])
async def logout(current_user: dict = Depends(get_current_user)) -> MessageDataResponse[UserRead]:
    """Record the logout time.

    Tokens are stateless, so the token itself stays valid until it
    expires; clients are expected to discard it.
    """
    user = await UserService.record_logout(current_user["user_id"])
    return MessageDataResponse(message="Logged out successfully", data=user)
