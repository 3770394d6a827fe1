from fastapi import APIRouter, status

from app.api.deps import DB, CurrentUser, BearerToken
from app.config import settings
from app.core.security import create_access_token
from app.schemas.auth import (
    SignupRequest,
    LoginRequest,
    TokenResponse,
    UserResponse,
)
from app.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    db: DB,
):
    """
    Register a new user and return an access token.
    """
    user = await AuthService(db).signup(data)

    return TokenResponse(
        access_token=create_access_token(subject=user.id, additional_claims={"email": user.email}),
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: DB,
):
    """
    Authenticate user and return an access token.
    """
    user, access_token, expires_in = await AuthService(db).login(data.email, data.password)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(
    token: BearerToken,
    current_user: CurrentUser,
    db: DB,
):
    """
    Logout current user and invalidate the current token.

    Blacklists the current access token so it cannot be reused.
    """
    await AuthService(db).logout(token, current_user)

    return {"message": "Successfully logged out. Token has been invalidated."}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: CurrentUser,
):
    """
    Get current authenticated user's information.
    """
    return UserResponse.model_validate(current_user)
