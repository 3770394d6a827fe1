from datetime import datetime, timezone
from typing import Optional, Tuple
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.core.exceptions import AuthenticationError, PersistenceError, ValidationError
from app.core.security import (
    verify_password,
    get_password_hash,
    password_needs_rehash,
    create_access_token,
    blacklist_token,
    is_token_blacklisted,
    verify_access_token,
)
from app.config import settings
from app.schemas.auth import SignupRequest


logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for signup, login and token management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def signup(self, data: SignupRequest) -> User:
        """
        Register a new user.

        Raises:
            ValidationError: If the email is already registered
        """
        email = data.email.lower()
        if await self.get_user_by_email(email):
            raise ValidationError("email", "is already registered")

        user = User(
            email=email,
            password_hash=get_password_hash(data.password),
            name=data.name,
            phone=data.phone,
            company_name=data.company_name,
            company_address=data.company_address,
            company_gst_number=data.company_gst_number,
            company_pan_number=data.company_pan_number,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError("email", "is already registered")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Could not create user: {e}") from e

        await self.db.refresh(user)
        logger.info(f"User {user.id} signed up")
        return user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        A verified hash in a deprecated scheme is transparently upgraded.

        Returns:
            User object if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)
        if user is None:
            return None

        if not verify_password(password, user.password_hash):
            return None

        if not user.is_active:
            return None

        if password_needs_rehash(user.password_hash):
            user.password_hash = get_password_hash(password)

        return user

    async def login(self, email: str, password: str) -> Tuple[User, str, int]:
        """
        Authenticate and issue an access token.

        Returns:
            Tuple of (user, access_token, expires_in_seconds)

        Raises:
            AuthenticationError: On bad credentials
        """
        user = await self.authenticate_user(email, password)
        if user is None:
            logger.warning(f"Failed login for {email.lower()}")
            raise AuthenticationError("Invalid email or password")

        access_token = create_access_token(
            subject=user.id,
            additional_claims={"email": user.email},
        )
        expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

        user.last_login_at = datetime.now(timezone.utc)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Could not record login: {e}") from e

        return user, access_token, expires_in

    async def logout(self, token: str, user: User) -> None:
        """Revoke the given access token."""
        payload = verify_access_token(token)
        if payload is None:
            raise AuthenticationError("Invalid token")

        await blacklist_token(self.db, payload, user.id)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Could not revoke token: {e}") from e
        logger.info(f"User {user.id} logged out")

    async def resolve_token(self, token: str) -> User:
        """
        Resolve a bearer token to its active user.

        Raises:
            AuthenticationError: If the token is invalid, revoked, or its
                user no longer exists or is inactive
        """
        payload = verify_access_token(token)
        if payload is None:
            raise AuthenticationError("Could not validate credentials")

        if await is_token_blacklisted(self.db, payload.get("jti")):
            raise AuthenticationError("Token has been revoked")

        try:
            user_id = uuid.UUID(payload["sub"])
        except ValueError:
            logger.warning(f"Invalid user_id in token: {payload['sub']}")
            raise AuthenticationError("Could not validate credentials")

        user = await self.get_user(user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Could not validate credentials")
        return user
