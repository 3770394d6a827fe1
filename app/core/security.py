from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select, delete

from app.config import settings
from app.models.user import BlacklistedToken


# Password hashing context
# - argon2 is the default for new hashes
# - bcrypt hashes are still verified
pwd_context = CryptContext(
    schemes=["argon2", "bcrypt"],
    default="argon2",
    deprecated=["bcrypt"],
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    passlib detects the algorithm from the hash format. A hash it cannot
    identify never verifies.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with the default scheme (argon2id)."""
    return pwd_context.hash(password)


def password_needs_rehash(hashed_password: str) -> bool:
    """True if the hash was made with a deprecated scheme (bcrypt)."""
    return pwd_context.needs_update(hashed_password)


def create_access_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (user ID)
        expires_delta: Optional custom expiration time
        additional_claims: Optional additional claims to include

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "iat": now,
        "jti": str(uuid.uuid4()),  # Unique token ID for blacklisting
        "type": "access"
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded token payload or None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify an access token.

    Returns:
        The payload (with ``sub`` and ``jti``) or None if invalid
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != "access" or not payload.get("sub"):
        return None

    return payload


async def blacklist_token(db, payload: dict[str, Any], user_id: uuid.UUID) -> bool:
    """
    Add a decoded token to the blacklist.

    Args:
        db: Database session
        payload: Decoded token payload
        user_id: User ID who owns the token

    Returns:
        True if the token was blacklisted, False if it has no jti
    """
    jti = payload.get("jti")
    if not jti:
        return False

    exp = payload.get("exp")
    if exp:
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    else:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    existing = await db.get(BlacklistedToken, jti)
    if existing is None:
        db.add(BlacklistedToken(jti=jti, user_id=user_id, expires_at=expires_at))
    return True


async def is_token_blacklisted(db, jti: Optional[str]) -> bool:
    """Check if a token id has been revoked."""
    if not jti:
        return False

    result = await db.execute(select(BlacklistedToken.jti).where(BlacklistedToken.jti == jti))
    return result.first() is not None


async def cleanup_expired_blacklist_entries(db) -> int:
    """
    Remove expired tokens from the blacklist.

    Called daily by the scheduler.

    Returns:
        Number of entries removed
    """
    stmt = delete(BlacklistedToken).where(
        BlacklistedToken.expires_at < datetime.now(timezone.utc)
    )
    result = await db.execute(stmt)
    await db.commit()

    return result.rowcount
