import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from core.config import settings
from core.database import database
from db.models import users

logger = logging.getLogger(__name__)

# Tokens are issued by the auth service; this API only validates them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token")

def uuid_to_string(uuid_obj) -> str:
    """Convert UUID to standardized lowercase string format for consistent comparisons."""
    return str(uuid_obj).lower()

def create_access_token(data: dict, expires_minutes: int = 60) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    now_utc = datetime.now(timezone.utc)
    to_encode.update({
        "exp": (now_utc + timedelta(minutes=expires_minutes)).timestamp(),
        "iat": now_utc.timestamp(),
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_user_id(token: str) -> Optional[str]:
    """Return the token subject as a normalized UUID string, or None if the token is invalid."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"🔐❌ JWT validation failed: {type(e).__name__}: {e}")
        return None

    user_id = payload.get("sub")
    if user_id is None:
        logger.warning("🔐❌ No 'sub' field in token payload")
        return None
    try:
        return uuid_to_string(uuid.UUID(str(user_id)))
    except ValueError:
        logger.warning(f"🔐❌ Invalid UUID format for user_id '{user_id}'")
        return None

async def get_current_user(token: str = Depends(oauth2_scheme)):
    """Get the current authenticated user as {'id', 'family_id', 'first_name'}."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_user_id(token)
    if user_id is None:
        raise credentials_exception

    try:
        user = await database.fetch_one(users.select().where(users.c.id == uuid.UUID(user_id)))
    except Exception as e:
        logger.error(f"🔐❌ Database error during user lookup: {e}")
        raise credentials_exception

    if user is None or user["family_id"] is None:
        logger.warning(f"🔐❌ User {user_id} not found or has no family")
        raise credentials_exception

    return {
        "id": uuid_to_string(user["id"]),
        "family_id": uuid_to_string(user["family_id"]),
        "first_name": user["first_name"],
    }
