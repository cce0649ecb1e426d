"""
SmartMatch API Dependencies

Dependency injection for DB sessions, auth, and the SmartMatch services.
"""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from db.session import AsyncSessionLocal
from smartmatch.config_store import ConfigStore
from smartmatch.profile_cache import ProfileCache
from smartmatch.repository import SmartMatchRepository

settings = get_settings()
security = HTTPBearer(auto_error=not settings.debug)

# Dev business_id must match the local seed data
DEV_BUSINESS_ID = "dev-business-0001"

ADMIN_ROLES = {"admin"}
VENDOR_ROLES = {"owner", "staff"}


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Decode JWT and return user payload. Bypassed in debug mode."""
    if settings.debug:
        return {
            "sub": "dev-user",
            "email": "dev@smartmatch.local",
            "role": "admin",
            "business_id": DEV_BUSINESS_ID,
        }

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    from core.security import decode_access_token

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return payload


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


async def require_vendor(user: dict = Depends(get_current_user)) -> dict:
    """Owner or staff of a vendor; the vendor comes from the `business_id` claim."""
    if user.get("role") not in VENDOR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vendor access required",
        )
    if not user.get("business_id"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No business context",
        )
    return user


@lru_cache
def get_config_store() -> ConfigStore:
    """Process-wide config store; its cache is the only state shared across requests."""
    return ConfigStore(AsyncSessionLocal)


def get_repository(db: AsyncSession = Depends(get_db)) -> SmartMatchRepository:
    return SmartMatchRepository(db)


def get_profile_cache(
    repository: SmartMatchRepository = Depends(get_repository),
    config_store: ConfigStore = Depends(get_config_store),
) -> ProfileCache:
    return ProfileCache(
        repository,
        config_store,
        order_lookback_days=settings.smartmatch_order_lookback_days,
        order_limit=settings.smartmatch_order_limit,
        dispute_limit=settings.smartmatch_dispute_limit,
        product_limit=settings.smartmatch_product_limit,
    )
