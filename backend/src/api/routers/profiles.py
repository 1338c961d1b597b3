"""Profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_identity, get_scoped_session, get_settings
from core.auth import IdentityClaims
from core.config import Settings
from models.profile import Profile
from schemas.profile import ProfileCreate, ProfileResponse
from services import profile_service


router = APIRouter(prefix="/api", tags=["profiles"])


@router.post("/init-profile", response_model=ProfileResponse)
async def init_profile(
    data: ProfileCreate,
    identity: IdentityClaims = Depends(get_current_identity),
    db: AsyncSession = Depends(get_scoped_session),
    settings: Settings = Depends(get_settings),
) -> Profile:
    """
    Create the caller's profile after signup.

    The profile id and email come from the verified token. Omitting `avatar`
    stores the configured placeholder image.
    """
    return await profile_service.create_profile(
        db, identity, data, default_avatar_url=settings.default_avatar_url,
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_my_profile(
    identity: IdentityClaims = Depends(get_current_identity),
    db: AsyncSession = Depends(get_scoped_session),
) -> Profile:
    """Get the current caller's profile."""
    return await profile_service.get_profile(db, identity.subject)
