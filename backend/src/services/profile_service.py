"""Service layer for profile creation and lookup."""
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import IdentityClaims
from models.profile import DEFAULT_PROFILE_PICTURE, Profile
from schemas.profile import ProfileCreate
from services.exceptions import FieldValidationError, NotFoundError, ProfileAlreadyExistsError

logger = logging.getLogger(__name__)


async def create_profile(
    db: AsyncSession,
    identity: IdentityClaims,
    data: ProfileCreate,
    default_avatar_url: str = DEFAULT_PROFILE_PICTURE,
) -> Profile:
    """
    Create the profile for the verified identity.

    The profile id is always the token's subject and the email comes from the
    verified claims, never from the request body.

    Args:
        db: Identity-scoped database session.
        identity: Verified claims of the caller.
        data: Username and optional avatar URL.
        default_avatar_url: Stored when no avatar is supplied.

    Raises:
        FieldValidationError: If the username is missing or blank, or the token has no email.
        ProfileAlreadyExistsError: If a profile already exists for the subject.
    """
    username = (data.username or "").strip()
    if not username:
        raise FieldValidationError("username", "Username is required")
    if not identity.email:
        raise FieldValidationError("email", "Token does not carry an email claim")

    profile = Profile(
        id=identity.subject,
        email=identity.email,
        username=username,
        profile_picture=data.avatar or default_avatar_url,
    )
    db.add(profile)
    try:
        async with db.begin_nested():
            await db.flush()
    except IntegrityError:
        logger.info("Duplicate profile initialization for subject %s", identity.subject)
        raise ProfileAlreadyExistsError()

    await db.refresh(profile)
    return profile


async def get_profile(db: AsyncSession, subject: UUID) -> Profile:
    """Return the caller's profile or raise NotFoundError."""
    result = await db.execute(select(Profile).where(Profile.id == subject))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Profile")
    return profile
