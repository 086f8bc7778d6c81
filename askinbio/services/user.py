"""User service for database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from askinbio.models.user import User
from askinbio.schemas.user import UserCreate, UserUpdate


async def get_user_by_id(session: AsyncSession, user_id: UUID) -> User | None:
    """Get a user by their ID."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Get a user by their email address."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    """Get a user by their public username."""
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def is_username_available(session: AsyncSession, username: str) -> bool:
    result = await session.execute(select(User.id).where(User.username == username))
    return result.scalar_one_or_none() is None


async def create_user(session: AsyncSession, user_data: UserCreate) -> User:
    """Create the local user row for a provider account."""
    user = User(
        id=user_data.id,
        email=user_data.email,
        username=user_data.username,
        full_name=user_data.full_name,
        avatar_url=user_data.avatar_url,
        bio=user_data.bio,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def update_user(
    session: AsyncSession,
    user: User,
    user_data: UserUpdate,
) -> User:
    """Update an existing user."""
    update_data = user_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(user, field, value)
    await session.flush()
    await session.refresh(user)
    return user


async def generate_unique_username(session: AsyncSession, base: str) -> str:
    """Derive an unused username from an email local part or display name."""
    cleaned = "".join(ch for ch in base if ch.isalnum() or ch == "_")[:16] or "user"
    if len(cleaned) < 3:
        cleaned = f"{cleaned}_user"[:16]
    candidate = cleaned
    suffix = 1
    while not await is_username_available(session, candidate):
        suffix += 1
        candidate = f"{cleaned}{suffix}"[:20]
    return candidate


async def get_or_create_user_from_oauth(
    session: AsyncSession,
    user_id: UUID,
    email: str,
    full_name: str | None = None,
    avatar_url: str | None = None,
) -> tuple[User, bool]:
    """Get existing user or create new one after an OAuth sign-in.

    Returns:
        Tuple of (user, created) where created is True if new user was created
    """
    user = await get_user_by_id(session, user_id)
    if user:
        return user, False

    username = await generate_unique_username(session, email.split("@")[0])
    user = await create_user(
        session,
        UserCreate(
            id=user_id,
            email=email,
            username=username,
            full_name=full_name,
            avatar_url=avatar_url,
        ),
    )
    return user, True
