"""Data access for users: maps ORM rows to UserOut and back."""

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import User
from .schemas import UserOut
from .logger import logger


class DuplicateEmailError(ValueError):
    """The store rejected a write because the email is already taken."""


class UserRepository:
    """Reads and writes the users table.

    Returns None/False for missing rows and never raises domain errors.
    Every call opens its own session, so nothing is cached between requests.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _to_entity(user: User) -> UserOut:
        """Convert ORM User model to UserOut schema."""
        return UserOut(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
        )

    async def find_all(self) -> list[UserOut]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).order_by(User.id))
            return [self._to_entity(u) for u in result.scalars().all()]

    async def find_by_id(self, user_id: int) -> UserOut | None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            return self._to_entity(user) if user else None

    async def find_by_email(self, email: str) -> UserOut | None:
        """Exact-match lookup, no case folding."""
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalars().first()
            return self._to_entity(user) if user else None

    async def create(self, data: dict) -> UserOut:
        """Insert a user. Raises DuplicateEmailError on a unique violation."""
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    user = User(name=data["name"], email=data["email"])
                    session.add(user)
                await session.refresh(user)  # Load id and created_at from the store
                return self._to_entity(user)
            except IntegrityError as e:
                logger.debug(f"Duplicate email rejected by store: {data['email']}")
                raise DuplicateEmailError("duplicate email") from e

    async def update(self, user_id: int, changes: dict) -> UserOut | None:
        """Apply only the given fields. Returns None if the row is gone."""
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    user = await session.get(User, user_id)
                    if user is None:
                        return None
                    for field, value in changes.items():
                        setattr(user, field, value)
                return self._to_entity(user)
            except IntegrityError as e:
                logger.debug(f"Duplicate email rejected by store: {changes.get('email')}")
                raise DuplicateEmailError("duplicate email") from e

    async def delete(self, user_id: int) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(delete(User).where(User.id == user_id))
            return result.rowcount > 0
