"""Composition root: builds the engine -> repository -> service -> controller graph."""

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .controller import UserController
from .db import create_engine_from_settings, make_session_factory
from .repository import UserRepository
from .services import UserService


@dataclass(frozen=True)
class Container:
    """Fully wired application components."""
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    user_repository: UserRepository
    user_service: UserService
    user_controller: UserController


def build_container(engine: AsyncEngine) -> Container:
    """Construct every component in dependency order around engine."""
    session_factory = make_session_factory(engine)
    user_repository = UserRepository(session_factory)
    user_service = UserService(user_repository)
    user_controller = UserController(user_service)
    return Container(
        engine=engine,
        session_factory=session_factory,
        user_repository=user_repository,
        user_service=user_service,
        user_controller=user_controller,
    )


@lru_cache(maxsize=None)
def get_container() -> Container:
    """Process-wide container, built on first call from settings."""
    return build_container(create_engine_from_settings())
