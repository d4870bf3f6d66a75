"""SQLAlchemy ORM models for database tables."""

from sqlalchemy import Column, Integer, String, text
from .db import Base
from .config import settings


class User(Base):
    """User model mapped to 'users' table."""

    __tablename__ = "users"
    # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    name = Column(String(settings.USER_NAME_MAX_LENGTH), nullable=False)
    email = Column(String(settings.USER_EMAIL_MAX_LENGTH), nullable=False, unique=True, index=True)
    created_at = Column(String(32), server_default=text("CURRENT_TIMESTAMP"), nullable=True)
