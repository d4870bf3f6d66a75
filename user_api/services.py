"""Business logic layer for user operations.

The only layer that enforces user invariants: a user must exist to be
read, updated or deleted, and an email belongs to at most one user.
Failures are raised as the domain errors in errors.py.
"""

from .errors import NotFoundError, ConflictError, InternalError
from .repository import UserRepository, DuplicateEmailError
from .schemas import UserOut
from .logger import logger


class UserService:
    """User operations on top of a UserRepository."""

    def __init__(self, repository: UserRepository):
        self._repository = repository

    async def get_all_users(self) -> list[UserOut]:
        users = await self._repository.find_all()
        logger.debug(f"Listed {len(users)} users")
        return users

    async def get_user_by_id(self, user_id: int) -> UserOut:
        """Retrieve a user by ID. Raises NotFoundError if absent."""
        logger.debug(f"Fetching user: id={user_id}")
        user = await self._repository.find_by_id(user_id)
        if user is None:
            logger.warning(f"User not found: id={user_id}")
            raise NotFoundError("User not found")
        return user

    async def create_user(self, data: dict) -> UserOut:
        """Create a user after checking the email is free."""
        email = data["email"]
        logger.info(f"Creating user: {email}")

        if await self._repository.find_by_email(email):
            logger.warning(f"Create rejected - email already exists: {email}")
            raise ConflictError("Email already exists")

        try:
            user = await self._repository.create(data)
        except DuplicateEmailError as e:
            # Lost a race with a concurrent insert of the same email
            logger.warning(f"Create rejected by store - email already exists: {email}")
            raise ConflictError("Email already exists") from e

        logger.info(f"User created successfully: id={user.id} email={user.email}")
        return user

    async def update_user(self, user_id: int, changes: dict) -> UserOut:
        """Apply a partial update.

        Raises:
            NotFoundError: no user with this id
            ConflictError: the new email belongs to a different user
            InternalError: the user vanished between the check and the write
        """
        logger.info(f"Updating user: id={user_id} fields={sorted(changes)}")

        user = await self._repository.find_by_id(user_id)
        if user is None:
            logger.warning(f"Cannot update - user not found: id={user_id}")
            raise NotFoundError("User not found")

        new_email = changes.get("email")
        if new_email is not None and new_email != user.email:
            existing = await self._repository.find_by_email(new_email)
            if existing and existing.id != user_id:
                logger.warning(
                    f"Update rejected - email already exists: {new_email} (owner id={existing.id})"
                )
                raise ConflictError("Email already exists")

        try:
            updated = await self._repository.update(user_id, changes)
        except DuplicateEmailError as e:
            logger.warning(f"Update rejected by store - email already exists: {new_email}")
            raise ConflictError("Email already exists") from e

        if updated is None:
            logger.error(f"User disappeared during update: id={user_id}")
            raise InternalError("Failed to update user")

        logger.info(f"User updated successfully: id={updated.id}")
        return updated

    async def delete_user(self, user_id: int) -> None:
        """Delete a user by ID. Raises NotFoundError if nothing was removed."""
        logger.info(f"Deleting user: id={user_id}")
        if not await self._repository.delete(user_id):
            logger.warning(f"Cannot delete - user not found: id={user_id}")
            raise NotFoundError("User not found")
        logger.info(f"User deleted successfully: id={user_id}")
