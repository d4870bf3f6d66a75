"""HTTP adaptation for user operations.

Parses path ids and JSON bodies, calls UserService, and renders results
or domain errors as JSON responses. Malformed input is rejected here
before any service or database call.
"""

import re

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .errors import UserServiceError
from .schemas import ErrorCode, ErrorResponse, MessageResponse, UserCreate, UserOut, UserUpdate
from .services import UserService
from .logger import logger

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class InvalidPayload(Exception):
    """Request body could not be turned into the expected shape."""

    def __init__(self, body: ErrorResponse):
        self.body = body
        super().__init__(body.error)


def error_response(status_code: int, error: str, code: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code).model_dump(exclude_none=True),
    )


MAX_USER_ID = 2**63 - 1  # Widest integer primary key the stores accept

# Optional sign then ASCII digits; no underscores, whitespace or non-ASCII digits
USER_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_user_id(raw_id: str) -> int | None:
    """Parse a path id; None when it is not a base-10 integer in storable range."""
    if not USER_ID_PATTERN.fullmatch(raw_id):
        return None
    user_id = int(raw_id)
    if abs(user_id) > MAX_USER_ID:
        return None
    return user_id


async def read_json(request: Request):
    """Decode the request body as JSON. Raises InvalidPayload on malformed input."""
    try:
        return await request.json()
    except ValueError as e:  # JSONDecodeError and UnicodeDecodeError
        raise InvalidPayload(ErrorResponse(error="Invalid JSON")) from e


def _user_json(user: UserOut) -> dict:
    return user.model_dump(by_alias=True)


class UserController:
    """Request handlers for /api/users."""

    def __init__(self, service: UserService):
        self._service = service

    @staticmethod
    def _domain_error(exc: UserServiceError) -> JSONResponse:
        status_code = ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if status_code >= 500:
            logger.error(f"User operation failed: {exc.message} (code={exc.code})")
        return error_response(status_code, exc.message, exc.code)

    async def get_all(self) -> JSONResponse:
        users = await self._service.get_all_users()
        return JSONResponse(content=[_user_json(u) for u in users])

    async def get_by_id(self, raw_id: str) -> JSONResponse:
        user_id = parse_user_id(raw_id)
        if user_id is None:
            return error_response(status.HTTP_400_BAD_REQUEST, "Invalid user ID")
        try:
            user = await self._service.get_user_by_id(user_id)
        except UserServiceError as e:
            return self._domain_error(e)
        return JSONResponse(content=_user_json(user))

    async def create(self, request: Request) -> JSONResponse:
        try:
            body = await read_json(request)
        except InvalidPayload as e:
            return error_response(status.HTTP_400_BAD_REQUEST, e.body.error, e.body.code)

        if not isinstance(body, dict) or not body.get("name") or not body.get("email"):
            return error_response(status.HTTP_400_BAD_REQUEST, "Name and email are required")

        try:
            data = UserCreate.model_validate(body)
        except ValidationError as e:
            logger.debug(f"Create payload rejected: {e.errors()}")
            return error_response(
                status.HTTP_400_BAD_REQUEST, "Invalid request body", ErrorCode.VALIDATION_ERROR
            )

        try:
            user = await self._service.create_user(data.model_dump())
        except UserServiceError as e:
            return self._domain_error(e)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=_user_json(user))

    async def update(self, raw_id: str, request: Request) -> JSONResponse:
        user_id = parse_user_id(raw_id)
        if user_id is None:
            return error_response(status.HTTP_400_BAD_REQUEST, "Invalid user ID")

        try:
            body = await read_json(request)
        except InvalidPayload as e:
            return error_response(status.HTTP_400_BAD_REQUEST, e.body.error, e.body.code)

        try:
            if not isinstance(body, dict):
                raise ValueError("body must be a JSON object")
            patch = UserUpdate.model_validate(body)
        except ValueError as e:  # ValidationError included
            logger.debug(f"Update payload rejected: {e}")
            return error_response(
                status.HTTP_400_BAD_REQUEST, "Invalid request body", ErrorCode.VALIDATION_ERROR
            )

        try:
            user = await self._service.update_user(user_id, patch.changes())
        except UserServiceError as e:
            return self._domain_error(e)
        return JSONResponse(content=_user_json(user))

    async def delete(self, raw_id: str) -> JSONResponse:
        user_id = parse_user_id(raw_id)
        if user_id is None:
            return error_response(status.HTTP_400_BAD_REQUEST, "Invalid user ID")
        try:
            await self._service.delete_user(user_id)
        except UserServiceError as e:
            return self._domain_error(e)
        return JSONResponse(content=MessageResponse(message="User deleted successfully").model_dump())
