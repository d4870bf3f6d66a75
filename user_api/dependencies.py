"""FastAPI dependencies resolving components from the application container."""

from fastapi import Request

from .container import Container
from .controller import UserController


def get_app_container(request: Request) -> Container:
    """Container attached to the running app in create_app()."""
    return request.app.state.container


def get_user_controller(request: Request) -> UserController:
    return get_app_container(request).user_controller
