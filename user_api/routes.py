# API route definitions (HTTP layer)
# Defines ENDPOINTS; request handling lives in UserController

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse, Response
from .config import settings
from .container import Container
from .controller import UserController
from .dependencies import get_app_container, get_user_controller
from . import db

router = APIRouter()


@router.get("/")
def root():
    return {
        "message": f"{settings.APP_NAME} - FastAPI + SQLAlchemy",
        "status": "running",
        "app": settings.APP_NAME,
        "env": settings.APP_ENV,
    }


@router.get("/health")
async def health_check(container: Container = Depends(get_app_container)):
    """Health check endpoint for load balancers and monitoring.

    Returns:
        - 200 OK if the service and database are healthy
        - 503 Service Unavailable if the database is unreachable
    """
    health_status = {
        "status": "healthy",
        "service": settings.APP_NAME,
        "environment": settings.APP_ENV,
        "database": "connected",
    }

    if not await db.check_db_connection(container.session_factory):
        health_status["status"] = "unhealthy"
        health_status["database"] = "disconnected"
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@router.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


# ============================================================================
# User Endpoints
# ============================================================================

users_router = APIRouter(prefix="/api/users", tags=["users"])


@users_router.get("")
async def list_users(controller: UserController = Depends(get_user_controller)):
    return await controller.get_all()


@users_router.get("/{user_id}")
async def get_user(user_id: str, controller: UserController = Depends(get_user_controller)):
    return await controller.get_by_id(user_id)


@users_router.post("")
async def create_user(request: Request, controller: UserController = Depends(get_user_controller)):
    return await controller.create(request)


@users_router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: Request,
    controller: UserController = Depends(get_user_controller),
):
    return await controller.update(user_id, request)


@users_router.delete("/{user_id}")
async def delete_user(user_id: str, controller: UserController = Depends(get_user_controller)):
    return await controller.delete(user_id)


router.include_router(users_router)
