from fastapi import APIRouter

from ideaflow.api.routes import health, ideas, steps

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(ideas.router, prefix="/ideas", tags=["ideas"])
api_router.include_router(steps.router, prefix="/ideas", tags=["steps"])
