from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness check. Returns 503 while the app is shutting down."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": "ideaflow-backend"},
        )
    queue = getattr(request.app.state, "task_queue", None)
    return {
        "status": "healthy",
        "service": "ideaflow-backend",
        "pending_drafts": queue.pending if queue is not None else 0,
    }
