"""Public-facing routes (APP_ROLE=public and worker)."""

from fastapi import APIRouter

from roomhold.api.routes import holds, rooms

router = APIRouter()
router.include_router(holds.router)
router.include_router(rooms.router)


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
