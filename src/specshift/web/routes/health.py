"""Health check endpoint."""

from fastapi import APIRouter

import specshift

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": specshift.__version__}
