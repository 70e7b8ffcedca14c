from __future__ import annotations

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from cosmic_notes.config import settings
from cosmic_notes.core.prompts.strategies import SYNTHESIS_STRATEGIES
from cosmic_notes.db.base import get_supabase_admin_client

router = APIRouter()


@router.get("/")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "service": "cosmic-notes-api",
            "version": "0.1.0"
        }
    )


@router.get("/ready")
async def readiness_check():
    """Readiness check: database reachability and the loaded strategy table."""
    db_status = "connected"
    try:
        client = get_supabase_admin_client()
        await asyncio.to_thread(lambda: client.table("cosmic_tags").select("id").limit(1).execute())
    except Exception as e:
        db_status = f"error: {str(e)}"

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "database": db_status,
            "categories": sorted(c.value for c in SYNTHESIS_STRATEGIES),
            "cluster_min_notes": settings.cluster_min_notes,
            "api_prefix": settings.api_prefix
        }
    )
