"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter

router = APIRouter()

# Set by main.py during lifespan
_dispatcher = None


def set_dispatcher(dispatcher):
    global _dispatcher
    _dispatcher = dispatcher


@router.get("/health")
async def health_check():
    """Service health, queue depth and live job counts."""
    if _dispatcher is None:
        return {"status": "starting", "dispatcher_ready": False}

    return {
        "status": "healthy",
        "dispatcher_ready": True,
        "queue_depth": _dispatcher.queue_depth,
        "jobs": _dispatcher.store.counts(),
        "python_version": sys.version,
        "platform": platform.platform(),
    }
