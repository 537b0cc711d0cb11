"""Aggregate all v1 API routers."""

from fastapi import APIRouter

from docparse.api.v1.health import router as health_router
from docparse.api.v1.tasks import router as tasks_router
from docparse.api.v1.upload import router as upload_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(tasks_router, tags=["tasks"])

# Compatibility shim — mounts /api/quarterly/pdf-task at root
upload_router_compat = APIRouter()
upload_router_compat.include_router(upload_router, tags=["upload"])
