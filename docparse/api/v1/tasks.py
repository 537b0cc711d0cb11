"""Parse task API — submit documents, poll status."""

import logging
import os
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from pydantic import BaseModel

from docparse.config import settings
from docparse.errors import UploadTooLarge
from docparse.jobs.models import JobRecord, JobStatus
from docparse.storage.uploads import upload_store

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND_MESSAGE = "not found or expired"

# Set by main.py during lifespan
_dispatcher = None


def set_dispatcher(dispatcher):
    global _dispatcher
    _dispatcher = dispatcher


def get_dispatcher():
    if _dispatcher is None:
        raise HTTPException(status_code=503, detail="Job dispatcher not initialized")
    return _dispatcher


class UrlTaskRequest(BaseModel):
    url: str
    filename: Optional[str] = None


def task_created(task_id: str) -> Dict[str, Any]:
    return {
        "success": True,
        "taskId": task_id,
        "status": JobStatus.PENDING.value,
        "message": "Task created, poll the status endpoint with this taskId",
    }


def task_view(job: JobRecord) -> Dict[str, Any]:
    """Status payload for the browser. ``result`` and ``error`` are mutually exclusive."""
    view: Dict[str, Any] = {
        "taskId": job.id,
        "status": job.status.value,
        "message": job.message,
        "createdAt": job.created_at_ms,
    }
    if job.status == JobStatus.COMPLETED:
        view["result"] = job.result
    elif job.status == JobStatus.FAILED:
        view["error"] = job.error
    return view


async def create_upload_task(file: Optional[UploadFile]) -> Dict[str, Any]:
    """Validate and stage an upload, then submit it. Shared by the v1 and compat routes."""
    dispatcher = get_dispatcher()

    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in settings.allowed_extensions:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext or file.filename}'. "
                   f"Allowed: {', '.join(settings.allowed_extensions)}",
        )

    try:
        path = await upload_store.save_upload(file, settings.max_upload_bytes)
    except UploadTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc))
    except OSError as exc:
        logger.exception("Could not stage upload %s", file.filename)
        raise HTTPException(status_code=500, detail=f"Failed to save upload: {exc}")

    task_id = await dispatcher.submit({
        "file_path": path,
        "filename": file.filename,
        "content_type": file.content_type,
    })
    return task_created(task_id)


async def task_status(task_id: str) -> Dict[str, Any]:
    job = await get_dispatcher().get_status(task_id)
    if job is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return task_view(job)


@router.post("/tasks")
async def submit_task(file: Optional[UploadFile] = File(None)):
    """Upload a document and start parsing it in the background."""
    return await create_upload_task(file)


@router.post("/tasks/from-url")
async def submit_url_task(request: UrlTaskRequest):
    """Parse a document that is already stored somewhere reachable over HTTP."""
    dispatcher = get_dispatcher()
    if not request.url.strip():
        raise HTTPException(status_code=400, detail="url must not be empty")

    task_id = await dispatcher.submit({
        "url": request.url.strip(),
        "filename": request.filename,
    })
    return task_created(task_id)


@router.get("/tasks/{task_id}")
async def get_task(task_id: str):
    """Current status of a task; ``result`` once completed, ``error`` once failed."""
    return await task_status(task_id)
