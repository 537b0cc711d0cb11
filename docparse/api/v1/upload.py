"""Browser-facing compatibility API.

Keeps the single path the document manager's front end already uses:
  POST /api/quarterly/pdf-task          — multipart upload, returns {taskId}
  GET  /api/quarterly/pdf-task?taskId=  — poll status

This is a thin layer over the /api/v1/tasks routes.
"""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile

from docparse.api.v1.tasks import create_upload_task, task_status

router = APIRouter()


@router.post("/api/quarterly/pdf-task")
async def create_pdf_task(file: Optional[UploadFile] = File(None)):
    return await create_upload_task(file)


@router.get("/api/quarterly/pdf-task")
async def get_pdf_task(taskId: Optional[str] = None):
    if not taskId:
        raise HTTPException(status_code=400, detail="Missing taskId parameter")
    return await task_status(taskId)
