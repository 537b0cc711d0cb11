"""Staging area for uploaded documents with TTL-based cleanup."""

import os
import shutil
import tempfile
import time
import uuid
from typing import Iterable, Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from docparse.config import settings
from docparse.errors import UploadTooLarge

_CHUNK_BYTES = 1024 * 1024


class UploadStore:
    """Keeps each staged file in its own directory until parsed or expired."""

    def __init__(self, base_dir: Optional[str] = None, ttl_seconds: int = 3600):
        self._base_dir = os.path.abspath(
            base_dir or os.path.join(tempfile.gettempdir(), "docparse_uploads")
        )
        os.makedirs(self._base_dir, exist_ok=True)
        self._ttl_seconds = ttl_seconds

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def new_path(self, filename: str) -> str:
        """Reserve a fresh directory and return the path the file should be written to."""
        stage_dir = os.path.join(self._base_dir, uuid.uuid4().hex)
        os.makedirs(stage_dir, exist_ok=True)
        return os.path.join(stage_dir, os.path.basename(filename) or "upload")

    async def save_upload(self, file: UploadFile, max_bytes: int) -> str:
        """Stream an upload to disk in 1 MB chunks. Raises ``UploadTooLarge``."""
        path = self.new_path(file.filename or "upload")
        total = 0
        # blocking file I/O runs in the threadpool
        dst = await run_in_threadpool(open, path, "wb")
        try:
            while True:
                chunk = await file.read(_CHUNK_BYTES)
                if not chunk:
                    break
                total += len(chunk)
                if total > max_bytes:
                    break
                await run_in_threadpool(dst.write, chunk)
        finally:
            await run_in_threadpool(dst.close)
        if total > max_bytes:
            self.discard(path)
            raise UploadTooLarge(max_bytes)
        return path

    def write_stream(self, filename: str, chunks: Iterable[bytes], max_bytes: int) -> str:
        """Write an iterable of byte chunks (e.g. a streamed download) to a staged file."""
        path = self.new_path(filename)
        total = 0
        with open(path, "wb") as dst:
            for chunk in chunks:
                total += len(chunk)
                if total > max_bytes:
                    break
                dst.write(chunk)
        if total > max_bytes:
            self.discard(path)
            raise UploadTooLarge(max_bytes)
        return path

    def discard(self, path: str) -> None:
        """Remove a staged file together with its directory."""
        stage_dir = os.path.dirname(os.path.abspath(path))
        if os.path.dirname(stage_dir) == self._base_dir:
            shutil.rmtree(stage_dir, ignore_errors=True)

    def cleanup_expired(self) -> int:
        """Remove stage directories older than TTL. Returns count of removed dirs."""
        now = time.time()
        removed = 0
        if not os.path.exists(self._base_dir):
            return 0
        for entry in os.listdir(self._base_dir):
            stage_dir = os.path.join(self._base_dir, entry)
            try:
                if not os.path.isdir(stage_dir):
                    continue
                age = now - os.path.getmtime(stage_dir)
            except OSError:
                # removed by a worker between listdir and stat
                continue
            if age > self._ttl_seconds:
                shutil.rmtree(stage_dir, ignore_errors=True)
                removed += 1
        return removed


# Global instance
upload_store = UploadStore(base_dir=settings.upload_dir, ttl_seconds=settings.job_ttl_seconds)
