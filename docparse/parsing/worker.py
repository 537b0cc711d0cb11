"""Worker function for parse jobs.

Called by the InProcessQueue in a thread executor. Stages the input (already
on disk for uploads, downloaded for URL submissions), sends it to the parse
service and turns the reply into the job result.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional
from urllib.parse import unquote, urlparse

import requests

from docparse.errors import UploadTooLarge
from docparse.jobs.models import JobRecord
from docparse.parsing.client import ParseServiceClient
from docparse.parsing.responses import classify_response, extract_content
from docparse.processing.chunking import split_text_into_chunks
from docparse.storage.uploads import UploadStore

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500
_DOWNLOAD_CHUNK = 1024 * 1024


def build_result(data: Any) -> Dict[str, Any]:
    """Turn a parse-service response into the stored job result."""
    shape = classify_response(data)
    markdown, paragraphs = extract_content(shape)
    chunks = split_text_into_chunks(markdown)
    return {
        "paragraphs": paragraphs,
        "markdown": markdown,
        "markdown_length": len(markdown),
        "preview": markdown[:PREVIEW_CHARS],
        "chunks": [chunk.to_dict() for chunk in chunks],
        "source_shape": shape.kind,
        "message": f"Parsed successfully, {len(paragraphs)} paragraphs",
    }


def resolve_url(url: str, upload_server_url: Optional[str]) -> str:
    """Expand ``/uploads/...`` paths served by the upload server into absolute URLs."""
    if url.startswith("/uploads/") and upload_server_url:
        return upload_server_url.rstrip("/") + url
    return url


def filename_from_url(url: str) -> str:
    name = os.path.basename(unquote(urlparse(url).path))
    return name or "download"


class ParseWorker:
    """Callable bound to an InProcessQueue: ``worker(job, report) -> result``."""

    def __init__(
        self,
        client: ParseServiceClient,
        uploads: UploadStore,
        max_download_bytes: int,
        download_timeout: float = 120,
        upload_server_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self._client = client
        self._uploads = uploads
        self._max_download_bytes = max_download_bytes
        self._download_timeout = download_timeout
        self._upload_server_url = upload_server_url
        self._session = session or requests.Session()

    def __call__(self, job: JobRecord, report: Callable[[str], Any]) -> Dict[str, Any]:
        payload = job.payload
        path = payload.get("file_path")
        filename = payload.get("filename")
        try:
            if not path:
                url = payload.get("url")
                if not url:
                    raise ValueError("Task has neither an uploaded file nor a source URL")
                url = resolve_url(url, self._upload_server_url)
                filename = filename or filename_from_url(url)
                report("Downloading file")
                path = self._download(url, filename)

            size_mb = os.path.getsize(path) / 1024 / 1024
            report(f"Parsing {size_mb:.2f} MB")
            logger.info("Task %s: sending %s (%.2f MB) to parse service", job.id, filename, size_mb)
            data = self._client.parse_file(path, filename, payload.get("content_type"))

            report("Building paragraphs")
            return build_result(data)
        finally:
            if path:
                self._uploads.discard(path)

    def release(self, job: JobRecord) -> None:
        """Drop the staged upload of a job the tracker gave up on."""
        path = job.payload.get("file_path")
        if path:
            self._uploads.discard(path)

    def _download(self, url: str, filename: str) -> str:
        with self._session.get(url, stream=True, timeout=self._download_timeout) as response:
            if not response.ok:
                raise RuntimeError(f"Download failed: {response.status_code} {response.reason}")
            declared = int(response.headers.get("content-length") or 0)
            if declared > self._max_download_bytes:
                raise UploadTooLarge(self._max_download_bytes)
            return self._uploads.write_stream(
                filename,
                response.iter_content(chunk_size=_DOWNLOAD_CHUNK),
                self._max_download_bytes,
            )
