"""HTTP client for the external document-to-Markdown parse service."""

import logging
import os
import time
from typing import Any, Dict, Optional

import requests

from docparse.config import settings
from docparse.errors import ParseServiceError

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 200


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ParseServiceClient:
    """
    Client for the ``/file_parse`` endpoint.

    Sends one file per request with a fixed option set (Markdown only, no
    images or intermediate JSON) and returns the decoded JSON body.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        lang: Optional[str] = None,
        parse_method: Optional[str] = None,
        backend: Optional[str] = None,
        table_enable: Optional[bool] = None,
        formula_enable: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url or settings.parse_service_url
        self.timeout = timeout if timeout is not None else settings.parse_timeout_seconds
        self.lang = lang or settings.parse_lang
        self.parse_method = parse_method or settings.parse_method
        self.backend = backend or settings.parse_backend
        self.table_enable = settings.parse_table_enable if table_enable is None else table_enable
        self.formula_enable = settings.parse_formula_enable if formula_enable is None else formula_enable
        self._session = session or requests.Session()

    def form_fields(self) -> Dict[str, str]:
        """Processing options sent alongside every file."""
        return {
            "return_middle_json": "false",
            "return_model_output": "false",
            "return_md": "true",
            "return_images": "false",
            "return_content_list": "false",
            "start_page_id": "0",
            "end_page_id": "99999",
            "parse_method": self.parse_method,
            "lang_list": self.lang,
            "backend": self.backend,
            "table_enable": _flag(self.table_enable),
            "formula_enable": _flag(self.formula_enable),
            "response_format_zip": "false",
        }

    def parse_file(self, path: str, filename: Optional[str] = None,
                   content_type: Optional[str] = None) -> Any:
        """
        Upload ``path`` and return the service's JSON response.

        Raises:
            ParseServiceError: non-2xx status or a body that is not JSON
            requests.RequestException: transport failure or timeout
        """
        filename = filename or os.path.basename(path)
        started = time.monotonic()
        with open(path, "rb") as fh:
            response = self._session.post(
                self.url,
                headers={"accept": "application/json"},
                data=self.form_fields(),
                files={"files": (filename, fh, content_type or "application/octet-stream")},
                timeout=self.timeout,
            )
        logger.info(
            "Parse service answered %s for %s in %.0fms",
            response.status_code, filename, (time.monotonic() - started) * 1000,
        )

        if not response.ok:
            raise ParseServiceError(
                f"Parse failed: {response.status_code} {response.text[:_ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            raise ParseServiceError(
                f"Parse service returned non-JSON body: {response.text[:_ERROR_BODY_LIMIT]}",
                status_code=response.status_code,
            )
