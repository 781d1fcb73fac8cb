"""Minimal JSON client for the finance tracker HTTP API."""

from __future__ import annotations

import json
import logging
import mimetypes
import urllib.error
import urllib.request
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3001/api"
_READ_ONLY_FIELDS = ("id", "isDeleted", "createdAt", "updatedAt")


class ApiError(Exception):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"API Error: {status} {message}")
        self.status = status
        self.message = message


class ApiClient:
    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        body: bytes | None = None,
        content_type: str = "application/json",
    ) -> Any:
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(
            f"{self.base_url}{path}",
            data=body,
            method=method,
            headers={"Content-Type": content_type, "Accept": "application/json"},
        )
        logger.debug("API ▶ %s %s", method, req.full_url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            try:
                detail = json.loads(detail).get("error", detail)
            except (json.JSONDecodeError, AttributeError):
                pass
            raise ApiError(exc.code, detail or exc.reason) from exc
        except urllib.error.URLError as exc:
            raise ApiError(0, str(exc.reason)) from exc
        logger.debug("API ◀ %d bytes", len(raw))
        return json.loads(raw) if raw else None

    # -- Transactions -------------------------------------------------

    def get_transactions(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        params = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        query = f"?{urlencode(params)}" if params else ""
        return self._request("GET", f"/transactions{query}")

    def get_transaction(self, transaction_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/transactions/{transaction_id}")

    def create_transaction(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/transactions", payload=data)

    def update_transaction(self, transaction_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        clean = {k: v for k, v in data.items() if k not in _READ_ONLY_FIELDS}
        return self._request("PATCH", f"/transactions/{transaction_id}", payload=clean)

    def delete_transaction(self, transaction_id: int) -> None:
        self._request("DELETE", f"/transactions/{transaction_id}")

    # -- Imports ------------------------------------------------------

    def import_transactions(self, csv_path: str | Path) -> Dict[str, Any]:
        path = Path(csv_path)
        boundary = uuid.uuid4().hex
        mime = mimetypes.guess_type(path.name)[0] or "text/csv"
        body = b"".join(
            [
                f"--{boundary}\r\n".encode(),
                f'Content-Disposition: form-data; name="file"; filename="{path.name}"\r\n'.encode(),
                f"Content-Type: {mime}\r\n\r\n".encode(),
                path.read_bytes(),
                f"\r\n--{boundary}--\r\n".encode(),
            ]
        )
        return self._request(
            "POST",
            "/imports/upload",
            body=body,
            content_type=f"multipart/form-data; boundary={boundary}",
        )
