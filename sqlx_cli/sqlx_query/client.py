"""Thin httpx client for the sqlx-serve transfer endpoints."""

from __future__ import annotations

from pathlib import Path

import httpx

from sqlx_cli.shared.exceptions import TransferError
from sqlx_cli.shared.models import FileRecord

DEFAULT_TIMEOUT = 60.0


class TransferClient:
    """Upload, fetch and delete stored database files over HTTP."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> TransferClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def upload(self, path: Path) -> FileRecord:
        with path.open("rb") as handle:
            response = self._request(
                "POST",
                "/api/sqlite/upload",
                files={"file": (path.name, handle, "application/octet-stream")},
            )
        return FileRecord.from_dict(response.json()["file"])

    def create_sample(self) -> FileRecord:
        response = self._request("POST", "/api/sqlite/sample")
        return FileRecord.from_dict(response.json()["file"])

    def get_record(self, file_id: str) -> FileRecord:
        response = self._request("GET", f"/api/sqlite/{file_id}")
        return FileRecord.from_dict(response.json())

    def fetch_buffer(self, file_id: str) -> bytes:
        return self._request("GET", f"/api/sqlite/{file_id}/buffer").content

    def download(self, file_id: str) -> bytes:
        return self._request("GET", f"/api/sqlite/{file_id}/download").content

    def delete(self, file_id: str) -> None:
        self._request("DELETE", f"/api/sqlite/{file_id}")

    def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)  # type: ignore[arg-type]
        except httpx.HTTPError as exc:
            raise TransferError(f"Request to {url} failed: {exc}") from exc
        if response.is_error:
            raise TransferError(f"{method} {url} failed ({response.status_code}): {_detail(response)}")
        return response


def _detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        return str(payload.get("detail") or payload.get("message") or payload)
    return str(payload)
