"""Optional upload of the closed audit log to Azure Blob Storage."""

from __future__ import annotations

import logging
import socket
from datetime import datetime
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

import httpx

log = logging.getLogger(__name__)

# Seconds allowed for a single upload request.
_UPLOAD_TIMEOUT = 60.0


class UploadError(Exception):
    """Raised when the log file cannot be uploaded."""


class LogUploader:
    """Uploads a log file to a blob container given by a SAS URL.

    Without a SAS URL the uploader is disabled and every call is a no-op.
    """

    def __init__(self, sas_url: str = "") -> None:
        self.sas_url = sas_url.strip()
        if self.enabled:
            log.info("Cloud log upload enabled")
        else:
            log.info("No SAS URL provided, cloud log upload disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.sas_url)

    @staticmethod
    def blob_name(base: str | Path, now: datetime | None = None) -> str:
        """Return ``<hostname>_<basename>_<timestamp>.log`` for *base*."""
        timestamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
        hostname = socket.gethostname() or "unknown"
        name = Path(base).name or "tempsweep"
        return f"{hostname}_{name}_{timestamp}.log"

    def blob_url(self, blob_name: str) -> str:
        """Insert *blob_name* into the container SAS URL, keeping its token."""
        parts = urlsplit(self.sas_url)
        path = parts.path.rstrip("/") + "/" + blob_name
        return urlunsplit((parts.scheme, parts.netloc, path, parts.query, ""))

    def upload(self, log_path: str | Path) -> str | None:
        """Upload *log_path* and return the blob name, or None when disabled.

        Raises:
            UploadError: If the file cannot be read or the request fails.
        """
        log_path = Path(log_path)
        if not self.enabled:
            log.warning("Cloud storage not enabled, log file saved locally: %s", log_path)
            return None

        try:
            content = log_path.read_bytes()
        except OSError as e:
            raise UploadError(f"Cannot read log file {log_path}: {e}") from e

        name = self.blob_name(log_path)
        try:
            response = httpx.put(
                self.blob_url(name),
                content=content,
                headers={"x-ms-blob-type": "BlockBlob", "Content-Type": "text/plain"},
                timeout=_UPLOAD_TIMEOUT,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UploadError(f"Upload rejected with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UploadError(f"Upload failed: {e}") from e

        log.info("Uploaded %s as blob %s", log_path, name)
        return name

    def test_connection(self) -> None:
        """Check that the container answers. No-op when disabled.

        Raises:
            UploadError: If the container cannot be reached.
        """
        if not self.enabled:
            log.info("Cloud storage connection test skipped (not enabled)")
            return
        parts = urlsplit(self.sas_url)
        query = "&".join(q for q in (parts.query, "restype=container") if q)
        url = urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))
        try:
            response = httpx.head(url, timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UploadError(f"Cannot reach blob container: {e}") from e
