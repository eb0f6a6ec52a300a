"""Payment evidence uploads to Azure Blob Storage."""

from __future__ import annotations

import contextlib
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from contribution_review.errors import UploadError

if TYPE_CHECKING:
    from contribution_review.config import StorageConfig

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp", "application/pdf"}
)
_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")
_BLOB_PREFIX = "payment-proofs"


@dataclass(frozen=True)
class EvidenceFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def file_too_large(max_bytes: int) -> UploadError:
    return UploadError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")


def validate_evidence(file: EvidenceFile, *, max_bytes: int) -> None:
    """Refuse files that are the wrong type, too large, empty or unsafely named."""
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadError(
            "Invalid file type. Only JPG, PNG, GIF, WebP and PDF files are allowed."
        )
    if file.size == 0:
        raise UploadError("The uploaded file is empty.")
    if file.size > max_bytes:
        raise file_too_large(max_bytes)
    name = file.filename
    if not name or ".." in name or "/" in name or "\\" in name:
        raise UploadError("Invalid file name.")


def blob_name_for(file: EvidenceFile, *, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%S")
    safe_name = _UNSAFE_NAME_RE.sub("_", file.filename).strip("._") or "evidence"
    return f"{_BLOB_PREFIX}/revision-{stamp}-{uuid.uuid4().hex[:8]}-{safe_name}"


class BlobEvidenceStorage:
    """Upload evidence files and hand back their blob URL."""

    def __init__(self, config: StorageConfig, *, max_bytes: int) -> None:
        self._config = config
        self._max_bytes = max_bytes
        self._service: BlobServiceClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._container: ContainerClient | None = None

    async def initialize(self) -> None:
        """Create the service client and make sure the container exists."""
        if self._config.connection_string:
            self._service = BlobServiceClient.from_connection_string(self._config.connection_string)
        else:
            self._credential = DefaultAzureCredential()
            self._service = BlobServiceClient(self._config.account_url, credential=self._credential)
        self._container = self._service.get_container_client(self._config.container)
        with contextlib.suppress(ResourceExistsError):
            await self._container.create_container()
        logger.info("Evidence storage ready: container=%s", self._config.container)

    async def close(self) -> None:
        if self._service:
            await self._service.close()
            self._service = None
            self._container = None
        if self._credential:
            await self._credential.close()
            self._credential = None

    @property
    def container(self) -> ContainerClient:
        if self._container is None:
            raise RuntimeError("BlobEvidenceStorage not initialized, call initialize() first")
        return self._container

    async def upload_evidence(self, file: EvidenceFile) -> str:
        validate_evidence(file, max_bytes=self._max_bytes)
        blob = self.container.get_blob_client(blob_name_for(file))
        try:
            await blob.upload_blob(
                file.data,
                overwrite=False,
                content_settings=ContentSettings(
                    content_type=file.content_type,
                    cache_control="max-age=3600",
                ),
            )
        except AzureError as exc:
            logger.warning("Evidence upload failed: blob=%s", blob.blob_name, exc_info=True)
            raise UploadError("Failed to upload payment proof. Please try again.", retryable=True) from exc
        logger.info("Evidence uploaded: blob=%s size=%d", blob.blob_name, file.size)
        return blob.url
