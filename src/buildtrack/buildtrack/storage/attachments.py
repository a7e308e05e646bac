from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from werkzeug.utils import secure_filename

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)

MAX_FILES_PER_REQUEST = 10

# Every stored key starts with "<area>/<project_id>/".
PROJECT_AREAS = frozenset({"updates", "documents"})


def project_folder(area: str, project_id: int) -> str:
    if area not in PROJECT_AREAS:
        raise ValueError(f"unknown attachment area: {area}")
    return f"{area}/{int(project_id)}"


def project_id_from_key(key: str) -> Optional[int]:
    """Project a stored key belongs to, or None for keys outside the project areas."""

    parts = (key or "").split("/")
    if len(parts) < 3 or parts[0] not in PROJECT_AREAS or not parts[1].isdigit():
        return None
    return int(parts[1])


@dataclass(frozen=True)
class UploadedFile:
    """Raw bytes of one uploaded file plus what the client said about it."""

    file_name: str
    mime_type: Optional[str]
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StoredFile:
    """Storage descriptor: the core keeps this, never the bytes."""

    key: str
    url: str
    file_name: str
    file_size: int
    mime_type: Optional[str]


class AttachmentStorage(Protocol):
    def save(self, upload: UploadedFile, *, folder: str, file_name: Optional[str] = None) -> StoredFile:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def key_from_url(self, url: str) -> Optional[str]:
        """Storage key behind ``url``, or None when this storage does not own it."""

        raise NotImplementedError


class LocalAttachmentStorage(AttachmentStorage):
    """Writes files under ``root/<folder>/<timestamp>_<safe name>``.

    Files are served back from ``url_prefix/<key>``.
    """

    def __init__(
        self,
        root: Union[str, os.PathLike],
        *,
        url_prefix: str = "/uploads",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._root = Path(root)
        self._url_prefix = url_prefix.rstrip("/")
        self._clock = clock

    @property
    def root(self) -> Path:
        return self._root

    def save(self, upload: UploadedFile, *, folder: str, file_name: Optional[str] = None) -> StoredFile:
        if upload.mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(f"Unsupported file type: {upload.mime_type}")

        display_name = (file_name or upload.file_name or "uploaded-file").strip()
        safe_name = secure_filename(display_name) or "uploaded-file"
        timestamp = self._clock().strftime("%Y%m%d_%H%M%S_%f")
        key = f"{folder.strip('/')}/{timestamp}_{safe_name}"

        target = self._root / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(upload.data)
        logger.info("stored attachment %s (%d bytes)", key, upload.size)

        return StoredFile(
            key=key,
            url=f"{self._url_prefix}/{key}",
            file_name=display_name,
            file_size=upload.size,
            mime_type=upload.mime_type,
        )

    def delete(self, key: str) -> bool:
        target = (self._root / key).resolve()
        if self._root.resolve() not in target.parents:
            raise ValidationError("Invalid attachment key")
        if not target.exists():
            return False
        target.unlink()
        logger.info("deleted attachment %s", key)
        return True

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = self._url_prefix + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]
