"""Object storage for candidate attachments (resumes).

The core only keeps the reference string an upload returns; the storage
lifecycle beyond "upload returns a reference, delete removes it" belongs to
the backend.
"""

import uuid
from pathlib import Path
from typing import Optional, Protocol
import structlog

from .config import settings

logger = structlog.get_logger(__name__)


class FileStorage(Protocol):
    """Contract of an attachment store."""

    def upload(self, owner_id: str, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        ...

    def delete(self, reference: str) -> bool:
        ...


class LocalFileStorage:
    """Stores attachments on the local filesystem, one directory per owner."""

    SUPPORTED_EXTENSIONS = (".pdf", ".doc", ".docx", ".png", ".jpg", ".jpeg")

    def __init__(self, base_storage_path: Optional[str] = None, public_base_url: Optional[str] = None):
        """
        Args:
            base_storage_path: Root directory for stored files
            public_base_url: Prefix for returned references; ``file://`` URIs when unset
        """
        self.base_storage_path = Path(base_storage_path or settings.storage_path).resolve()
        self.base_storage_path.mkdir(parents=True, exist_ok=True)
        self.public_base_url = (public_base_url or settings.public_base_url or "").rstrip("/") or None
        self.max_size_bytes = settings.max_attachment_size_mb * 1024 * 1024

        logger.info("File storage initialized", storage_path=str(self.base_storage_path))

    def upload(self, owner_id: str, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Store a file and return its reference.

        Raises:
            ValueError: If the file is empty, too large or of an unsupported type
        """
        extension = Path(filename).suffix.lower()
        if extension not in self.SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file format: {filename}")
        if not content:
            raise ValueError(f"Empty file: {filename}")
        if len(content) > self.max_size_bytes:
            raise ValueError(
                f"File {filename} exceeds {settings.max_attachment_size_mb} MB limit"
            )

        owner_dir = (self.base_storage_path / str(owner_id)).resolve()
        stored_filename = f"{uuid.uuid4()}{extension}"
        file_path = owner_dir / stored_filename

        # Prevent path traversal through the owner id
        if self.base_storage_path not in file_path.parents:
            raise ValueError("Invalid file path detected")

        owner_dir.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(content)

        logger.info(
            "Attachment stored",
            original_filename=filename,
            stored_path=str(file_path),
            size_bytes=len(content),
            content_type=content_type
        )
        return self._reference_for(file_path)

    def delete(self, reference: str) -> bool:
        """Remove a stored file. Unknown references are reported, not raised."""
        file_path = self._path_for(reference)
        if file_path is None or not file_path.exists():
            logger.warning("Attachment not found for deletion", reference=reference)
            return False

        file_path.unlink()
        logger.info("Attachment deleted", reference=reference)
        return True

    def _reference_for(self, file_path: Path) -> str:
        relative = file_path.relative_to(self.base_storage_path).as_posix()
        if self.public_base_url:
            return f"{self.public_base_url}/{relative}"
        return file_path.as_uri()

    def _path_for(self, reference: str) -> Optional[Path]:
        if self.public_base_url and reference.startswith(self.public_base_url + "/"):
            relative = reference[len(self.public_base_url) + 1:]
            candidate = (self.base_storage_path / relative).resolve()
        elif reference.startswith("file://"):
            candidate = Path(reference[len("file://"):]).resolve()
        else:
            return None

        if self.base_storage_path not in candidate.parents:
            return None
        return candidate
