"""
Worknest - Attachment Storage
=============================

Upload directory bookkeeping for attachment files. Only metadata lives in
the database; this module resolves and removes the backing files.
"""

from pathlib import Path
from typing import Union

import structlog

from worknest.core.errors import ValidationError
from worknest.core.schemas import MAX_ATTACHMENT_SIZE

logger = structlog.get_logger(__name__)


class AttachmentStorage:
    """Files under one upload root."""

    def __init__(self, root: Union[str, Path], max_file_size: int = MAX_ATTACHMENT_SIZE) -> None:
        self.root = Path(root).resolve()
        self.max_file_size = max_file_size

    def resolve(self, storage_path: str) -> Path:
        """
        Absolute path for a stored file.

        Raises:
            ValidationError: the path escapes the upload root
        """
        path = (self.root / storage_path).resolve()
        if self.root not in path.parents:
            raise ValidationError("Attachment path must stay inside the upload directory")
        return path

    def accept(self, storage_path: str, file_size: int) -> Path:
        """Validate metadata for a file about to be recorded and return its path."""
        if file_size > self.max_file_size:
            raise ValidationError(
                f"Attachment exceeds the {self.max_file_size} byte limit"
            )
        return self.resolve(storage_path)

    def remove(self, storage_path: str) -> bool:
        """
        Delete a stored file. A missing file is not an error.

        Returns True when a file was removed. Removal happens after the
        metadata is gone, so an OS failure is logged rather than raised.
        """
        path = self.resolve(storage_path)
        try:
            existed = path.is_file()
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to remove attachment file", path=str(path), error=str(exc))
            return False
        return existed
