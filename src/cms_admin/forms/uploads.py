"""File handles and the image widget's selection checks.

``FileUpload`` is the value a ``file`` field (or an image-uploader widget)
stores in a record.  ``check_image_selection`` reproduces what the image
widget does when the user picks a file: it checks the MIME subtype against
``validation.fileTypes`` and the size against ``validation.maxSize``
(megabytes) before committing anything.

Usage:
    from cms_admin.forms.uploads import FileUpload, check_image_selection

    upload = FileUpload(filename="cat.png", content_type="image/png", size=2048)
    selection = check_image_selection(field, upload)
    if selection.accepted:
        values[name] = selection.value
"""

import logging
import re
import uuid

from pydantic import BaseModel

from cms_admin.config.models import FieldDeclaration

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024
_LEADING_INT = re.compile(r"\s*(\d+)")


class FileUpload(BaseModel):
    """A file handle as submitted by a form control."""

    filename: str
    content_type: str = "application/octet-stream"
    size: int = 0
    content: bytes | None = None

    @property
    def subtype(self) -> str:
        """MIME subtype, e.g. ``"png"`` for ``image/png``."""
        _, _, subtype = self.content_type.partition("/")
        return subtype


class ImagePreview(BaseModel):
    """Transient preview reference for a selected image.

    Lives only in form state; never written into a record.
    """

    ref: str
    filename: str


class ImageSelection(BaseModel):
    """Outcome of a file selection on an image widget."""

    accepted: bool
    value: FileUpload | None = None
    preview: ImagePreview | None = None
    error: str | None = None


def max_size_bytes(max_size: str | None) -> int | None:
    """Convert a ``maxSize`` setting in megabytes to bytes.

    Only the leading integer counts, so ``"5"`` and ``"5MB"`` both give
    5 MiB.  Returns ``None`` when the setting is absent or has no leading
    integer (no size limit applies).

    Example:
        >>> max_size_bytes("2MB")
        2097152
        >>> max_size_bytes(None) is None
        True
    """
    if not max_size:
        return None
    match = _LEADING_INT.match(max_size)
    if match is None:
        return None
    return int(match.group(1)) * _BYTES_PER_MB


def check_image_selection(field: FieldDeclaration, upload: FileUpload) -> ImageSelection:
    """Validate a picked file against the field's type and size limits.

    Args:
        field: Declaration of the image field.
        upload: The selected file.

    Returns:
        ``ImageSelection`` with ``accepted=False`` and a diagnostic when
        the file is rejected; otherwise the upload as value and a fresh
        preview reference.
    """
    validation = field.validation

    if validation and validation.file_types is not None:
        allowed = {t.lower() for t in validation.file_types}
        if upload.subtype.lower() not in allowed:
            error = (
                f"Invalid file type '{upload.subtype}'. "
                f"Allowed: {', '.join(validation.file_types) or 'none'}"
            )
            logger.warning("Rejected image %s: %s", upload.filename, error)
            return ImageSelection(accepted=False, error=error)

    limit = max_size_bytes(validation.max_size if validation else None)
    if limit is not None and upload.size > limit:
        error = f"File too large: {upload.size} bytes (max {limit // _BYTES_PER_MB} MB)"
        logger.warning("Rejected image %s: %s", upload.filename, error)
        return ImageSelection(accepted=False, error=error)

    preview = ImagePreview(ref=f"blob:{uuid.uuid4()}", filename=upload.filename)
    return ImageSelection(accepted=True, value=upload, preview=preview)
