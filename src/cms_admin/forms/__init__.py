"""Form state and file handles.

``RecordForm`` lives in ``cms_admin.forms.form``; import it from there or
from the top-level package.
"""

from cms_admin.forms.uploads import (
    FileUpload,
    ImagePreview,
    ImageSelection,
    check_image_selection,
    max_size_bytes,
)

__all__ = [
    "FileUpload",
    "ImagePreview",
    "ImageSelection",
    "check_image_selection",
    "max_size_bytes",
]
