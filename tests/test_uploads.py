"""Tests for image selection checks."""

import logging

from cms_admin.config.models import FieldDeclaration
from cms_admin.forms.uploads import FileUpload, check_image_selection, max_size_bytes


def _image_field(**validation) -> FieldDeclaration:
    return FieldDeclaration.model_validate({
        "type": "file",
        "label": "Avatar",
        "ui": {"template": "image-uploader"},
        "validation": validation,
    })


def _png(size: int = 1024) -> FileUpload:
    return FileUpload(filename="cat.png", content_type="image/png", size=size)


class TestMaxSizeBytes:
    """max_size_bytes() conversions."""

    def test_plain_number(self):
        assert max_size_bytes("5") == 5 * 1024 * 1024

    def test_with_unit_suffix(self):
        """Only the leading integer counts."""
        assert max_size_bytes("2MB") == 2 * 1024 * 1024

    def test_absent(self):
        assert max_size_bytes(None) is None
        assert max_size_bytes("") is None

    def test_no_leading_integer(self):
        """Text without a leading number means no limit."""
        assert max_size_bytes("large") is None


class TestCheckImageSelection:
    """check_image_selection() accepts or rejects a picked file."""

    def test_accepted_without_limits(self):
        """No validation -> any file is accepted with a preview."""
        selection = check_image_selection(_image_field(), _png())
        assert selection.accepted
        assert selection.value.filename == "cat.png"
        assert selection.preview.ref.startswith("blob:")
        assert selection.error is None

    def test_previews_are_unique(self):
        """Each selection gets its own preview reference."""
        field = _image_field()
        first = check_image_selection(field, _png())
        second = check_image_selection(field, _png())
        assert first.preview.ref != second.preview.ref

    def test_rejects_wrong_subtype(self, caplog):
        """A subtype outside fileTypes is rejected and logged."""
        field = _image_field(fileTypes=["jpeg", "webp"])
        with caplog.at_level(logging.WARNING):
            selection = check_image_selection(field, _png())
        assert not selection.accepted
        assert selection.value is None
        assert selection.error == "Invalid file type 'png'. Allowed: jpeg, webp"
        assert "cat.png" in caplog.text

    def test_subtype_case_insensitive(self):
        """fileTypes comparison ignores case."""
        field = _image_field(fileTypes=["PNG"])
        assert check_image_selection(field, _png()).accepted

    def test_empty_file_types_rejects_everything(self):
        """An empty fileTypes list allows no file at all."""
        selection = check_image_selection(_image_field(fileTypes=[]), _png())
        assert not selection.accepted
        assert selection.error == "Invalid file type 'png'. Allowed: none"

    def test_rejects_too_large(self):
        """A file above maxSize megabytes is rejected."""
        field = _image_field(maxSize="1")
        selection = check_image_selection(field, _png(size=1024 * 1024 + 1))
        assert not selection.accepted
        assert selection.error == "File too large: 1048577 bytes (max 1 MB)"

    def test_exact_limit_accepted(self):
        """A file of exactly maxSize is accepted."""
        field = _image_field(maxSize="1")
        assert check_image_selection(field, _png(size=1024 * 1024)).accepted

    def test_type_checked_before_size(self):
        """Wrong type is reported even if the file is also too large."""
        field = _image_field(fileTypes=["jpeg"], maxSize="1")
        selection = check_image_selection(field, _png(size=10 * 1024 * 1024))
        assert selection.error.startswith("Invalid file type")
