"""Working state of one create/edit form.

``RecordForm`` holds the values a user is editing for a single record,
the per-field errors from the last validation, and transient image
previews.  Validation failures never discard values: every field keeps
what the user typed, and errors are reported per field.

Usage:
    from cms_admin.forms.form import RecordForm

    form = RecordForm(plans.get("posts"), initial=store.selected)
    form.set_value("title", "Hello")
    form.select_image("cover", upload)
    result = form.submit()
    if result.valid:
        store.update(key, result.values)
"""

import copy
from typing import Any

from cms_admin.errors import PreconditionViolation
from cms_admin.forms.uploads import FileUpload, ImagePreview, ImageSelection, check_image_selection
from cms_admin.schema.models import ValidationResult
from cms_admin.schema.plan import FormPlan
from cms_admin.schema.widgets import WidgetKind


class RecordForm:
    """Editable values for one record, bound to a table's ``FormPlan``.

    Args:
        plan: Compiled plan of the table being edited.
        initial: Starting values (edit mode).  ``None`` for create mode.
    """

    def __init__(self, plan: FormPlan, initial: dict[str, Any] | None = None) -> None:
        self.plan = plan
        self._values: dict[str, Any] = {}
        self._errors: dict[str, str] = {}
        self._previews: dict[str, ImagePreview] = {}
        self.reset(initial)

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    @property
    def errors(self) -> dict[str, str]:
        return dict(self._errors)

    @property
    def previews(self) -> dict[str, ImagePreview]:
        """Image previews; transient, never part of submitted values."""
        return dict(self._previews)

    @property
    def is_edit(self) -> bool:
        return self._initial is not None

    def reset(self, initial: dict[str, Any] | None = None) -> None:
        """Replace all values with *initial* (or empty), clearing errors."""
        self._initial = copy.deepcopy(initial) if initial is not None else None
        self._values = copy.deepcopy(initial) if initial is not None else {}
        self._errors = {}
        self._previews = {}

    def get_value(self, name: str) -> Any:
        return self._values.get(name)

    def set_value(self, name: str, value: Any) -> bool:
        """Set a field value.

        Returns ``False`` (and changes nothing) for read-only or hidden
        fields, which the user cannot edit.
        """
        widget = self.plan.widgets.get(name)
        if widget is None or widget.readonly:
            return False
        self._values[name] = value
        self._errors.pop(name, None)
        return True

    def select_image(self, name: str, upload: FileUpload) -> ImageSelection:
        """Apply a file picked on an image widget.

        A rejected selection leaves the field's previous value in place
        and records the diagnostic as the field error.
        """
        widget = self.plan.widget(name)
        if widget.kind is not WidgetKind.IMAGE_UPLOAD:
            raise ValueError(f"Field '{name}' is not an image field")
        if widget.readonly:
            return ImageSelection(accepted=False, error="Field is read-only")

        selection = check_image_selection(self.plan.declaration(name), upload)
        if not selection.accepted:
            self._errors[name] = selection.error or "Invalid file"
            return selection

        self._values[name] = selection.value
        self._previews[name] = selection.preview
        self._errors.pop(name, None)
        return selection

    def clear_image(self, name: str) -> None:
        """Remove the selected image and its preview."""
        self._values[name] = None
        self._previews.pop(name, None)

    def validate(self) -> ValidationResult:
        """Validate current values; store per-field errors."""
        result = self.plan.schema.validate(self._values)
        self._errors = dict(result.errors)
        return result

    def submit(self) -> ValidationResult:
        """Validate and, on success, return coerced values ready for the store.

        On failure the form keeps every value the user entered; only
        ``errors`` changes.

        Raises:
            PreconditionViolation: If the table does not permit writes.
        """
        if not self.plan.writable:
            raise PreconditionViolation(f"Table '{self.plan.table_id}' is read-only")
        return self.validate()
