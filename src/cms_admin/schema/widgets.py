"""Widget dispatch for field declarations.

``select_widget`` picks the widget from ``ui.template`` alone.  The
default widget then picks its native input control from the field
``type``, never from the template.
"""

from enum import Enum

from cms_admin.config.models import FieldDeclaration, FieldType


class WidgetKind(str, Enum):
    """Input control families a field can render as."""

    DEFAULT = "default"
    RICH_TEXT = "rich-text"
    IMAGE_UPLOAD = "image-upload"
    VIDEO_PREVIEW = "video-preview"


TEMPLATE_WIDGETS: dict[str, WidgetKind] = {
    "default": WidgetKind.DEFAULT,
    "input": WidgetKind.DEFAULT,
    "wysiwyg": WidgetKind.RICH_TEXT,
    "rich-text-editor": WidgetKind.RICH_TEXT,
    "image-uploader": WidgetKind.IMAGE_UPLOAD,
    "video-preview": WidgetKind.VIDEO_PREVIEW,
}

INPUT_TYPES: dict[FieldType, str] = {
    FieldType.NUMBER: "number",
    FieldType.FILE: "file",
    FieldType.TEXTAREA: "textarea",
    FieldType.CHECKBOX: "checkbox",
    FieldType.DATE: "date",
    FieldType.DATETIME: "datetime-local",
    FieldType.TIME: "time",
}


def select_widget(field: FieldDeclaration) -> WidgetKind:
    """Map ``ui.template`` to a widget kind; unknown or absent -> DEFAULT.

    Example:
        >>> select_widget(FieldDeclaration(type="text", label="Body",
        ...                                ui={"template": "wysiwyg"}))
        <WidgetKind.RICH_TEXT: 'rich-text'>
    """
    template = field.ui.template if field.ui else None
    if template is None:
        return WidgetKind.DEFAULT
    return TEMPLATE_WIDGETS.get(template, WidgetKind.DEFAULT)


def input_type(field: FieldDeclaration) -> str:
    """Native input control used by the DEFAULT widget for this field."""
    field_type = field.field_type
    if field_type is FieldType.ENUM and field.values:
        return "select"
    if field_type is None:
        return "text"
    return INPUT_TYPES.get(field_type, "text")
