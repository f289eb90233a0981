"""Compile field declarations into a record validation schema.

Each non-hidden field gets a rule chosen through ``RULES``, an exhaustive
mapping from ``FieldType`` to rule class.  Tags outside ``FieldType`` go
to ``FALLBACK_RULE``.  Hidden fields are dropped entirely: they are
neither validated nor required.

Pure logic -- no I/O.

Usage:
    from cms_admin.schema.compiler import compile_fields

    schema = compile_fields(table.fields)
    result = schema.validate({"title": "", "price": "abc"})
    if not result.valid:
        print(result.format_report())
"""

import math
import re
from collections.abc import Mapping
from typing import Any

from cms_admin.config.models import FieldDeclaration, FieldType
from cms_admin.forms.uploads import FileUpload
from cms_admin.schema.models import ValidationResult

REQUIRED_MESSAGE = "This field is required"
NUMBER_MESSAGE = "Must be a number"
FILE_REQUIRED_MESSAGE = "File is required"

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")


# ============================================================================
# Field Rules
# ============================================================================


class FieldRule:
    """Validation rule for one field.

    ``check`` returns ``(value, error)``: the coerced value and ``None`` on
    success, or the original value and a human-readable message.
    """

    def __init__(self, name: str, field: FieldDeclaration) -> None:
        self.name = name
        self.field = field
        self.required = field.required

    def check(self, value: Any) -> tuple[Any, str | None]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, required={self.required})"


class TextRule(FieldRule):
    """``text`` / ``string``: string value, optional required and max length."""

    def __init__(self, name: str, field: FieldDeclaration) -> None:
        super().__init__(name, field)
        self.max_length = field.validation.max_length if field.validation else None

    def check(self, value: Any) -> tuple[Any, str | None]:
        if value is None:
            value = ""
        if not isinstance(value, str):
            return value, "Expected a string"
        if self.required and value == "":
            return value, REQUIRED_MESSAGE
        if self.max_length is not None and len(value) > self.max_length:
            return value, f"Maximum length is {self.max_length} characters"
        return value, None


class NumberRule(FieldRule):
    """``number``: form text converted to a number.

    Empty text means absent.  Non-numeric text is always an error, even
    for optional fields.
    """

    def check(self, value: Any) -> tuple[Any, str | None]:
        if isinstance(value, bool):
            return value, NUMBER_MESSAGE

        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                return value, NUMBER_MESSAGE
            return value, None

        if value is None:
            text = ""
        elif isinstance(value, str):
            text = value.strip()
        else:
            return value, NUMBER_MESSAGE

        if text == "":
            if self.required:
                return None, REQUIRED_MESSAGE
            return None, None

        if not _DECIMAL.fullmatch(text):
            return value, NUMBER_MESSAGE
        if _INTEGER.fullmatch(text):
            try:
                return int(text), None
            except ValueError:
                # past the interpreter's int digit limit; treat as float
                pass

        number = float(text)
        if not math.isfinite(number):
            return value, NUMBER_MESSAGE
        return number, None


class FileRule(FieldRule):
    """``file``: a ``FileUpload`` handle, or a list of them (first one wins)."""

    def check(self, value: Any) -> tuple[Any, str | None]:
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value == "":
            value = None

        if value is None:
            if self.required:
                return None, FILE_REQUIRED_MESSAGE
            return None, None

        if not isinstance(value, FileUpload):
            return value, "Expected a file"
        return value, None


class PassthroughRule(FieldRule):
    """Accepts any value unchanged."""

    def check(self, value: Any) -> tuple[Any, str | None]:
        return value, None


RULES: dict[FieldType, type[FieldRule]] = {
    FieldType.TEXT: TextRule,
    FieldType.STRING: TextRule,
    FieldType.NUMBER: NumberRule,
    FieldType.FILE: FileRule,
    FieldType.TEXTAREA: PassthroughRule,
    FieldType.CHECKBOX: PassthroughRule,
    FieldType.ENUM: PassthroughRule,
    FieldType.DATE: PassthroughRule,
    FieldType.DATETIME: PassthroughRule,
    FieldType.TIME: PassthroughRule,
    FieldType.JSON: PassthroughRule,
    FieldType.ARRAY: PassthroughRule,
    FieldType.OBJECT: PassthroughRule,
    FieldType.RELATION: PassthroughRule,
}

# Unrecognized type tags
FALLBACK_RULE: type[FieldRule] = PassthroughRule


def rule_for(name: str, field: FieldDeclaration) -> FieldRule:
    """Build the rule for one declaration."""
    field_type = field.field_type
    rule_cls = RULES[field_type] if field_type is not None else FALLBACK_RULE
    return rule_cls(name, field)


# ============================================================================
# Record Schema
# ============================================================================


class RecordSchema:
    """Compiled validation schema for one table's records.

    Example:
        >>> from cms_admin.config.models import FieldDeclaration
        >>> schema = compile_fields({
        ...     "price": FieldDeclaration(type="number", label="Price"),
        ... })
        >>> schema.validate({"price": "42"}).values["price"]
        42
    """

    def __init__(self, rules: Mapping[str, FieldRule]) -> None:
        self._rules: dict[str, FieldRule] = dict(rules)

    @property
    def fields(self) -> list[str]:
        """Validated field names in declaration order."""
        return list(self._rules)

    @property
    def rules(self) -> dict[str, FieldRule]:
        return dict(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def validate_field(self, name: str, value: Any) -> tuple[Any, str | None]:
        """Check a single field; unknown names pass through unchanged."""
        rule = self._rules.get(name)
        if rule is None:
            return value, None
        return rule.check(value)

    def validate(self, record: Mapping[str, Any]) -> ValidationResult:
        """Validate a full record in one pass.

        Missing keys are validated as absent.  Keys not covered by the
        schema (hidden or undeclared fields) are copied to ``values``
        untouched.
        """
        values: dict[str, Any] = {
            key: value for key, value in record.items() if key not in self._rules
        }
        errors: dict[str, str] = {}

        for name, rule in self._rules.items():
            value, error = rule.check(record.get(name))
            values[name] = value
            if error is not None:
                errors[name] = error

        return ValidationResult(values=values, errors=errors)


def compile_fields(fields: Mapping[str, FieldDeclaration]) -> RecordSchema:
    """Compile a field map into a ``RecordSchema``, skipping hidden fields."""
    return RecordSchema(
        {name: rule_for(name, field) for name, field in fields.items() if not field.hidden}
    )
