"""Pydantic result models for record validation and layout checks.

This module contains schema-domain results:
- Record validation: ValidationResult
- Layout validation: FieldRef, LayoutValidationResult
- Connection result: ConnectionResult

Configuration models (FieldDeclaration, TableSchema, CMSConfig) live in
cms_admin.config.models.
"""

from typing import Any

from pydantic import BaseModel, Field


# ============================================================================
# Record Validation Result
# ============================================================================


class ValidationResult(BaseModel):
    """Result of validating one record against a compiled schema.

    Every failing field is reported; validation never stops at the first
    error.

    Example:
        >>> result = ValidationResult(errors={"title": "This field is required"})
        >>> result.valid
        False
        >>> result.error_count
        1
    """

    values: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Record valid"

        lines = [f"Record validation failed ({self.error_count}):"]
        for field_name, message in self.errors.items():
            lines.append(f"    - {field_name}: {message}")
        return "\n".join(lines)


# ============================================================================
# Layout Validation Result
# ============================================================================


class FieldRef(BaseModel):
    """A view entry that names a field the table doesn't declare."""

    view: str  # tab name, or "listView.displayFields" etc.
    field: str
    message: str = ""


class LayoutValidationResult(BaseModel):
    """Result of checking a table's views against its field map.

    Example:
        >>> result = LayoutValidationResult(table="posts", valid=True)
        >>> result.format_report()
        "Layout of 'posts' valid"
    """

    table: str
    valid: bool
    missing_fields: list[FieldRef] = Field(default_factory=list)
    unplaced_fields: list[str] = Field(default_factory=list)  # Warning only

    @property
    def error_count(self) -> int:
        """Count of critical errors (view entries naming undeclared fields)."""
        return len(self.missing_fields)

    def format_report(self) -> str:
        """Format layout result as human-readable report."""
        if self.valid:
            return f"Layout of '{self.table}' valid"

        lines = [f"Layout of '{self.table}' invalid:"]

        if self.missing_fields:
            lines.append(f"\n  Undeclared fields ({len(self.missing_fields)}):")
            for ref in self.missing_fields:
                lines.append(f"    - {ref.view}: {ref.field}")

        if self.unplaced_fields:
            lines.append(
                f"\n  Fields in no tab (warning): {', '.join(self.unplaced_fields)}"
            )

        return "\n".join(lines)


# ============================================================================
# Connection Result
# ============================================================================


class ConnectionResult(BaseModel):
    """Result of connect_and_validate().

    Example:
        >>> result = ConnectionResult(success=True, profile_name="local", config_valid=True)
        >>> result.success
        True
    """

    success: bool
    profile_name: str | None = None
    config_valid: bool | None = None
    table_reports: list[LayoutValidationResult] = Field(default_factory=list)
    error: str | None = None

    @property
    def invalid_tables(self) -> list[LayoutValidationResult]:
        return [r for r in self.table_reports if not r.valid]
