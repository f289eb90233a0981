"""Schema-driven form compilation.

Turns field declarations into validation schemas, widget choices and
section layouts.

Public API:
    from cms_admin.schema import compile_fields, select_widget, validate_layout
    from cms_admin.schema import PlanCache, FormPlan, build_plan
    from cms_admin.schema import ValidationResult, LayoutValidationResult
"""

from cms_admin.schema.compiler import (
    FALLBACK_RULE,
    RULES,
    FieldRule,
    RecordSchema,
    compile_fields,
)
from cms_admin.schema.layout import Section, check_layout, render_sections, validate_layout
from cms_admin.schema.models import (
    ConnectionResult,
    FieldRef,
    LayoutValidationResult,
    ValidationResult,
)
from cms_admin.schema.plan import FieldWidget, FormPlan, PlanCache, build_plan
from cms_admin.schema.widgets import WidgetKind, input_type, select_widget

__all__ = [
    # Compiler
    "compile_fields",
    "RecordSchema",
    "FieldRule",
    "RULES",
    "FALLBACK_RULE",
    # Widgets
    "select_widget",
    "input_type",
    "WidgetKind",
    # Layout
    "validate_layout",
    "check_layout",
    "render_sections",
    "Section",
    # Plans
    "build_plan",
    "PlanCache",
    "FormPlan",
    "FieldWidget",
    # Results
    "ValidationResult",
    "LayoutValidationResult",
    "FieldRef",
    "ConnectionResult",
]
