"""Per-table form plans, compiled once and cached by table id.

A ``FormPlan`` bundles everything a form needs for one table: the record
schema, the widget per visible field and the section layout.  Building a
plan checks the table layout, so a plan that exists is consistent.

Usage:
    from cms_admin.schema.plan import PlanCache

    plans = PlanCache(cms_config)
    plan = plans.get("posts")
    result = plan.schema.validate(record)
"""

import logging
from dataclasses import dataclass, field

from cms_admin.config.models import CMSConfig, FieldDeclaration, TableSchema
from cms_admin.schema.compiler import RecordSchema, compile_fields
from cms_admin.schema.layout import Section, check_layout, render_sections
from cms_admin.schema.widgets import WidgetKind, input_type, select_widget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldWidget:
    """Render instructions for one visible field."""

    name: str
    label: str
    kind: WidgetKind
    input_type: str
    required: bool = False
    readonly: bool = False
    placeholder: str | None = None
    options: tuple[str, ...] = ()

    @classmethod
    def from_declaration(cls, name: str, declaration: FieldDeclaration) -> "FieldWidget":
        return cls(
            name=name,
            label=declaration.label,
            kind=select_widget(declaration),
            input_type=input_type(declaration),
            required=declaration.required,
            readonly=declaration.readonly,
            placeholder=declaration.ui.placeholder if declaration.ui else None,
            options=tuple(declaration.values or ()),
        )


@dataclass(frozen=True)
class FormPlan:
    """Immutable validation and widget plan for one table."""

    table_id: str
    title: str
    table: TableSchema
    schema: RecordSchema
    widgets: dict[str, FieldWidget] = field(default_factory=dict)
    sections: tuple[Section, ...] = ()
    writable: bool = True

    def widget(self, name: str) -> FieldWidget:
        return self.widgets[name]

    def declaration(self, name: str) -> FieldDeclaration:
        return self.table.fields[name]


def build_plan(table_id: str, table: TableSchema) -> FormPlan:
    """Compile a table into a ``FormPlan``.

    Raises:
        ConfigurationError: If the table's views reference undeclared fields.
    """
    check_layout(table_id, table)

    widgets = {
        name: FieldWidget.from_declaration(name, declaration)
        for name, declaration in table.visible_fields().items()
    }

    return FormPlan(
        table_id=table_id,
        title=table.title or table_id,
        table=table,
        schema=compile_fields(table.fields),
        widgets=widgets,
        sections=tuple(render_sections(table)),
        writable=table.permissions.write,
    )


class PlanCache:
    """Form plans keyed by table id, built lazily from one ``CMSConfig``."""

    def __init__(self, config: CMSConfig) -> None:
        self._config = config
        self._plans: dict[str, FormPlan] = {}

    @property
    def config(self) -> CMSConfig:
        return self._config

    def get(self, table_id: str) -> FormPlan:
        """Return the plan for *table_id*, compiling it on first use.

        Raises:
            ConfigurationError: Unknown table id or inconsistent layout.
        """
        plan = self._plans.get(table_id)
        if plan is None:
            plan = build_plan(table_id, self._config.get_table(table_id))
            self._plans[table_id] = plan
            logger.debug("Compiled form plan for table %s", table_id)
        return plan

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._plans

    def invalidate(self, table_id: str | None = None) -> None:
        """Drop one cached plan, or all of them."""
        if table_id is None:
            self._plans.clear()
        else:
            self._plans.pop(table_id, None)
