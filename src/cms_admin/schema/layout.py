"""Table layout checks and section grouping.

Compares the field names referenced by a table's views (detail tabs and
list-view columns) against the fields the table declares.
Pure logic -- no I/O.

Usage:
    from cms_admin.schema.layout import render_sections, validate_layout

    result = validate_layout("posts", config.get_table("posts"))
    if not result.valid:
        print(result.format_report())

    for section in render_sections(config.get_table("posts")):
        print(section.title, section.fields)
"""

from pydantic import BaseModel, Field

from cms_admin.config.models import TableSchema
from cms_admin.errors import ConfigurationError
from cms_admin.schema.models import FieldRef, LayoutValidationResult


class Section(BaseModel):
    """A group of fields rendered together: one tab, or the flat form."""

    title: str | None = None
    fields: list[str] = Field(default_factory=list)


def validate_layout(table_id: str, table: TableSchema) -> LayoutValidationResult:
    """Validate a table's views against its declared fields.

    Performs set operations to find:
    - Tab entries naming fields absent from ``fields``
    - List-view display/sortable/filterable entries naming absent fields
    - Non-hidden fields placed in no tab (warning only -- does not affect
      ``valid`` status; only checked when tabs are declared)

    Args:
        table_id: Table identifier, used in messages.
        table: The table configuration.

    Returns:
        ``LayoutValidationResult``.

    Examples:
        >>> from cms_admin.config.models import TableSchema
        >>> table = TableSchema.model_validate({
        ...     "fields": {"title": {"type": "text", "label": "Title"}},
        ...     "detailView": {"tabs": {"Main": ["title", "body"]}},
        ... })
        >>> result = validate_layout("posts", table)
        >>> result.valid
        False
        >>> result.missing_fields[0].field
        'body'
    """
    declared: set[str] = set(table.fields.keys())
    missing_fields: list[FieldRef] = []

    tabs = table.detail_view.tabs
    if tabs is not None:
        for tab_name, tab_fields in tabs.items():
            for field_name in tab_fields:
                if field_name not in declared:
                    missing_fields.append(
                        FieldRef(
                            view=tab_name,
                            field=field_name,
                            message=f"Tab '{tab_name}' references undeclared field '{field_name}'",
                        )
                    )

    list_view = table.list_view
    for view_name, names in (
        ("listView.displayFields", list_view.display_fields),
        ("listView.sortableFields", list_view.sortable_fields),
        ("listView.filterableFields", list_view.filterable_fields),
    ):
        for field_name in sorted(set(names) - declared):
            missing_fields.append(
                FieldRef(
                    view=view_name,
                    field=field_name,
                    message=f"{view_name} references undeclared field '{field_name}'",
                )
            )

    unplaced_fields: list[str] = []
    if tabs is not None:
        placed: set[str] = {name for tab_fields in tabs.values() for name in tab_fields}
        unplaced_fields = [
            name for name in table.visible_fields() if name not in placed
        ]

    return LayoutValidationResult(
        table=table_id,
        valid=len(missing_fields) == 0,
        missing_fields=missing_fields,
        unplaced_fields=unplaced_fields,
    )


def check_layout(table_id: str, table: TableSchema) -> LayoutValidationResult:
    """Like ``validate_layout`` but raise when the layout is invalid.

    Raises:
        ConfigurationError: Carrying the report as ``report``.
    """
    result = validate_layout(table_id, table)
    if not result.valid:
        raise ConfigurationError(result.format_report(), report=result)
    return result


def render_sections(table: TableSchema) -> list[Section]:
    """Group a table's visible fields into rendering sections.

    With ``detailView.tabs``: one section per tab in declared order, each
    holding its listed fields in listed order (hidden ones skipped).
    Without tabs: a single untitled section with every non-hidden field in
    declaration order.

    Raises:
        ConfigurationError: If a tab references an undeclared field.
    """
    tabs = table.detail_view.tabs
    if tabs is None:
        return [Section(title=None, fields=list(table.visible_fields()))]

    sections: list[Section] = []
    for tab_name, tab_fields in tabs.items():
        names: list[str] = []
        for field_name in tab_fields:
            field = table.fields.get(field_name)
            if field is None:
                raise ConfigurationError(
                    f"Tab '{tab_name}' references undeclared field '{field_name}'"
                )
            if not field.hidden:
                names.append(field_name)
        sections.append(Section(title=tab_name, fields=names))
    return sections
