"""Pydantic models for the CMS configuration document and client settings.

Two kinds of configuration live here:

- The CMS document (``CMSConfig``) fetched from the backend once per
  session.  It describes tables, their fields, list views and detail views.
- The client configuration (``ClientConfig``) read from ``cms.toml``:
  API profiles, endpoint paths and HTTP timeouts.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cms_admin.errors import ConfigurationError


# ============================================================================
# Field Declarations
# ============================================================================


class FieldType(str, Enum):
    """Closed set of field type tags understood by the form compiler."""

    TEXT = "text"
    NUMBER = "number"
    FILE = "file"
    STRING = "string"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
    ENUM = "enum"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    JSON = "json"
    ARRAY = "array"
    OBJECT = "object"
    RELATION = "relation"

    @classmethod
    def parse(cls, tag: str) -> "FieldType | None":
        """Return the member for *tag*, or ``None`` if the tag is unknown."""
        try:
            return cls(tag)
        except ValueError:
            return None


class FieldValidation(BaseModel):
    """Validation block of a field declaration."""

    model_config = ConfigDict(populate_by_name=True)

    required: bool = False
    max_length: int | None = Field(default=None, alias="maxLength")
    file_types: list[str] | None = Field(default=None, alias="fileTypes")
    max_size: str | None = Field(default=None, alias="maxSize")  # megabytes, e.g. "5" or "5MB"


class FieldUI(BaseModel):
    """UI hints: widget template and placeholder text."""

    template: str | None = None
    placeholder: str | None = None


class FieldDeclaration(BaseModel):
    """Schema metadata for one record attribute.

    ``type`` is kept as the raw tag so that unrecognized tags survive
    loading and reach the compiler's fallback arm.

    Example:
        >>> field = FieldDeclaration(type="number", label="Price")
        >>> field.field_type
        <FieldType.NUMBER: 'number'>
        >>> FieldDeclaration(type="color", label="Tint").field_type is None
        True
    """

    type: str
    label: str
    hidden: bool = False
    readonly: bool = False
    validation: FieldValidation | None = None
    ui: FieldUI | None = None
    values: list[str] | None = None  # enum options

    @property
    def field_type(self) -> FieldType | None:
        return FieldType.parse(self.type)

    @property
    def required(self) -> bool:
        return bool(self.validation and self.validation.required)


# ============================================================================
# Views and Tables
# ============================================================================


class ListView(BaseModel):
    """Column layout of the list screen for a table."""

    model_config = ConfigDict(populate_by_name=True)

    list_type: str = "table"
    display_fields: list[str] = Field(default_factory=list, alias="displayFields")
    sortable_fields: list[str] = Field(default_factory=list, alias="sortableFields")
    filterable_fields: list[str] = Field(default_factory=list, alias="filterableFields")


class DetailView(BaseModel):
    """Detail/edit screen layout: flat, or partitioned into named tabs."""

    form_type: str | None = None
    tabs: dict[str, list[str]] | None = None  # insertion order is display order


class Permissions(BaseModel):
    """Per-table capabilities."""

    read: bool = True
    write: bool = True
    delete: bool = True


class TableSchema(BaseModel):
    """A named collection of field declarations plus its views."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    route: str = ""
    db_table: str | None = Field(default=None, alias="dbTable")
    fields: dict[str, FieldDeclaration] = Field(default_factory=dict)
    list_view: ListView = Field(default_factory=ListView, alias="listView")
    detail_view: DetailView = Field(default_factory=DetailView, alias="detailView")
    permissions: Permissions = Field(default_factory=Permissions)

    def visible_fields(self) -> dict[str, FieldDeclaration]:
        """Non-hidden fields in declaration order."""
        return {name: f for name, f in self.fields.items() if not f.hidden}


class CmsSection(BaseModel):
    """Body of the ``cms`` key of the configuration document."""

    name: str = ""
    tables: dict[str, TableSchema] = Field(default_factory=dict)


class CMSConfig(BaseModel):
    """The table/field schema document, immutable for the session."""

    cms: CmsSection

    def get_table(self, table_id: str) -> TableSchema:
        """Look up a table by id.

        Raises:
            ConfigurationError: If the table id is not declared.
        """
        try:
            return self.cms.tables[table_id]
        except KeyError:
            available = ", ".join(self.cms.tables.keys()) or "(none)"
            raise ConfigurationError(
                f"Table configuration not found: '{table_id}'. Available: {available}"
            ) from None

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "CMSConfig":
        """Parse a raw document, wrapping pydantic errors as ConfigurationError."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid CMS configuration: {e}") from e


# ============================================================================
# Client Configuration Models
# ============================================================================


class ApiProfile(BaseModel):
    """Backend API profile from cms.toml."""

    base_url: str
    description: str = ""
    token: str | None = None  # "[YOUR-TOKEN]" is substituted from the environment


class EndpointConfig(BaseModel):
    """Endpoint paths on the backend, relative to the profile's base URL."""

    cms_config: str = "/api/xy/cmsConfig.json"
    collection: str = "/ui/getConfig/personas.json"
    save: str = "/ui/saveConfig"
    save_file_name: str = "agents.json"
    login: str = "/api/login"


class ClientConfig(BaseModel):
    """Complete client configuration from cms.toml."""

    profiles: dict[str, ApiProfile]
    endpoints: EndpointConfig = Field(default_factory=EndpointConfig)
    timeout: float = 30.0
