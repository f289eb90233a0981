"""cms-admin: Schema-driven forms and a draft/commit record store.

Compiles CMS field declarations into validation schemas and widget plans,
and edits keyed record collections through an in-memory working copy that
is saved or discarded as a whole.

Usage:
    from cms_admin import PlanCache, RecordForm, DraftStore, RecordEditor
    from cms_admin import HttpCmsAdapter, CMSConfig, compile_fields
    from cms_admin import connect_and_validate, get_adapter, load_client_config
"""

__version__ = "0.1.0"

# Adapters
from cms_admin.adapters.base import AuthClient, CmsConfigClient, RecordStoreClient
from cms_admin.adapters.http import HttpCmsAdapter

# Config
from cms_admin.config.loader import load_client_config, load_cms_config
from cms_admin.config.models import (
    ApiProfile,
    ClientConfig,
    CMSConfig,
    FieldDeclaration,
    FieldType,
    TableSchema,
)

# Errors
from cms_admin.errors import (
    CmsAdminError,
    ConfigurationError,
    DuplicateKeyError,
    InvalidKeyError,
    MissingKeyError,
    PreconditionViolation,
    ProfileNotFoundError,
    RecordNotFoundError,
    SaveInProgressError,
    TransportError,
)

# Factory
from cms_admin.factory import connect_and_validate, get_adapter, resolve_token

# Forms
from cms_admin.forms.form import RecordForm
from cms_admin.forms.uploads import FileUpload, check_image_selection

# Schema
from cms_admin.schema.compiler import RecordSchema, compile_fields
from cms_admin.schema.layout import render_sections, validate_layout
from cms_admin.schema.models import ValidationResult
from cms_admin.schema.plan import FormPlan, PlanCache, build_plan
from cms_admin.schema.widgets import WidgetKind, select_widget

# Store
from cms_admin.store.draft import DraftStore
from cms_admin.store.models import AgentProfile, LoadState
from cms_admin.store.session import EditOutcome, RecordEditor

__all__ = [
    # Adapters
    "RecordStoreClient",
    "CmsConfigClient",
    "AuthClient",
    "HttpCmsAdapter",
    # Config
    "load_client_config",
    "load_cms_config",
    "ApiProfile",
    "ClientConfig",
    "CMSConfig",
    "FieldDeclaration",
    "FieldType",
    "TableSchema",
    # Errors
    "CmsAdminError",
    "ConfigurationError",
    "TransportError",
    "RecordNotFoundError",
    "PreconditionViolation",
    "DuplicateKeyError",
    "MissingKeyError",
    "InvalidKeyError",
    "SaveInProgressError",
    "ProfileNotFoundError",
    # Factory
    "get_adapter",
    "connect_and_validate",
    "resolve_token",
    # Forms
    "RecordForm",
    "FileUpload",
    "check_image_selection",
    # Schema
    "compile_fields",
    "RecordSchema",
    "ValidationResult",
    "select_widget",
    "WidgetKind",
    "validate_layout",
    "render_sections",
    "build_plan",
    "PlanCache",
    "FormPlan",
    # Store
    "DraftStore",
    "RecordEditor",
    "EditOutcome",
    "AgentProfile",
    "LoadState",
]
