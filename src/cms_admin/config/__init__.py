"""Configuration: CMS document models and client TOML loading."""

from cms_admin.config.loader import load_client_config, load_cms_config
from cms_admin.config.models import (
    ApiProfile,
    ClientConfig,
    CMSConfig,
    EndpointConfig,
    FieldDeclaration,
    FieldType,
    TableSchema,
)

__all__ = [
    "load_client_config",
    "load_cms_config",
    "ApiProfile",
    "ClientConfig",
    "CMSConfig",
    "EndpointConfig",
    "FieldDeclaration",
    "FieldType",
    "TableSchema",
]
