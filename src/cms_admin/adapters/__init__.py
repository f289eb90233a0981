"""Collaborator adapters for the CMS backend.

Exports:
    RecordStoreClient: Protocol for the keyed record collection
    CmsConfigClient: Protocol for the CMS schema document
    AuthClient: Protocol for credential exchange
    HttpCmsAdapter: httpx implementation of all three
"""

from cms_admin.adapters.base import AuthClient, CmsConfigClient, RecordStoreClient
from cms_admin.adapters.http import HttpCmsAdapter

__all__ = [
    "RecordStoreClient",
    "CmsConfigClient",
    "AuthClient",
    "HttpCmsAdapter",
]
