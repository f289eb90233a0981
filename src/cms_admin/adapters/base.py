"""Collaborator protocol definitions.

Defines the Protocols the core talks to.  The draft store only needs a
``RecordStoreClient``; schema loading only needs a ``CmsConfigClient``.
All methods are ``async def`` -- the library is async-first.

Usage:
    from cms_admin.adapters.base import RecordStoreClient

    async def do_work(client: RecordStoreClient) -> None:
        records = await client.fetch_collection()
        one = await client.fetch_record("support_bot")
        await client.save_collection(records)
"""

from typing import TYPE_CHECKING, Any, Protocol

from cms_admin.config.models import CMSConfig

if TYPE_CHECKING:
    from cms_admin.store.models import AuthResponse


class RecordStoreClient(Protocol):
    """Backing store for a keyed record collection.

    The store is read in bulk or one record at a time, and always written
    in bulk: there is no partial update.
    """

    async def fetch_collection(self) -> dict[str, dict[str, Any]]:
        """Read the entire collection.

        Returns:
            Mapping of record key to record body (without ``id``).

        Raises:
            TransportError: On any transport or decoding failure.
        """
        ...

    async def fetch_record(self, key: str) -> dict[str, Any]:
        """Read one record.

        Returns:
            The record body with ``id`` set to *key*.

        Raises:
            RecordNotFoundError: If the key doesn't exist.
            TransportError: On any other failure.
        """
        ...

    async def save_collection(self, records: dict[str, dict[str, Any]]) -> None:
        """Overwrite the entire collection with *records*.

        Raises:
            TransportError: On any failure; nothing may be assumed persisted.
        """
        ...


class CmsConfigClient(Protocol):
    """Source of the table/field schema document."""

    async def fetch_config(self) -> CMSConfig:
        """Read the CMS configuration document.

        Raises:
            TransportError: On transport failure.
            ConfigurationError: If the document doesn't match the schema.
        """
        ...


class AuthClient(Protocol):
    """Credential exchange, fully delegated to the backend."""

    async def login(self, email: str, password: str) -> "AuthResponse":
        """Exchange credentials for a token."""
        ...
