"""Adapter factory and profile resolution.

Profiles live in cms.toml.  The active profile comes from the
``{prefix}CMS_PROFILE`` environment variable, or from the ``.cms-profile``
lock file written after a successful ``connect_and_validate``.

Usage:
    from cms_admin.factory import connect_and_validate, get_adapter

    result = await connect_and_validate("local")
    adapter = await get_adapter()
"""

import logging
import os
from pathlib import Path

from cms_admin.adapters.http import HttpCmsAdapter
from cms_admin.config.loader import load_client_config
from cms_admin.config.models import ApiProfile, ClientConfig, CMSConfig
from cms_admin.errors import ConfigurationError, ProfileNotFoundError, TransportError
from cms_admin.schema.layout import validate_layout
from cms_admin.schema.models import ConnectionResult

logger = logging.getLogger(__name__)

_PROFILE_LOCK_NAME = ".cms-profile"
_TOKEN_PLACEHOLDER = "[YOUR-TOKEN]"


# ============================================================================
# Profile Lock File Operations
# ============================================================================


def _profile_lock_path() -> Path:
    return Path.cwd() / _PROFILE_LOCK_NAME


def read_profile_lock() -> str | None:
    """Read profile name from lock file.

    Returns:
        Profile name if lock file exists, None otherwise
    """
    lock_file = _profile_lock_path()
    if lock_file.exists():
        return lock_file.read_text().strip() or None
    return None


def write_profile_lock(profile_name: str) -> None:
    """Write profile name to lock file.

    Only call this after the CMS configuration validated.
    """
    _profile_lock_path().write_text(profile_name)


def clear_profile_lock() -> None:
    """Remove profile lock file."""
    lock_file = _profile_lock_path()
    if lock_file.exists():
        lock_file.unlink()


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Priority:
    1. ``{env_prefix}CMS_PROFILE`` env var
    2. .cms-profile file (validated profile from previous connect)
    3. Raise ProfileNotFoundError

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}CMS_PROFILE")
    if env_profile:
        return env_profile

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile

    raise ProfileNotFoundError(
        "No API profile configured.\n"
        f"Run: {env_prefix}CMS_PROFILE=<name> cms-admin connect"
    )


def get_profile(
    profile_name: str,
    config: ClientConfig,
) -> ApiProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile isn't in cms.toml
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in cms.toml. Available: {available}"
        )
    return config.profiles[profile_name]


def resolve_token(profile: ApiProfile, env_prefix: str = "") -> str | None:
    """Resolve the profile token, substituting the placeholder from env.

    ``[YOUR-TOKEN]`` in the profile is replaced with ``{env_prefix}CMS_TOKEN``.
    A profile without a token falls back to that variable directly.

    Example:
        >>> resolve_token(ApiProfile(base_url="http://x", token="abc"))
        'abc'
    """
    env_token = os.environ.get(f"{env_prefix}CMS_TOKEN")
    token = profile.token
    if token is None:
        return env_token
    if _TOKEN_PLACEHOLDER in token:
        if not env_token:
            return None
        return token.replace(_TOKEN_PLACEHOLDER, env_token)
    return token


# ============================================================================
# Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    config_path: Path | None = None,
    env_prefix: str = "",
) -> HttpCmsAdapter:
    """Create an HTTP adapter for a profile.

    Args:
        profile_name: Profile from cms.toml; defaults to the active profile.
        config_path: Path to cms.toml (default: ./cms.toml).
        env_prefix: Prefix for CMS_PROFILE / CMS_TOKEN lookups.

    Raises:
        ProfileNotFoundError: If no profile is configured or it's unknown
        FileNotFoundError: If cms.toml doesn't exist
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix=env_prefix)

    config = load_client_config(config_path)
    profile = get_profile(profile_name, config)

    return HttpCmsAdapter(
        base_url=profile.base_url,
        token=resolve_token(profile, env_prefix=env_prefix),
        endpoints=config.endpoints,
        timeout=config.timeout,
    )


# ============================================================================
# Connection and Validation
# ============================================================================


async def connect_and_validate(
    profile_name: str | None = None,
    config_path: Path | None = None,
    env_prefix: str = "",
    validate_only: bool = False,
    adapter: HttpCmsAdapter | None = None,
) -> ConnectionResult:
    """Fetch the CMS configuration and validate every table layout.

    This is the primary setup API.  On success the profile is written to
    the lock file so later commands use it.

    Args:
        profile_name: Profile name from cms.toml. If None, uses the
            ``{env_prefix}CMS_PROFILE`` env var or the lock file.
        config_path: Path to cms.toml.
        env_prefix: Prefix for environment variable lookup.
        validate_only: Don't write the lock file.
        adapter: Pre-built adapter (skips profile loading for the client;
            the caller keeps ownership).

    Returns:
        ConnectionResult with success status and per-table reports

    Example:
        >>> result = await connect_and_validate("local")
        >>> if not result.success:
        ...     print(result.error)
    """
    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix=env_prefix)
        except ProfileNotFoundError as e:
            return ConnectionResult(success=False, error=str(e))

    owns_adapter = adapter is None
    if adapter is None:
        try:
            adapter = await get_adapter(profile_name, config_path, env_prefix)
        except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
            return ConnectionResult(success=False, profile_name=profile_name, error=str(e))

    try:
        cms_config = await adapter.fetch_config()
    except TransportError as e:
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Failed to fetch CMS config: {e}",
        )
    except ConfigurationError as e:
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            config_valid=False,
            error=str(e),
        )
    finally:
        if owns_adapter:
            await adapter.close()

    reports = [
        validate_layout(table_id, table)
        for table_id, table in cms_config.cms.tables.items()
    ]
    invalid = [r for r in reports if not r.valid]

    if invalid:
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            config_valid=False,
            table_reports=reports,
            error=f"CMS config validation failed: {len(invalid)} invalid tables",
        )

    if not validate_only:
        write_profile_lock(profile_name)
    logger.debug("Connected to profile %s (%d tables)", profile_name, len(reports))

    return ConnectionResult(
        success=True,
        profile_name=profile_name,
        config_valid=True,
        table_reports=reports,
    )


async def load_remote_config(
    profile_name: str | None = None,
    config_path: Path | None = None,
    env_prefix: str = "",
) -> CMSConfig:
    """Fetch the CMS configuration through the active profile's adapter."""
    async with await get_adapter(profile_name, config_path, env_prefix) as adapter:
        return await adapter.fetch_config()
