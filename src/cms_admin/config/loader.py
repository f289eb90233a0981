"""Configuration file loaders.

``load_client_config`` reads the TOML client configuration (API profiles,
endpoint paths).  ``load_cms_config`` reads a CMS configuration document
saved locally as JSON, the same document the backend serves.
"""

import json
import tomllib
from pathlib import Path

from cms_admin.config.models import ApiProfile, ClientConfig, CMSConfig, EndpointConfig


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client configuration from TOML file.

    Args:
        config_path: Path to cms.toml (default: ./cms.toml)

    Returns:
        ClientConfig with all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "cms.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Client config not found: {config_path}\n"
            f"Copy cms.toml.example to cms.toml and configure your profiles."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path.name}: {e}") from e

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = ApiProfile(**profile_data)

    client_settings = data.get("client", {})

    return ClientConfig(
        profiles=profiles,
        endpoints=EndpointConfig(**data.get("endpoints", {})),
        timeout=client_settings.get("timeout", 30.0),
    )


def load_cms_config(config_path: str | Path) -> CMSConfig:
    """Load a CMS configuration document from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the document doesn't match the CMS schema
        ValueError: If the file isn't valid JSON
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"CMS config not found: {path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path.name}: {e}") from e

    return CMSConfig.from_document(data)
