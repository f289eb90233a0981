"""Tests for configuration models and loaders."""

import json
import textwrap

import pytest

from cms_admin.config.loader import load_client_config, load_cms_config
from cms_admin.config.models import CMSConfig, FieldDeclaration, FieldType, TableSchema
from cms_admin.errors import ConfigurationError


class TestLoadClientConfig:
    """Verify cms.toml parsing."""

    def test_profiles_and_defaults(self, tmp_path):
        """Profiles parse; endpoints and timeout fall back to defaults."""
        config_file = tmp_path / "cms.toml"
        config_file.write_text(textwrap.dedent("""\
            [profiles.local]
            base_url = "http://localhost:5173"
            description = "Local dev server"

            [profiles.prod]
            base_url = "https://cms.example.com"
            token = "[YOUR-TOKEN]"
        """))

        config = load_client_config(config_file)

        assert set(config.profiles) == {"local", "prod"}
        assert config.profiles["local"].description == "Local dev server"
        assert config.profiles["prod"].token == "[YOUR-TOKEN]"
        assert config.endpoints.save == "/ui/saveConfig"
        assert config.timeout == 30.0

    def test_endpoint_and_client_overrides(self, tmp_path):
        config_file = tmp_path / "cms.toml"
        config_file.write_text(textwrap.dedent("""\
            [profiles.local]
            base_url = "http://localhost:5173"

            [endpoints]
            collection = "/v2/agents"
            save_file_name = "bots.json"

            [client]
            timeout = 5
        """))

        config = load_client_config(config_file)

        assert config.endpoints.collection == "/v2/agents"
        assert config.endpoints.save_file_name == "bots.json"
        assert config.endpoints.cms_config == "/api/xy/cmsConfig.json"
        assert config.timeout == 5.0

    def test_default_path_is_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cms.toml").write_text('[profiles.a]\nbase_url = "http://a"\n')
        assert "a" in load_client_config().profiles

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="cms.toml.example"):
            load_client_config(tmp_path / "cms.toml")

    def test_invalid_toml(self, tmp_path):
        config_file = tmp_path / "cms.toml"
        config_file.write_text("[profiles.local\nbase_url = ")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_client_config(config_file)


class TestLoadCmsConfig:
    """Verify CMS document loading from JSON."""

    def test_valid_document(self, tmp_path):
        path = tmp_path / "cmsConfig.json"
        path.write_text(json.dumps({
            "cms": {
                "name": "Demo",
                "tables": {
                    "posts": {
                        "title": "Posts",
                        "dbTable": "posts",
                        "fields": {"title": {"type": "text", "label": "Title"}},
                        "listView": {"displayFields": ["title"]},
                    }
                },
            }
        }))

        config = load_cms_config(path)

        table = config.get_table("posts")
        assert table.db_table == "posts"
        assert table.list_view.display_fields == ["title"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_cms_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "cmsConfig.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_cms_config(path)

    def test_schema_mismatch(self, tmp_path):
        """A field without a type is a configuration error."""
        path = tmp_path / "cmsConfig.json"
        path.write_text(json.dumps({
            "cms": {"tables": {"posts": {"fields": {"title": {"label": "Title"}}}}}
        }))
        with pytest.raises(ConfigurationError, match="Invalid CMS configuration"):
            load_cms_config(path)


class TestModels:
    """Model behavior beyond plain parsing."""

    def test_unknown_type_survives_loading(self):
        """Unrecognized type tags load; field_type is None."""
        field = FieldDeclaration(type="color", label="Tint")
        assert field.type == "color"
        assert field.field_type is None

    def test_known_type(self):
        assert FieldDeclaration(type="datetime", label="At").field_type is FieldType.DATETIME

    def test_required_defaults_false(self):
        assert FieldDeclaration(type="text", label="x").required is False

    def test_validation_aliases(self):
        field = FieldDeclaration.model_validate({
            "type": "file",
            "label": "Doc",
            "validation": {"required": True, "maxLength": 3, "fileTypes": ["pdf"], "maxSize": "5MB"},
        })
        assert field.required
        assert field.validation.max_length == 3
        assert field.validation.file_types == ["pdf"]
        assert field.validation.max_size == "5MB"

    def test_visible_fields(self):
        table = TableSchema.model_validate({
            "fields": {
                "a": {"type": "text", "label": "A"},
                "b": {"type": "text", "label": "B", "hidden": True},
                "c": {"type": "text", "label": "C"},
            }
        })
        assert list(table.visible_fields()) == ["a", "c"]

    def test_permissions_default_open(self):
        table = TableSchema()
        assert table.permissions.read and table.permissions.write and table.permissions.delete

    def test_get_table_unknown(self):
        config = CMSConfig.from_document({"cms": {"tables": {"posts": {}}}})
        with pytest.raises(ConfigurationError, match="Available: posts"):
            config.get_table("users")
