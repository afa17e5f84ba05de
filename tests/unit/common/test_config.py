"""Tests for the catalog file loader."""

import pytest

import yaml

from omnicrm.common.config import (
    CatalogConfig,
    MenuItemConfig,
    RoleConfig,
    build_menu_labels,
    build_role_registry,
    load_config,
    load_typed_config,
    parse_config,
    parse_role_config,
)


@pytest.fixture
def catalog_dict():
    return {
        "roles": [
            {
                "slug": "cashier",
                "name": "Cashier",
                "description": "Front desk",
                "permissions": ["contacts.view", "contacts.create"],
            },
        ],
        "menu_items": [
            {"key": "crm_contacts", "name_en": "Customers", "name_ar": "العملاء"},
        ],
    }


class TestParseConfig:
    """Tests for dict -> dataclass parsing."""

    def test_parse_full_config(self, catalog_dict):
        config = parse_config(catalog_dict)
        assert config.roles == [
            RoleConfig(
                slug="cashier",
                name="Cashier",
                permissions=["contacts.view", "contacts.create"],
                description="Front desk",
            )
        ]
        assert config.menu_items == [MenuItemConfig("crm_contacts", "Customers", "العملاء")]

    def test_parse_empty_config(self):
        assert parse_config({}) == CatalogConfig()

    def test_role_name_defaults_from_slug(self):
        assert parse_role_config({"slug": "night_shift"}).name == "Night Shift"

    def test_role_without_slug(self):
        with pytest.raises(ValueError):
            parse_role_config({"name": "Nameless"})


class TestLoadConfig:
    """Tests for reading the YAML file."""

    def test_load_config(self, tmp_path, catalog_dict):
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(catalog_dict, allow_unicode=True), encoding="utf-8")

        config = load_typed_config(str(path))
        assert config.roles[0].slug == "cashier"
        assert config.menu_items[0].name_ar == "العملاء"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(TypeError):
            load_config(str(path))

    def test_env_vars_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONTACTS_LABEL", "Clients")
        path = tmp_path / "catalog.yaml"
        path.write_text("menu_items:\n  - key: crm_contacts\n    name_en: ${CONTACTS_LABEL}\n")
        assert load_typed_config(str(path)).menu_items[0].name_en == "Clients"

    def test_no_path_means_empty_catalog(self):
        assert load_typed_config(None) == CatalogConfig()


class TestBuildRegistry:
    """Tests for merging custom roles over the defaults."""

    def test_custom_role_added(self, catalog_dict):
        registry = build_role_registry(parse_config(catalog_dict))
        assert registry.get_role_permissions("cashier") == {"contacts.view", "contacts.create"}
        assert "admin" in registry
        assert registry.get("cashier").is_system is False

    def test_custom_role_replaces_default(self):
        config = CatalogConfig(roles=[RoleConfig(slug="member", name="Member", permissions=["deals.view"])])
        assert build_role_registry(config).get_role_permissions("member") == {"deals.view"}

    def test_invalid_permission_rejected(self):
        config = CatalogConfig(roles=[RoleConfig(slug="bad", name="Bad", permissions=["contacts.fly"])])
        with pytest.raises(ValueError):
            build_role_registry(config)

    def test_menu_labels(self, catalog_dict):
        labels = build_menu_labels(parse_config(catalog_dict))
        assert labels.label_for("contacts", "en") == "Customers"
