"""Catalog file management for OmniCRM.

Loads the optional YAML catalog file that declares custom roles and the
bilingual menu item names used to label permission modules.

Example:

    roles:
      - slug: pos
        name: POS
        permissions: [contacts.view, contacts.create]
    menu_items:
      - key: crm_contacts
        name_en: Contacts
        name_ar: جهات الاتصال
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from omnicrm.core.rbac.discovery import MenuItemLabels
from omnicrm.core.rbac.roles import Role, RoleRegistry


@dataclass
class RoleConfig:
    """A custom role declared in the catalog file."""

    slug: str
    name: str
    permissions: List[str] = field(default_factory=list)
    description: str = ""


@dataclass
class MenuItemConfig:
    key: str
    name_en: str = ""
    name_ar: str = ""


@dataclass
class CatalogConfig:
    """Top-level catalog file configuration."""

    roles: List[RoleConfig] = field(default_factory=list)
    menu_items: List[MenuItemConfig] = field(default_factory=list)


def parse_role_config(role_dict: Dict[str, Any]) -> RoleConfig:
    """Parse a role configuration dictionary.

    Raises:
        ValueError: If the role has no slug
    """
    slug = role_dict.get("slug")
    if not slug:
        raise ValueError("Role entry is missing 'slug'")
    return RoleConfig(
        slug=slug,
        name=role_dict.get("name") or slug.replace("_", " ").title(),
        permissions=list(role_dict.get("permissions") or []),
        description=role_dict.get("description", ""),
    )


def parse_menu_item_config(item_dict: Dict[str, Any]) -> MenuItemConfig:
    return MenuItemConfig(
        key=item_dict.get("key", ""),
        name_en=item_dict.get("name_en", ""),
        name_ar=item_dict.get("name_ar", ""),
    )


def parse_config(config_dict: Dict[str, Any]) -> CatalogConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        CatalogConfig instance
    """
    return CatalogConfig(
        roles=[parse_role_config(r) for r in config_dict.get("roles") or []],
        menu_items=[parse_menu_item_config(m) for m in config_dict.get("menu_items") or []],
    )


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: Optional[str]) -> CatalogConfig:
    """Load and parse the catalog file; no path means an empty catalog."""
    if not config_path:
        return CatalogConfig()
    return parse_config(load_config(config_path))


def build_role_registry(config: CatalogConfig) -> RoleRegistry:
    """Merge custom roles from the catalog file over the default roles.

    Raises:
        ValueError: If a role lists a permission outside the catalog
    """
    registry = RoleRegistry.default()
    for role_config in config.roles:
        base = Role(
            slug=role_config.slug,
            name=role_config.name,
            description=role_config.description,
        )
        registry = registry.with_role(base.with_permissions(role_config.permissions))
    return registry


def build_menu_labels(config: CatalogConfig) -> MenuItemLabels:
    return MenuItemLabels(
        {"key": item.key, "name_en": item.name_en, "name_ar": item.name_ar}
        for item in config.menu_items
    )
