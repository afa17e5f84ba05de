"""Permission discovery for the role builder.

Derives a categorized, bilingual permission tree from the keys that roles
actually carry. The output only drives the role-builder screen; it never
feeds an authorization decision. A selection becomes authoritative once it
is saved back through the role update path.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Set

from omnicrm.common.logger import get_logger

from .permissions import (
    SUPPORTED_LOCALES,
    categorize,
    category_label,
    format_module_name,
    label,
    normalize_locale,
    parse_permission_key,
)

logger = get_logger(__name__)


class MenuLabelLookup(Protocol):
    """Source of display names for permission modules."""

    def label_for(self, key: str, locale: str) -> Optional[str]:
        ...


# Permission module -> menu item key
MODULE_MENU_KEYS: Dict[str, str] = {
    "contacts": "crm_contacts",
    "companies": "crm_companies",
    "segments": "crm_segmentation",
    "deals": "crm_deals",
    "pipelines": "crm_pipelines",
    "campaigns": "campaigns",
    "conversations": "conversations",
    "tickets": "tickets",
    "analytics": "analytics",
    "tags": "crm_settings",
    "statuses": "crm_settings",
    "lead_sources": "crm_settings",
    "users": "team_members",
    "permissions": "team_roles",
    "organization": "settings_account",
}


class MenuItemLabels:
    """MenuLabelLookup backed by menu item rows ({key, name_en, name_ar})."""

    def __init__(self, menu_items: Iterable[Mapping[str, str]] = ()):
        self._items: Dict[str, Mapping[str, str]] = {}
        for item in menu_items:
            if item.get("key"):
                self._items[item["key"]] = item

    def label_for(self, key: str, locale: str) -> Optional[str]:
        item = self._items.get(MODULE_MENU_KEYS.get(key, key))
        if item is None:
            return None
        return item.get(f"name_{normalize_locale(locale)}") or None


class NoMenuLabels:
    def label_for(self, key: str, locale: str) -> Optional[str]:
        return None


@dataclass
class PermissionEntry:
    key: str
    module: str
    action: str
    label_en: str
    label_ar: str


@dataclass
class PermissionModule:
    key: str
    label_en: str
    label_ar: str
    permissions: List[PermissionEntry] = field(default_factory=list)


@dataclass
class PermissionCategory:
    key: str
    label_en: str
    label_ar: str
    modules: List[PermissionModule] = field(default_factory=list)

    @property
    def permissions(self) -> List[PermissionEntry]:
        return [entry for module in self.modules for entry in module.permissions]


def _module_label(module: str, locale: str, menu_labels: MenuLabelLookup) -> str:
    return menu_labels.label_for(module, locale) or format_module_name(module, locale)


def collect_permission_keys(roles: Iterable) -> List[str]:
    """Union of role permission keys in first-seen order.

    Accepts Role objects or mappings with a "permissions" list. Malformed
    keys are dropped and logged.
    """
    keys: Dict[str, None] = {}
    for role in roles:
        perms = role.get("permissions") if isinstance(role, Mapping) else role.permissions
        for key in perms or []:
            if parse_permission_key(key) is None:
                logger.warning("Dropping malformed permission key %r", key)
                continue
            keys.setdefault(key, None)
    return list(keys)


def discover(roles: Iterable, menu_labels: Optional[MenuLabelLookup] = None) -> Dict[str, PermissionCategory]:
    """
    Build the categorized permission tree from role definitions.

    Args:
        roles: Role objects or mappings carrying a "permissions" list
        menu_labels: Optional module label lookup (e.g. menu items)

    Returns:
        Ordered mapping of category key -> PermissionCategory
    """
    menu_labels = menu_labels or NoMenuLabels()
    categories: Dict[str, PermissionCategory] = {}

    for category_key, keys in categorize(collect_permission_keys(roles)).items():
        category = PermissionCategory(
            key=category_key,
            label_en=category_label(category_key, "en"),
            label_ar=category_label(category_key, "ar"),
        )
        modules: Dict[str, PermissionModule] = {}
        for key in keys:
            parsed = parse_permission_key(key)
            module = modules.get(parsed.module)
            if module is None:
                module = PermissionModule(
                    key=parsed.module,
                    label_en=_module_label(parsed.module, "en", menu_labels),
                    label_ar=_module_label(parsed.module, "ar", menu_labels),
                )
                modules[parsed.module] = module
                category.modules.append(module)
            module.permissions.append(
                PermissionEntry(
                    key=key,
                    module=parsed.module,
                    action=parsed.action,
                    label_en=label(key, "en", module.label_en),
                    label_ar=label(key, "ar", module.label_ar),
                )
            )
        categories[category_key] = category

    return categories


def permission_label(key: str, locale: str, menu_labels: Optional[MenuLabelLookup] = None) -> str:
    """Single localized label for a key, using menu names when available."""
    parsed = parse_permission_key(key)
    if parsed is None:
        return key
    locale = normalize_locale(locale)
    return label(key, locale, _module_label(parsed.module, locale, menu_labels or NoMenuLabels()))


def build_permission_matrix(keys: Iterable[str]) -> Dict[str, Dict[str, bool]]:
    """Flat keys -> {module: {action: True}} for checkbox rendering."""
    matrix: Dict[str, Dict[str, bool]] = {}
    for key in keys:
        parsed = parse_permission_key(key)
        if parsed is None:
            continue
        matrix.setdefault(parsed.module, {})[parsed.action] = True
    return matrix


def toggle_module(
    selected: Iterable[str],
    module: str,
    available: Iterable[str],
    enabled: bool,
) -> Set[str]:
    """Select or clear every available key of one module."""
    selected = set(selected)
    module_keys = {
        key for key in available
        if (parsed := parse_permission_key(key)) is not None and parsed.module == module
    }
    if enabled:
        return selected | module_keys
    return selected - module_keys


__all__ = [
    "MenuLabelLookup",
    "MenuItemLabels",
    "NoMenuLabels",
    "PermissionCategory",
    "PermissionModule",
    "PermissionEntry",
    "MODULE_MENU_KEYS",
    "SUPPORTED_LOCALES",
    "collect_permission_keys",
    "discover",
    "permission_label",
    "build_permission_matrix",
    "toggle_module",
]
