"""Permission catalog for OmniCRM RBAC.

Defines all modules, actions, and permission combinations.
Uses a matrix approach: permissions = modules × actions.

Permission string format: "module.action"
Examples:
  - contacts.view
  - deals.edit
  - permissions.manage
  - analytics.export
"""

from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple


class Module(str, Enum):
    """Modules that can be protected by permissions."""

    # CRM records
    CONTACTS = "contacts"
    COMPANIES = "companies"
    SEGMENTS = "segments"
    DEALS = "deals"
    PIPELINES = "pipelines"

    # CRM settings
    TAGS = "tags"
    STATUSES = "statuses"           # Contact statuses
    LEAD_SOURCES = "lead_sources"

    # Team management
    USERS = "users"
    PERMISSIONS = "permissions"     # Role and override administration

    # Organization and channels
    ORGANIZATION = "organization"
    CAMPAIGNS = "campaigns"
    CONVERSATIONS = "conversations"
    TICKETS = "tickets"
    ANALYTICS = "analytics"


class Action(str, Enum):
    """Actions that can be performed on modules."""

    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    EXPORT = "export"
    INVITE = "invite"
    MANAGE = "manage"
    SEND = "send"
    REPLY = "reply"
    ASSIGN = "assign"


class PermissionKey(NamedTuple):
    """A permission is a combination of module and action."""
    module: str
    action: str

    def __str__(self) -> str:
        return f"{self.module}.{self.action}"

    @classmethod
    def from_string(cls, key: str) -> "PermissionKey":
        """Parse a permission string like 'contacts.view'."""
        parsed = parse_permission_key(key)
        if parsed is None:
            raise ValueError(f"Invalid permission format: {key}")
        return parsed


_CRUD = (Action.VIEW, Action.CREATE, Action.EDIT, Action.DELETE)

# Maps each module to its valid actions, in display order
PERMISSION_MATRIX: Dict[Module, Tuple[Action, ...]] = {
    Module.CONTACTS: _CRUD + (Action.EXPORT,),
    Module.COMPANIES: _CRUD + (Action.EXPORT,),
    Module.SEGMENTS: _CRUD,
    Module.DEALS: _CRUD + (Action.EXPORT,),
    Module.PIPELINES: _CRUD,
    Module.TAGS: _CRUD,
    Module.STATUSES: _CRUD,
    Module.LEAD_SOURCES: _CRUD,
    Module.USERS: (Action.VIEW, Action.INVITE, Action.EDIT, Action.DELETE),
    Module.PERMISSIONS: (Action.MANAGE,),
    Module.ORGANIZATION: (Action.VIEW, Action.EDIT, Action.DELETE),
    Module.CAMPAIGNS: _CRUD + (Action.SEND,),
    Module.CONVERSATIONS: (Action.VIEW, Action.REPLY, Action.ASSIGN, Action.MANAGE),
    Module.TICKETS: _CRUD + (Action.ASSIGN,),
    Module.ANALYTICS: (Action.VIEW, Action.EXPORT),
}


def _generate_permission_definitions() -> Dict[str, PermissionKey]:
    """Generate all valid permission combinations from the matrix."""
    permissions = {}
    for module, actions in PERMISSION_MATRIX.items():
        for action in actions:
            key = PermissionKey(module.value, action.value)
            permissions[str(key)] = key
    return permissions


# All valid permissions as an ordered dictionary: "module.action" -> PermissionKey
PERMISSION_DEFINITIONS = _generate_permission_definitions()


# Module -> category table used to group the role builder
CRM_MODULES = ("contacts", "companies", "segments", "deals", "pipelines")
SETTINGS_MODULES = ("tags", "statuses", "lead_sources")
TEAM_MODULES = ("users", "permissions")

MODULE_CATEGORIES: Dict[str, str] = {
    **{m: "crm" for m in CRM_MODULES},
    **{m: "settings" for m in SETTINGS_MODULES},
    **{m: "team" for m in TEAM_MODULES},
}

FIXED_CATEGORIES = ("crm", "settings", "team")

CATEGORY_LABELS: Dict[str, Dict[str, str]] = {
    "crm": {"en": "CRM", "ar": "إدارة العملاء"},
    "settings": {"en": "Settings", "ar": "الإعدادات"},
    "team": {"en": "Team Management", "ar": "إدارة الفريق"},
}

ACTION_LABELS: Dict[str, Dict[str, str]] = {
    "view": {"en": "View", "ar": "عرض"},
    "create": {"en": "Create", "ar": "إنشاء"},
    "edit": {"en": "Edit", "ar": "تعديل"},
    "delete": {"en": "Delete", "ar": "حذف"},
    "export": {"en": "Export", "ar": "تصدير"},
    "invite": {"en": "Invite", "ar": "دعوة"},
    "manage": {"en": "Manage", "ar": "إدارة"},
    "send": {"en": "Send", "ar": "إرسال"},
    "reply": {"en": "Reply", "ar": "الرد"},
    "assign": {"en": "Assign", "ar": "تعيين"},
}

MODULE_LABELS: Dict[str, Dict[str, str]] = {
    "contacts": {"en": "Contacts", "ar": "جهات الاتصال"},
    "companies": {"en": "Companies", "ar": "الشركات"},
    "segments": {"en": "Segments", "ar": "الشرائح"},
    "deals": {"en": "Deals", "ar": "الصفقات"},
    "pipelines": {"en": "Pipelines", "ar": "مسارات المبيعات"},
    "tags": {"en": "Tags", "ar": "الوسوم"},
    "statuses": {"en": "Contact Statuses", "ar": "حالات جهات الاتصال"},
    "lead_sources": {"en": "Lead Sources", "ar": "مصادر العملاء المحتملين"},
    "users": {"en": "Users", "ar": "المستخدمون"},
    "permissions": {"en": "Permissions", "ar": "الصلاحيات"},
    "organization": {"en": "Organization", "ar": "المؤسسة"},
    "campaigns": {"en": "Campaigns", "ar": "الحملات"},
    "conversations": {"en": "Conversations", "ar": "المحادثات"},
    "tickets": {"en": "Tickets", "ar": "التذاكر"},
    "analytics": {"en": "Analytics", "ar": "التحليلات"},
}

SUPPORTED_LOCALES = ("en", "ar")
DEFAULT_LOCALE = "en"


def normalize_locale(locale: Optional[str]) -> str:
    """Map a requested locale onto a supported one ("ar-SA" -> "ar")."""
    if not locale:
        return DEFAULT_LOCALE
    base = locale.split("-")[0].split("_")[0].lower()
    return base if base in SUPPORTED_LOCALES else DEFAULT_LOCALE


def parse_permission_key(key: str) -> Optional[PermissionKey]:
    """Split a key into module and action.

    Returns None unless the key has exactly one '.' separator with
    non-empty halves. Callers drop None results; they never grant them.
    """
    if not isinstance(key, str):
        return None
    parts = key.split(".")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return PermissionKey(parts[0], parts[1])


def is_valid_permission(key: str) -> bool:
    """Check if a permission string belongs to the catalog."""
    return key in PERMISSION_DEFINITIONS


def list_permissions() -> List[str]:
    """Get all catalog permission strings in matrix order."""
    return list(PERMISSION_DEFINITIONS.keys())


def get_permissions_for_module(module) -> List[str]:
    """Get all valid permission strings for a module."""
    try:
        module = Module(module)
    except ValueError:
        return []
    return [f"{module.value}.{action.value}" for action in PERMISSION_MATRIX[module]]


def category_for_module(module: str) -> str:
    """Modules outside the fixed table become their own category."""
    return MODULE_CATEGORIES.get(module, module)


def categorize(keys: Iterable[str]) -> Dict[str, List[str]]:
    """Group permission keys by category.

    Fixed categories come first (crm, settings, team), then standalone
    module categories in first-seen order. Duplicates and malformed keys
    are dropped; empty categories are omitted.
    """
    buckets: Dict[str, List[str]] = {name: [] for name in FIXED_CATEGORIES}
    seen = set()
    for key in keys:
        parsed = parse_permission_key(key)
        if parsed is None or key in seen:
            continue
        seen.add(key)
        buckets.setdefault(category_for_module(parsed.module), []).append(key)
    return {name: perms for name, perms in buckets.items() if perms}


def format_module_name(module: str, locale: str = DEFAULT_LOCALE) -> str:
    """Display name for a module, title-casing the slug when unknown."""
    labels = MODULE_LABELS.get(module)
    if labels:
        return labels[normalize_locale(locale)]
    return module.replace("_", " ").title()


def format_action_name(action: str, locale: str = DEFAULT_LOCALE) -> str:
    labels = ACTION_LABELS.get(action)
    if labels:
        return labels[normalize_locale(locale)]
    return action.capitalize()


def category_label(category: str, locale: str = DEFAULT_LOCALE) -> str:
    labels = CATEGORY_LABELS.get(category)
    if labels:
        return labels[normalize_locale(locale)]
    return format_module_name(category, locale)


def label(key: str, locale: str = DEFAULT_LOCALE, module_name: Optional[str] = None) -> str:
    """
    Compose "<Action> <Module>" for a permission key in the given locale.

    Args:
        key: Permission key such as "lead_sources.create"
        locale: Requested locale; unsupported locales fall back to English
        module_name: Pre-resolved module label (e.g. from menu items)

    Returns:
        Display label; malformed keys are returned unchanged
    """
    parsed = parse_permission_key(key)
    if parsed is None:
        return key
    if module_name is None:
        module_name = format_module_name(parsed.module, locale)
    return f"{format_action_name(parsed.action, locale)} {module_name}"
