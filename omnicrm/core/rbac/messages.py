"""User-facing text for error codes returned by the permission engine."""

from typing import Dict, Optional

from .checker import INSUFFICIENT_PERMISSIONS
from .permissions import normalize_locale

GENERIC_ERROR = "GENERIC_ERROR"

ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    INSUFFICIENT_PERMISSIONS: {
        "en": "You don't have permission to perform this action.",
        "ar": "ليس لديك صلاحية لتنفيذ هذا الإجراء.",
    },
    GENERIC_ERROR: {
        "en": "Something went wrong. Please try again.",
        "ar": "حدث خطأ ما. يرجى المحاولة مرة أخرى.",
    },
}


def localize_error(code: Optional[str], locale: Optional[str] = None) -> str:
    """Sentence to show a user for `code`.

    Unknown codes map to the generic message; the raw code is never shown.
    """
    messages = ERROR_MESSAGES.get(code or "", ERROR_MESSAGES[GENERIC_ERROR])
    return messages[normalize_locale(locale)]
