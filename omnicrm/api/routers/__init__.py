"""API routers for OmniCRM."""

from . import auth
from . import contacts
from . import companies
from . import segments
from . import deals
from . import pipelines
from . import users
from . import roles
from . import health
from . import lookups

__all__ = [
    "auth",
    "contacts",
    "companies",
    "segments",
    "deals",
    "pipelines",
    "users",
    "roles",
    "health",
    "lookups",
]
