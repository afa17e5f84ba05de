"""FastAPI binding for the enforcement adapter."""

from functools import wraps
from typing import Callable

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from omnicrm.core.rbac.enforcement import EnforcementAdapter, required_permission
from omnicrm.services.principals import DatabaseRoleRegistry, load_principal


def enforce(resource: str, operation: str):
    """
    Decorator factory gating a FastAPI endpoint behind resource.operation.

    The endpoint must declare `db` and `current_user` dependencies. The
    principal is loaded from the database on each request and the decision
    comes from EnforcementAdapter.check_operation; on DENY the endpoint body
    never runs and the client receives 403 with
    {"error": "INSUFFICIENT_PERMISSIONS", "required_permission": <key>}.

    Usage:
        @router.post("/contacts")
        @enforce("contacts", "create")
        async def create_contact(
            data: ContactCreate,
            db: Session = Depends(get_db),
            current_user: User = Depends(get_current_user),
        ):
            ...
    """
    # Unknown pairs fail at import time
    required_permission(resource, operation)

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_user = kwargs.get("current_user")
            db = kwargs.get("db")

            if current_user is None or db is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required"
                )

            adapter = EnforcementAdapter(DatabaseRoleRegistry(db, current_user.org_id))
            decision = adapter.check_operation(load_principal(db, current_user), resource, operation)

            if not decision.allowed:
                return JSONResponse(
                    status_code=status.HTTP_403_FORBIDDEN,
                    content=decision.to_response(),
                )

            return await func(*args, **kwargs)

        return wrapper
    return decorator
