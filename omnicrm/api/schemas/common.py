"""Common schemas for the OmniCRM API."""

from typing import Generic, TypeVar, List, Optional
from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def create(cls, items: List[T], total: int, page: int, per_page: int):
        pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(items=items, total=total, page=page, per_page=per_page, pages=pages)


class PermissionDeniedResponse(BaseModel):
    """Body of every 403 produced by the permission engine."""
    error: str = "INSUFFICIENT_PERMISSIONS"
    required_permission: Optional[str] = None


DENIED_RESPONSES = {403: {"model": PermissionDeniedResponse}}
