from functools import lru_cache
from typing import Generator
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from omnicrm.db.session import SessionLocal
from omnicrm.db.models import User
from omnicrm.core.security import decode_token
from omnicrm.core.config import get_settings
from omnicrm.common.config import CatalogConfig, build_menu_labels, load_typed_config
from omnicrm.core.rbac.discovery import MenuLabelLookup

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    identity = decode_token(token)
    if identity is None:
        raise credentials_exception

    user_id, org_id = identity
    user = db.query(User).filter(User.id == user_id, User.org_id == org_id).first()
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def get_org_object(db: Session, model, object_id, org_id, detail: str = "Not found"):
    """Fetch a row scoped to the caller's organization or raise 404."""
    obj = db.query(model).filter(model.id == object_id, model.org_id == org_id).first()
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return obj


@lru_cache
def get_catalog() -> CatalogConfig:
    """Catalog file contents, loaded once per process."""
    return load_typed_config(get_settings().catalog_file)


def get_menu_labels() -> MenuLabelLookup:
    return build_menu_labels(get_catalog())
