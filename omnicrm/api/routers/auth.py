from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_db, get_current_user
from omnicrm.api.schemas.auth import MeResponse, PermissionSummary, Token, UserResponse
from omnicrm.common.logger import get_logger
from omnicrm.db.models import User
from omnicrm.core.security import verify_password, create_access_token
from omnicrm.services.principals import permission_summary

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """Login and get access token."""
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive user"
        )

    user.last_login = datetime.utcnow()
    db.commit()

    return Token(access_token=create_access_token(user.id, user.org_id))


@router.get("/me", response_model=MeResponse)
def get_me(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get current user info with role, overrides and effective permissions."""
    return MeResponse(
        user=UserResponse.model_validate(current_user),
        permissions=PermissionSummary(**permission_summary(db, current_user)),
    )
