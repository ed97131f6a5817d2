"""GMB Dashboard: User Administration Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select

from gmb_dashboard.api.deps import get_principal, require_global
from gmb_dashboard.core.errors import ok
from gmb_dashboard.core.scope import ROLE_LEVELS
from gmb_dashboard.database import get_session
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.models.document_models import UserAccount
from gmb_dashboard.core.logging import get_logger

logger = get_logger("api.users")

router = APIRouter(prefix="/api/users", tags=["Users"])

PRIVATE_FIELDS = {"psw", "otp", "otp_expires", "reset_token", "reset_token_expires"}


# ── Request Models ──


class UserCreate(BaseModel):
    user: str = Field(..., min_length=1)
    mail: str = Field(..., min_length=1)
    org_email: str = ""
    psw: str = Field(..., min_length=1)
    role: str = "Branch"
    cluster: str = ""
    branch: str = ""
    logo: str = ""
    notify_phone_change: bool = False
    notify_name_change: bool = False
    notify_monthly_report: bool = False

    @field_validator("role")
    @classmethod
    def known_role(cls, v: str) -> str:
        if v not in ROLE_LEVELS:
            raise ValueError(f"must be one of {', '.join(ROLE_LEVELS)}")
        return v


class UserUpdate(BaseModel):
    user: Optional[str] = None
    mail: Optional[str] = None
    org_email: Optional[str] = None
    psw: Optional[str] = None
    role: Optional[str] = None
    cluster: Optional[str] = None
    branch: Optional[str] = None
    logo: Optional[str] = None
    notify_phone_change: Optional[bool] = None
    notify_name_change: Optional[bool] = None
    notify_monthly_report: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def known_role(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ROLE_LEVELS:
            raise ValueError(f"must be one of {', '.join(ROLE_LEVELS)}")
        return v


class NotificationPrefs(BaseModel):
    phoneChange: Optional[bool] = None
    nameChange: Optional[bool] = None
    monthlyReport: Optional[bool] = None


def _view(user: UserAccount) -> dict:
    return user.model_dump(exclude=PRIVATE_FIELDS)


def _get_or_404(session: Session, user_id: int) -> UserAccount:
    user = session.get(UserAccount, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── Own settings ──


@router.put("/me/notifications")
async def update_my_notifications(
    prefs: NotificationPrefs,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    """Toggle the caller's own email notifications."""
    if principal.user_id is None:
        raise HTTPException(status_code=404, detail="User not found")
    user = _get_or_404(session, principal.user_id)
    if prefs.phoneChange is not None:
        user.notify_phone_change = prefs.phoneChange
    if prefs.nameChange is not None:
        user.notify_name_change = prefs.nameChange
    if prefs.monthlyReport is not None:
        user.notify_monthly_report = prefs.monthlyReport
    session.add(user)
    session.commit()
    session.refresh(user)
    return ok(_view(user))


# ── Administration (global scope only) ──


@router.get("", dependencies=[Depends(require_global)])
async def list_users(session: Session = Depends(get_session)):
    users = session.exec(select(UserAccount).order_by(UserAccount.id)).all()
    return ok([_view(u) for u in users], count=len(users))


@router.get("/{user_id}", dependencies=[Depends(require_global)])
async def get_user(user_id: int, session: Session = Depends(get_session)):
    return ok(_view(_get_or_404(session, user_id)))


@router.post("", status_code=201, dependencies=[Depends(require_global)])
async def create_user(request: UserCreate, session: Session = Depends(get_session)):
    user = UserAccount(**request.model_dump())
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"Created {user.role} user", extra={"user": user.mail})
    return ok(_view(user))


@router.put("/{user_id}", dependencies=[Depends(require_global)])
async def update_user(user_id: int, request: UserUpdate, session: Session = Depends(get_session)):
    user = _get_or_404(session, user_id)
    for key, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, key, value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return ok(_view(user))


@router.delete("/{user_id}", dependencies=[Depends(require_global)])
async def delete_user(user_id: int, session: Session = Depends(get_session)):
    user = _get_or_404(session, user_id)
    session.delete(user)
    session.commit()
    logger.info(f"Deleted user id={user_id}", extra={"user": user.mail})
    return ok(message="User deleted successfully")
