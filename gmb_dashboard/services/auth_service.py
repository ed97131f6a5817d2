"""GMB Dashboard: Authentication.

Password login, emailed one-time codes and password reset links. Stored
passwords are compared by plain string equality.
"""

from datetime import timedelta
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import HTTPException
from sqlalchemy import or_
from sqlmodel import Session, select

from gmb_dashboard.config import settings
from gmb_dashboard.core.security import (
    as_naive_utc,
    create_access_token,
    generate_otp,
    generate_reset_token,
    utcnow,
)
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.models.document_models import UserAccount
from gmb_dashboard.services.alert_service import record_alert
from gmb_dashboard.services.mailer import (
    Mailer,
    MailDeliveryError,
    render_otp_email,
    render_reset_email,
)
from gmb_dashboard.core.logging import get_logger

logger = get_logger("auth")


# ── Helpers ──


def _users_by_email(session: Session, email: str) -> List[UserAccount]:
    email = email.strip()
    return list(
        session.exec(
            select(UserAccount).where(
                or_(UserAccount.mail == email, UserAccount.org_email == email)
            )
        ).all()
    )


def _user_by_email(session: Session, email: str) -> UserAccount:
    users = _users_by_email(session, email)
    if not users:
        raise HTTPException(status_code=404, detail="User not found")
    return users[0]


def principal_for(user: UserAccount) -> Principal:
    return Principal(
        user_id=user.id,
        name=user.user,
        email=user.mail or user.org_email,
        role=user.role or "Branch",
        cluster=user.cluster or None,
        branch=user.branch or None,
    )


def public_user(user: UserAccount) -> dict:
    """User fields safe to return to the browser."""
    return {
        "id": user.id,
        "name": user.user,
        "email": user.mail or user.org_email,
        "logo": user.logo,
        "role": user.role,
        "cluster": user.cluster,
        "branch": user.branch,
        "notifications": {
            "phoneChange": user.notify_phone_change,
            "nameChange": user.notify_name_change,
            "monthlyReport": user.notify_monthly_report,
        },
    }


def _alert_location(principal: Principal) -> str:
    if principal.role == "Branch":
        return principal.branch or ""
    if principal.role == "Cluster":
        return principal.cluster or ""
    return "Dashboard"


def _session_payload(session: Session, principal: Principal, user: dict) -> dict:
    """Token + user, and a login alert unless the super admin is signing in."""
    if principal.email.lower() != settings.super_admin_email.lower():
        record_alert(
            session,
            user=principal.name,
            email=principal.email,
            role=principal.role,
            location=_alert_location(principal),
            cluster=principal.cluster,
        )
    return {
        "user": user,
        "token": create_access_token(principal.claims()),
        "token_type": "bearer",
    }


def _send(mailer: Mailer, to: str, subject: str, html: str) -> None:
    try:
        mailer.send(to, subject, html)
    except MailDeliveryError as e:
        raise HTTPException(status_code=500, detail=f"Failed to send email: {e}")


# ── Login ──


def login(session: Session, email: str, password: str) -> dict:
    for user in _users_by_email(session, email):
        if user.psw == password:
            logger.info("Login succeeded", extra={"user": email})
            return _session_payload(session, principal_for(user), public_user(user))

    if email == settings.admin_bypass_email and password == settings.admin_bypass_password:
        logger.info("Admin bypass login", extra={"user": email})
        principal = Principal(name="Admin", email=email, role="Admin")
        user = {"name": "Admin", "email": email, "role": "Admin"}
        return _session_payload(session, principal, user)

    logger.warning("Login failed", extra={"user": email})
    raise HTTPException(status_code=401, detail="Invalid credentials")


# ── One-time codes ──


def send_otp(session: Session, mailer: Mailer, email: str) -> None:
    user = _user_by_email(session, email)
    user.otp = generate_otp()
    user.otp_expires = utcnow() + timedelta(minutes=settings.otp_ttl_minutes)
    session.add(user)
    session.commit()
    _send(
        mailer,
        email,
        "Your login code",
        render_otp_email(user.user, user.otp, settings.otp_ttl_minutes),
    )


def verify_otp(session: Session, email: str, otp: str) -> dict:
    users = _users_by_email(session, email)
    user: Optional[UserAccount] = users[0] if users else None
    if (
        user is None
        or not user.otp
        or user.otp != otp
        or user.otp_expires is None
        or not as_naive_utc(user.otp_expires) > utcnow()
    ):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP")

    user.otp = None
    user.otp_expires = None
    session.add(user)
    session.commit()
    session.refresh(user)
    return _session_payload(session, principal_for(user), public_user(user))


# ── Password reset ──


def reset_link(email: str, token: str) -> str:
    query = urlencode({"email": email, "token": token})
    return f"{settings.frontend_url.rstrip('/')}/reset-password?{query}"


def forgot_password(session: Session, mailer: Mailer, email: str) -> None:
    user = _user_by_email(session, email)
    user.reset_token = generate_reset_token()
    user.reset_token_expires = utcnow() + timedelta(minutes=settings.reset_token_ttl_minutes)
    session.add(user)
    session.commit()
    _send(
        mailer,
        email,
        "Reset your password",
        render_reset_email(user.user, reset_link(email, user.reset_token), settings.reset_token_ttl_minutes),
    )


def reset_password(session: Session, email: str, token: str, new_password: str) -> None:
    users = _users_by_email(session, email)
    user: Optional[UserAccount] = users[0] if users else None
    if (
        user is None
        or not user.reset_token
        or user.reset_token != token
        or user.reset_token_expires is None
        or not as_naive_utc(user.reset_token_expires) > utcnow()
    ):
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.psw = new_password
    user.reset_token = None
    user.reset_token_expires = None
    session.add(user)
    session.commit()
    logger.info("Password reset", extra={"user": email})
