"""GMB Dashboard: Login Alerts.

Alerts are visible up the hierarchy only:
  super admin → every alert
  Admin       → alerts raised by Cluster and Branch users
  Cluster     → alerts raised by Branch users of the same cluster
"""

from typing import List, Optional

from sqlalchemy import false, func
from sqlmodel import Session, select

from gmb_dashboard.config import settings
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.models.document_models import LoginAlert
from gmb_dashboard.core.logging import get_logger

logger = get_logger("alerts")


def record_alert(
    session: Session,
    user: str,
    role: str,
    location: str,
    email: str = "",
    cluster: Optional[str] = None,
    type: str = "LOGIN",
) -> LoginAlert:
    alert = LoginAlert(
        user=user,
        email=email,
        role=role,
        location=location,
        cluster=cluster or None,
        type=type,
    )
    session.add(alert)
    session.commit()
    session.refresh(alert)
    logger.info(f"{type} alert recorded for {role} user", extra={"user": email or user})
    return alert


def _visibility(principal: Principal) -> list:
    if principal.email and principal.email.lower() == settings.super_admin_email.lower():
        return []
    if principal.role == "Admin":
        return [LoginAlert.role.in_(["Cluster", "Branch"])]
    if principal.role == "Cluster" and principal.cluster:
        return [LoginAlert.role == "Branch", LoginAlert.cluster == principal.cluster]
    return [false()]


def visible_alerts(session: Session, principal: Principal, unread_only: bool = False) -> List[LoginAlert]:
    """Alerts `principal` may see, newest first."""
    query = select(LoginAlert).where(*_visibility(principal))
    if unread_only:
        query = query.where(LoginAlert.read == False)  # noqa: E712
    query = query.order_by(LoginAlert.timestamp.desc(), LoginAlert.id.desc())  # type: ignore
    return list(session.exec(query).all())


def unread_count(session: Session, principal: Principal) -> int:
    query = (
        select(func.count())
        .select_from(LoginAlert)
        .where(LoginAlert.read == False, *_visibility(principal))  # noqa: E712
    )
    return session.exec(query).one()


def mark_read(session: Session, principal: Principal, alert_id: int) -> Optional[LoginAlert]:
    query = select(LoginAlert).where(LoginAlert.id == alert_id, *_visibility(principal))
    alert = session.exec(query).first()
    if alert is None:
        return None
    alert.read = True
    session.add(alert)
    session.commit()
    session.refresh(alert)
    return alert


def mark_all_read(session: Session, principal: Principal) -> int:
    alerts = visible_alerts(session, principal, unread_only=True)
    for alert in alerts:
        alert.read = True
        session.add(alert)
    session.commit()
    return len(alerts)
