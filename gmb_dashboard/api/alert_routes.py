"""GMB Dashboard: Login Alert Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from gmb_dashboard.api.deps import get_principal
from gmb_dashboard.core.errors import ok
from gmb_dashboard.core.scope import ScopeViolation
from gmb_dashboard.database import get_session
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.services import alert_service

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


class AlertCreate(BaseModel):
    user: str = Field(..., min_length=1)
    email: str = ""
    role: Optional[str] = Field(None, description="Defaults to the caller's role")
    location: str = ""
    cluster: Optional[str] = Field(None, description="Defaults to the caller's cluster")
    type: str = "LOGIN"


@router.get("")
async def list_alerts(
    unread: bool = Query(False, description="Only unread alerts"),
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    """Alerts visible to the caller, newest first."""
    alerts = alert_service.visible_alerts(session, principal, unread_only=unread)
    return ok(
        [a.model_dump() for a in alerts],
        count=len(alerts),
        unread_count=alert_service.unread_count(session, principal),
    )


@router.post("", status_code=201)
async def create_alert(
    request: AlertCreate,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    """Record an alert. Non-admin callers may only raise alerts as themselves."""
    fields = request.model_dump()
    fields["role"] = fields["role"] or principal.role
    fields["cluster"] = fields["cluster"] or principal.cluster
    if not principal.scope.is_global and (
        fields["role"] != principal.role or fields["cluster"] != principal.cluster
    ):
        raise ScopeViolation("Alerts can only be raised for your own role and cluster")
    alert = alert_service.record_alert(session, **fields)
    return ok(alert.model_dump())


@router.put("/read-all")
async def mark_all_read(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    updated = alert_service.mark_all_read(session, principal)
    return ok({"updated": updated})


@router.put("/{alert_id}/read")
async def mark_read(
    alert_id: int,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    alert = alert_service.mark_read(session, principal, alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return ok(alert.model_dump())
