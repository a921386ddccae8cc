"""Review audit trail and notification outbox endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from aml_engine.models import AuditEntry, Notification
from aml_engine.storage.alerts import AuditLog

router = APIRouter(prefix="/api")


def _get_audit_log(request: Request) -> AuditLog:
    """Retrieve the audit log from application state."""
    return request.app.state.audit_log


@router.get("/audit", response_model=List[AuditEntry])
async def get_audit_log(
    request: Request,
    alert_id: Optional[int] = Query(default=None),
) -> List[AuditEntry]:
    """Retrieve review audit entries, optionally for a single alert."""
    return _get_audit_log(request).entries(alert_id=alert_id)


@router.get("/notifications/{user_id}", response_model=List[Notification])
async def get_notifications(user_id: int, request: Request) -> List[Notification]:
    """Notifications delivered to a user, oldest first."""
    return request.app.state.notifier.for_user(user_id)
