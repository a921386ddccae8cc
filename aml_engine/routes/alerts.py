"""Alert listing, detail and review endpoints for compliance staff."""

from typing import Optional

from fastapi import APIRouter, Header, Query, Request

from aml_engine.models import (
    AlertDetail,
    AlertPage,
    AlertStatus,
    ReviewRequest,
    ReviewResult,
    Severity,
)
from aml_engine.review.queries import DEFAULT_PAGE_SIZE, AlertQueries

router = APIRouter(prefix="/api/aml")


def _get_queries(request: Request) -> AlertQueries:
    return request.app.state.queries


@router.get("/alerts", response_model=AlertPage)
async def list_alerts(
    request: Request,
    status: Optional[AlertStatus] = Query(default=None),
    severity: Optional[Severity] = Query(default=None),
    user_id: Optional[int] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
) -> AlertPage:
    """List alerts newest first, filtered by status, severity and/or user."""
    return _get_queries(request).list_alerts(
        status=status, severity=severity, user_id=user_id, page=page, limit=limit
    )


@router.get("/alerts/{alert_id}", response_model=AlertDetail)
async def get_alert(alert_id: int, request: Request) -> AlertDetail:
    return _get_queries(request).get_alert(alert_id)


@router.post("/alerts/{alert_id}/review", response_model=ReviewResult)
async def review_alert(
    alert_id: int,
    review: ReviewRequest,
    request: Request,
    reviewer_id: int = Header(alias="X-Reviewer-Id"),
) -> ReviewResult:
    """Record a compliance reviewer's decision on an alert.

    Authentication and role checks happen upstream; the reviewer is
    identified by the X-Reviewer-Id header.
    """
    return request.app.state.workflow.review_alert(
        alert_id, review.status, review.notes, reviewer_id
    )
