"""User risk report and compliance dashboard endpoints."""

from fastapi import APIRouter, Request

from aml_engine.models import DashboardStats, RiskReport

router = APIRouter(prefix="/api/aml")


@router.get("/users/{user_id}/risk", response_model=RiskReport)
async def get_user_risk(user_id: int, request: Request) -> RiskReport:
    """Compute the user's composite AML risk score on demand."""
    return request.app.state.scorer.score_user(user_id)


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(request: Request) -> DashboardStats:
    return request.app.state.dashboard.get_dashboard_stats()
