"""AML scan endpoints for single transactions and recent-window sweeps."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from aml_engine.models import Alert, BatchScanResult
from aml_engine.screening.orchestrator import ScanOrchestrator

router = APIRouter(prefix="/api/aml")


def _get_orchestrator(request: Request) -> ScanOrchestrator:
    """Retrieve the scan orchestrator from application state."""
    return request.app.state.orchestrator


@router.post("/scan/{transaction_id}", response_model=List[Alert])
async def scan_transaction(transaction_id: int, request: Request) -> List[Alert]:
    """Scan one transaction against every AML rule and persist its alerts."""
    return _get_orchestrator(request).scan_transaction(transaction_id)


@router.post("/scan", response_model=BatchScanResult)
async def scan_recent(
    request: Request,
    hours_back: Optional[float] = Query(default=None, gt=0),
) -> BatchScanResult:
    """Scan every transaction created in the last `hours_back` hours.

    Defaults to the configured `batch_hours_back` (24h).
    """
    return _get_orchestrator(request).scan_recent(hours_back)
