"""Ledger and user-directory endpoints.

These feed the in-memory collaborators the engine reads from. Appending a
completed transaction triggers its single-transaction AML scan.
"""

from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Request

from aml_engine.models import (
    Alert,
    LedgerPostResult,
    Transaction,
    TransactionRequest,
    UserProfile,
)
from aml_engine.storage.memory import MemoryLedger

router = APIRouter(prefix="/api/ledger")


def _get_ledger(request: Request) -> MemoryLedger:
    """Retrieve the ledger from application state."""
    return request.app.state.ledger


@router.post("/users", response_model=UserProfile, status_code=201)
async def register_user(user: UserProfile, request: Request) -> UserProfile:
    """Add or replace a user snapshot in the directory."""
    return _get_ledger(request).add_user(user)


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user(user_id: int, request: Request) -> UserProfile:
    return _get_ledger(request).get_user(user_id)


@router.post("/transactions", response_model=LedgerPostResult, status_code=201)
async def record_transaction(
    body: TransactionRequest,
    request: Request,
) -> LedgerPostResult:
    """Append a transaction to the ledger.

    A transaction recorded as `completed` is scanned straight away when
    `scan_on_completion` is enabled; the alerts it raised are returned.
    """
    ledger = _get_ledger(request)
    tx = ledger.add(
        Transaction(
            id=ledger.next_transaction_id(),
            created_at=body.created_at or datetime.now(timezone.utc),
            **body.model_dump(exclude={"created_at"}),
        )
    )

    alerts: List[Alert] = []
    if tx.status == "completed" and request.app.state.config.scan_on_completion:
        alerts = request.app.state.orchestrator.scan_transaction(tx.id)

    return LedgerPostResult(transaction=tx, alerts=alerts)


@router.get("/users/{user_id}/transactions", response_model=List[Transaction])
async def get_user_transactions(
    user_id: int,
    request: Request,
    hours: int = 24,
) -> List[Transaction]:
    """Get a user's transactions within the last N hours."""
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    return _get_ledger(request).list_by_user_in_window(user_id, start=since)
