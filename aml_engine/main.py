"""AML Transaction Monitoring API.

Inspects investment-platform transactions as they complete and in scheduled
sweeps, raises severity-tagged alerts from a fixed heuristic rule set, scores
users' composite AML risk, and exposes an auditable alert review workflow to
compliance staff.

Run with:
    python3 -m uvicorn aml_engine.main:app --host 0.0.0.0 --port 8000
"""

import json
import logging
from pathlib import Path
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aml_engine.dashboard import DashboardAggregator
from aml_engine.errors import NotFound, TransientDependencyFailure, ValidationFailure
from aml_engine.models import AmlConfig
from aml_engine.review.queries import AlertQueries
from aml_engine.review.workflow import ReviewWorkflow
from aml_engine.risk.scorer import RiskScorer
from aml_engine.routes import alerts, audit, ledger, risk, rules, scanning
from aml_engine.screening.orchestrator import ScanOrchestrator
from aml_engine.storage.alerts import AlertStore, AuditLog
from aml_engine.storage.memory import MemoryLedger
from aml_engine.storage.notifications import NotificationOutbox

# Resolve the data/ directory relative to this file so the server works
# regardless of which directory uvicorn is launched from.
DATA_DIR = Path(__file__).parent.parent / "data"

log = logging.getLogger(__name__)

app = FastAPI(
    title="AML Transaction Monitoring API",
    description=(
        "Heuristic anti-money-laundering monitoring for platform transactions. "
        "Flags high-value transfers, structuring, rapid deposit-withdrawal "
        "cycles and large transactions from new accounts."
    ),
    version="1.0.0",
)


def load_config() -> AmlConfig:
    """Load tunable thresholds from data/aml_config.json, or use defaults."""
    config_path = DATA_DIR / "aml_config.json"
    if config_path.exists():
        with open(config_path, "r") as f:
            return AmlConfig(**json.load(f))
    return AmlConfig()


@app.on_event("startup")
async def startup() -> None:
    """Initialize the in-memory collaborators and the AML components."""
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # basicConfig is a no-op once handlers exist, so set the level explicitly
    logging.getLogger().setLevel(config.log_level)

    ledger_store = MemoryLedger()
    alert_store = AlertStore()
    audit_log = AuditLog()
    notifier = NotificationOutbox()

    # Attach to app state for dependency injection in routes
    app.state.config = config
    app.state.ledger = ledger_store
    app.state.alert_store = alert_store
    app.state.audit_log = audit_log
    app.state.notifier = notifier
    app.state.orchestrator = ScanOrchestrator(ledger_store, alert_store, notifier, config)
    app.state.scorer = RiskScorer(ledger_store, alert_store, config)
    app.state.workflow = ReviewWorkflow(alert_store, audit_log)
    app.state.dashboard = DashboardAggregator(alert_store, ledger_store, config)
    app.state.queries = AlertQueries(alert_store, ledger_store, config)

    log.info("AML engine started")


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(TransientDependencyFailure)
async def dependency_failure_handler(
    request: Request, exc: TransientDependencyFailure
) -> JSONResponse:
    log.error("Dependency failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Mount all API routers
app.include_router(ledger.router)
app.include_router(scanning.router)
app.include_router(alerts.router)
app.include_router(risk.router)
app.include_router(audit.router)
app.include_router(rules.router)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "healthy"}
