"""Alert review workflow.

Compliance staff move an alert out of `pending` into one of reviewed,
escalated, cleared or reported. The workflow always writes the requested
status; it does not enforce a transition table, so a reviewed alert can later
be escalated. Every review appends one immutable audit entry; if the audit
sink cannot take it, the alert is restored and TransientDependencyFailure
propagates to the caller. Role checks belong to the caller.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from aml_engine.errors import TransientDependencyFailure, ValidationFailure
from aml_engine.models import REVIEW_STATUSES, AuditEntry, ReviewResult, utcnow
from aml_engine.storage.alerts import AlertStore, AuditLog

log = logging.getLogger(__name__)


class ReviewWorkflow:
    def __init__(
        self,
        alert_store: AlertStore,
        audit_log: AuditLog,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.alert_store = alert_store
        self.audit_log = audit_log
        self.clock = clock

    def review_alert(
        self,
        alert_id: int,
        status: str,
        notes: Optional[str],
        reviewer_id: int,
    ) -> ReviewResult:
        """Apply a reviewer's decision to an alert and audit it.

        Raises ValidationFailure for an unknown target status or a missing
        reviewer, NotFound if the alert does not exist, and
        TransientDependencyFailure if the audit entry could not be recorded.
        """
        if status not in REVIEW_STATUSES:
            raise ValidationFailure(
                f"Invalid review status: {status}. Must be one of: {list(REVIEW_STATUSES)}"
            )
        if reviewer_id is None:
            raise ValidationFailure("A reviewer id is required")

        alert = self.alert_store.get(alert_id)
        previous_status = alert.status
        reviewed_at = self.clock()

        self.alert_store.patch_status(
            alert_id,
            status=status,
            reviewed_at=reviewed_at,
            review_notes=notes,
            reviewed_by=reviewer_id,
        )

        entry = AuditEntry(
            id=self.audit_log.next_id(),
            alert_id=alert_id,
            transaction_id=alert.transaction_id,
            previous_status=previous_status,
            new_status=status,
            notes=notes,
            reviewer_id=reviewer_id,
            recorded_at=reviewed_at,
        )
        try:
            self.audit_log.record(entry)
        except TransientDependencyFailure:
            # An unaudited review must not stick
            self.alert_store.patch_status(
                alert_id,
                status=alert.status,
                reviewed_at=alert.reviewed_at,
                review_notes=alert.review_notes,
                reviewed_by=alert.reviewed_by,
            )
            log.error("Review of AML alert #%s rolled back: audit sink unavailable", alert_id)
            raise

        log.info(
            "AML alert #%s reviewed by user %s: %s -> %s",
            alert_id, reviewer_id, previous_status, status,
        )

        return ReviewResult(
            message="Alert reviewed successfully",
            alert_id=alert_id,
            previous_status=previous_status,
            new_status=status,
            reviewed_at=reviewed_at,
        )
