"""In-memory notification outbox.

Every notification is kept in the outbox and, when a transport is configured,
handed on to it. A transport error surfaces as TransientDependencyFailure;
callers on scan paths catch and log it.
"""

from typing import Any, Callable, Dict, List, Optional

from aml_engine.errors import TransientDependencyFailure
from aml_engine.models import Notification, utcnow


class NotificationOutbox:
    def __init__(self, transport: Optional[Callable[[Notification], None]] = None) -> None:
        self._sent: List[Notification] = []
        self.transport = transport

    def send(
        self,
        user_id: int,
        kind: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            kind=kind,
            title=title,
            body=body,
            data=data or {},
            created_at=utcnow(),
        )
        if self.transport is not None:
            try:
                self.transport(notification)
            except Exception as exc:
                raise TransientDependencyFailure(
                    f"Notification to user {user_id} not delivered: {exc}"
                ) from exc
        self._sent.append(notification)
        return notification

    def for_user(self, user_id: int) -> List[Notification]:
        return [n for n in self._sent if n.user_id == user_id]

    def all(self) -> List[Notification]:
        return list(self._sent)
