"""In-memory ledger and user directory.

Stands in for the platform's transaction ledger and user table. The engine
only reads from it; writes come from the ledger routes. Transactions are
indexed by user id for the window lookups the rules perform. All data lives
in memory and is lost on restart.
"""

from datetime import datetime
from typing import Dict, List, Optional

from aml_engine.errors import NotFound
from aml_engine.models import Transaction, TransactionRef, UserProfile


class MemoryLedger:
    """Append-only transaction source plus a user directory."""

    def __init__(self) -> None:
        self._transactions: Dict[int, Transaction] = {}
        # Transactions indexed by user id for fast window lookups
        self._by_user: Dict[int, List[Transaction]] = {}
        self._users: Dict[int, UserProfile] = {}

    # -- transactions -------------------------------------------------------

    def next_transaction_id(self) -> int:
        return max(self._transactions, default=0) + 1

    def add(self, tx: Transaction) -> Transaction:
        """Append a transaction. Ids are unique; re-adding one is rejected."""
        if tx.id in self._transactions:
            raise ValueError(f"Transaction {tx.id} already recorded")
        self._transactions[tx.id] = tx
        if tx.user_id is not None:
            self._by_user.setdefault(tx.user_id, []).append(tx)
        return tx

    def get(self, transaction_id: int) -> Transaction:
        tx = self._transactions.get(transaction_id)
        if tx is None:
            raise NotFound("Transaction", transaction_id)
        return tx

    def list_by_user_in_window(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        exclude_id: Optional[int] = None,
        tx_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Transaction]:
        """Return a user's transactions with start <= created_at <= end."""
        results: List[Transaction] = []
        for t in self._by_user.get(user_id, []):
            if exclude_id is not None and t.id == exclude_id:
                continue
            if start is not None and t.created_at < start:
                continue
            if end is not None and t.created_at > end:
                continue
            if tx_type is not None and t.type != tx_type:
                continue
            if status is not None and t.status != status:
                continue
            results.append(t)
        return results

    def list_since(self, since: datetime) -> List[TransactionRef]:
        """Return (id, created_at) for every transaction since `since`, newest first."""
        refs = [
            TransactionRef(id=t.id, created_at=t.created_at)
            for t in self._transactions.values()
            if t.created_at >= since
        ]
        refs.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return refs

    # -- users --------------------------------------------------------------

    def add_user(self, user: UserProfile) -> UserProfile:
        self._users[user.id] = user
        return user

    def get_user(self, user_id: int) -> UserProfile:
        user = self._users.get(user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    def list_users_by_role(self, role: str) -> List[UserProfile]:
        return [u for u in self._users.values() if u.role == role]
