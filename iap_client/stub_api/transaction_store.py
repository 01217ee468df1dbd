"""Stub transaction store - in-memory transactions of the stub payment API.

Thread-safe dictionary-based storage, one current transaction per product.
"""

import threading
from typing import Dict, List, Optional

from iap_client.models import StubTransaction


class TransactionNotFoundError(Exception):
    """Raised when no transaction exists for a product."""

    pass


class StubTransactionStore:
    """In-memory storage for stub transactions and status scripts.

    A script set for a product applies to every transaction created for it
    afterwards, until reset.
    """

    def __init__(self, default_statuses: Optional[List[str]] = None):
        """Initialize store.

        Args:
            default_statuses: Statuses new transactions report when no script is set
        """
        self._transactions: Dict[str, StubTransaction] = {}
        self._scripts: Dict[str, tuple[List[str], Optional[str]]] = {}
        self._default_statuses = list(default_statuses or ["completed"])
        self._lock = threading.RLock()

    def set_script(
        self, product_id: str, statuses: List[str], error_code: Optional[str] = None
    ) -> None:
        """Script the statuses a product's next transactions report."""
        with self._lock:
            self._scripts[product_id] = (list(statuses), error_code)

    def create(
        self,
        transaction_id: str,
        product_id: str,
        receipt: Optional[str],
        price_point: Optional[str],
    ) -> StubTransaction:
        """Create (or replace) the current transaction for a product."""
        with self._lock:
            statuses, error_code = self._scripts.get(
                product_id, (self._default_statuses, None)
            )
            transaction = StubTransaction(
                transaction_id=transaction_id,
                product_id=product_id,
                statuses=list(statuses),
                receipt=receipt,
                price_point=price_point,
                error_code=error_code,
            )
            self._transactions[product_id] = transaction
            return transaction

    def get_by_product_id(self, product_id: str) -> StubTransaction:
        """Get the current transaction for a product.

        Raises:
            TransactionNotFoundError: If none exists
        """
        with self._lock:
            transaction = self._transactions.get(product_id)
            if transaction is None:
                raise TransactionNotFoundError(f"No transaction for product: {product_id}")
            return transaction

    def poll(self, product_id: str) -> tuple[StubTransaction, str]:
        """Serve one status query: returns the transaction and the status to report."""
        with self._lock:
            transaction = self.get_by_product_id(product_id)
            return transaction, transaction.advance()

    def count(self) -> int:
        with self._lock:
            return len(self._transactions)

    def clear(self) -> int:
        """Remove all transactions and scripts; returns how many transactions were removed."""
        with self._lock:
            removed = len(self._transactions)
            self._transactions.clear()
            self._scripts.clear()
            return removed

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"StubTransactionStore(transactions={self.count()})"
