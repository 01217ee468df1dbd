"""Simple state change logging for purchase attempts and transactions.

Tracks state transitions with before/after values for debugging and auditing.
"""

from typing import Any, Optional

from iap_client.logging_config import get_logger

logger = get_logger(__name__)


def log_purchase_step(
    product_id: str,
    old_step: Any,
    new_step: Any,
    reason: Optional[str] = None,
    **extra_context: Any,
) -> None:
    """Log a purchase attempt moving to its next step.

    Args:
        product_id: Product being purchased
        old_step: Previous step
        new_step: New step
        reason: Reason for the transition
        **extra_context: Additional context (error code, backend, etc.)
    """
    logger.info(
        "purchase_step_changed",
        product_id=product_id,
        old_step=str(old_step),
        new_step=str(new_step),
        reason=reason,
        **extra_context,
    )


def log_transaction_status_change(
    product_id: str,
    old_status: Optional[str],
    new_status: str,
    attempt: int,
    **extra_context: Any,
) -> None:
    """Log a transaction status observed while polling.

    Only logs when the status differs from the previous poll.

    Args:
        product_id: Product the transaction pays for
        old_status: Status seen on the previous poll (None on the first)
        new_status: Status seen now
        attempt: 1-based poll attempt number
        **extra_context: Additional context
    """
    if old_status == new_status:
        return
    logger.info(
        "transaction_status_changed",
        product_id=product_id,
        old_status=old_status,
        new_status=new_status,
        attempt=attempt,
        **extra_context,
    )
