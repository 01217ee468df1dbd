"""Transaction Poller - waits for a payment to settle on the remote API.

Polling covers the window between the platform dialog closing and the
payment provider confirming the transaction.
"""

import asyncio
from typing import Optional

from iap_client.api.client import PaymentApiClient
from iap_client.errors import ConfigurationError, PayPlatformError, PurchaseTimeout
from iap_client.logging_config import get_logger
from iap_client.models import (
    PollConfig,
    ProductInfo,
    TransactionRecord,
    TransactionStatus,
)
from iap_client.state_logger import log_transaction_status_change

logger = get_logger(__name__)


def check_transaction(record: TransactionRecord) -> Optional[TransactionRecord]:
    """Apply the terminal-status rule to a transaction record.

    Args:
        record: Latest transaction record

    Returns:
        The record if it completed, None if it is still pending/incomplete

    Raises:
        PayPlatformError: If the transaction failed (code from the remote API)
        ConfigurationError: If the status is not a known status
    """
    status = record.known_status
    product_info = ProductInfo(product_id=record.product_id, price_point=record.price_point)

    if status is None:
        logger.error(
            "invalid_transaction_status",
            product_id=record.product_id,
            status=record.status,
        )
        raise ConfigurationError(
            f"Transaction for {record.product_id} is in an invalid state: {record.status!r}",
            code="INVALID_TRANSACTION_STATE",
            product_info=product_info,
        )
    if status == TransactionStatus.COMPLETED:
        return record
    if status == TransactionStatus.FAILED:
        code = record.error_code or "TRANSACTION_FAILED"
        logger.warning("transaction_failed", product_id=record.product_id, code=code)
        raise PayPlatformError(
            f"Transaction for {record.product_id} failed: {code}",
            code=code,
            product_info=product_info,
        )
    return None


class TransactionPoller:
    """Polls a transaction status URL until the transaction settles."""

    def __init__(self, api_client: PaymentApiClient):
        """Initialize transaction poller.

        Args:
            api_client: Client used for status queries
        """
        self._api_client = api_client

    async def poll_transaction(
        self,
        product_id: str,
        status_url: str,
        poll_config: PollConfig,
    ) -> TransactionRecord:
        """Query the transaction until it completes.

        Issues at most poll_config.max_tries queries, sleeping
        poll_config.poll_interval_ms between them (never after the last one).

        Args:
            product_id: Product the transaction pays for
            status_url: Absolute transaction status URL
            poll_config: Attempt limit and delay

        Returns:
            The completed TransactionRecord

        Raises:
            PurchaseTimeout: If max_tries queries pass without a terminal status
            PayPlatformError: If the transaction failed
            ConfigurationError: If an unknown status is reported (no retry)
            ApiError: If a status query itself fails
        """
        last_status: Optional[str] = None

        for attempt in range(1, poll_config.max_tries + 1):
            record = await self._api_client.get_transaction(product_id, status_url)
            log_transaction_status_change(
                product_id=product_id,
                old_status=last_status,
                new_status=record.status,
                attempt=attempt,
            )
            last_status = record.status

            completed = check_transaction(record)
            if completed is not None:
                logger.info(
                    "transaction_completed",
                    product_id=product_id,
                    attempts=attempt,
                )
                return completed

            if attempt < poll_config.max_tries:
                logger.debug(
                    "transaction_poll_retry",
                    product_id=product_id,
                    status=record.status,
                    attempt=attempt,
                    delay_ms=poll_config.poll_interval_ms,
                )
                await asyncio.sleep(poll_config.poll_interval_ms / 1000)

        logger.warning(
            "transaction_poll_timeout",
            product_id=product_id,
            max_tries=poll_config.max_tries,
            last_status=last_status,
        )
        raise PurchaseTimeout(
            f"Transaction for {product_id} did not settle after "
            f"{poll_config.max_tries} status checks (last status: {last_status})",
            product_info=ProductInfo(product_id=product_id),
        )
