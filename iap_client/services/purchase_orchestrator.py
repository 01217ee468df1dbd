"""Purchase Orchestrator - runs one in-app purchase from JWT to product info.

Sequence of one attempt:
    REQUESTING_TOKEN -> AWAITING_PLATFORM -> RESOLVING -> STORING_RECEIPT -> RESOLVED
with FAILED reachable from every step. Each attempt delivers exactly one
outcome: a ProductInfo or a PurchaseError carrying the product ID.
"""

import asyncio
import uuid
from collections.abc import Callable
from enum import Enum
from typing import Any, Optional, Union

from iap_client.api.client import PaymentApiClient
from iap_client.config import resolve_poll_config
from iap_client.errors import ConfigurationError, PurchaseError
from iap_client.logging_config import bind_context, get_logger, log_deprecation, unbind_context
from iap_client.models import (
    PlatformResult,
    PollConfig,
    ProductInfo,
    PurchaseSettings,
    TransactionRecord,
)
from iap_client.repositories.receipt_store import ReceiptStore
from iap_client.services.payment_invoker import PaymentInvoker
from iap_client.services.transaction_poller import TransactionPoller, check_transaction
from iap_client.state_logger import log_purchase_step
from iap_client.utils.app_origin import get_self_origin
from iap_client.utils.capabilities import resolve_capabilities
from iap_client.utils.token_generator import generate_fake_jwt

logger = get_logger(__name__)

PurchaseCallback = Callable[[Optional[PurchaseError], Optional[ProductInfo]], Any]
PurchaseOptions = Union[PollConfig, dict, None]


class PurchaseStep(str, Enum):
    """Steps of a purchase attempt."""

    STARTED = "started"
    REQUESTING_TOKEN = "requesting_token"
    AWAITING_PLATFORM = "awaiting_platform"
    RESOLVING = "resolving"
    STORING_RECEIPT = "storing_receipt"
    RESOLVED = "resolved"  # terminal success
    FAILED = "failed"  # terminal failure


class _PurchaseAttempt:
    """Step tracking for a single purchase() call."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        self.purchase_id = uuid.uuid4().hex[:12]
        self.step = PurchaseStep.STARTED

    def advance(self, new_step: PurchaseStep, reason: Optional[str] = None, **extra: Any) -> None:
        log_purchase_step(
            product_id=self.product_id,
            old_step=self.step.value,
            new_step=new_step.value,
            reason=reason,
            **extra,
        )
        self.step = new_step


class Purchaser:
    """Runs purchases against the remote payment API and the platform.

    Holds no per-purchase state; concurrent purchases only share the
    local receipt list.
    """

    def __init__(
        self,
        settings: PurchaseSettings,
        api_client: Optional[PaymentApiClient] = None,
    ):
        """Initialize purchaser.

        Args:
            settings: Validated settings (see iap_client.config.configure)
            api_client: API client to use (created from settings if not provided)
        """
        self.settings = settings
        self._api_client = api_client if api_client is not None else PaymentApiClient(settings)
        self._poller = TransactionPoller(self._api_client)

    @property
    def api_client(self) -> PaymentApiClient:
        return self._api_client

    def purchase(
        self,
        product_id: str,
        options_or_callback: Union[PurchaseOptions, PurchaseCallback] = None,
        callback: Optional[PurchaseCallback] = None,
    ) -> "asyncio.Task[ProductInfo]":
        """Start a purchase.

        Supports purchase(id), purchase(id, options), purchase(id, callback)
        and purchase(id, options, callback). Must be called with a running
        event loop.

        Args:
            product_id: Product to buy
            options_or_callback: Polling options ({"max_tries", "poll_interval_ms"}
                or camelCase) or a legacy callback
            callback: Legacy callback receiving (error, product_info)

        Returns:
            Task resolving to ProductInfo or raising a PurchaseError. With a
            callback, the callback also receives the outcome, exactly once.
        """
        return self._start(product_id, options_or_callback, callback)

    def _start(
        self,
        product_id: str,
        options_or_callback: Union[PurchaseOptions, PurchaseCallback],
        callback: Optional[PurchaseCallback],
        close_when_done: bool = False,
    ) -> "asyncio.Task[ProductInfo]":
        options: Any = options_or_callback
        usage_error: Optional[PurchaseError] = None
        if callable(options_or_callback):
            if callback is not None:
                usage_error = ConfigurationError(
                    "purchase() received two callbacks", code="INCORRECT_USAGE"
                )
            callback, options = options_or_callback, None

        task = asyncio.get_running_loop().create_task(
            self._attempt(product_id, options, usage_error, close_when_done)
        )

        if callback is not None:
            log_deprecation(
                "purchase() callbacks are deprecated; await the returned task instead",
                "0.1.0",
            )
            task.add_done_callback(
                lambda done: _deliver_to_callback(done, callback, product_id)
            )
        return task

    async def _attempt(
        self,
        product_id: str,
        options: Any,
        usage_error: Optional[PurchaseError],
        close_when_done: bool,
    ) -> ProductInfo:
        try:
            if usage_error is not None:
                raise usage_error.with_product_info(product_id)
            try:
                poll_config = resolve_poll_config(self.settings, options)
            except PurchaseError as e:
                raise e.with_product_info(product_id)
            return await self.run_purchase(product_id, poll_config)
        finally:
            if close_when_done:
                await self._api_client.close()

    async def run_purchase(self, product_id: str, poll_config: PollConfig) -> ProductInfo:
        """Run one purchase attempt to its terminal state.

        Args:
            product_id: Product to buy
            poll_config: Polling options for the RESOLVING step

        Returns:
            ProductInfo whose product_id equals the requested one

        Raises:
            PurchaseError: Exactly one typed error, with product_info attached
        """
        attempt = _PurchaseAttempt(product_id)
        bind_context(purchase_id=attempt.purchase_id, product_id=product_id)
        logger.info(
            "purchase_started",
            fake_products=self.settings.fake_products,
            max_tries=poll_config.max_tries,
            poll_interval_ms=poll_config.poll_interval_ms,
        )

        try:
            capabilities = resolve_capabilities(self.settings)

            attempt.advance(PurchaseStep.REQUESTING_TOKEN)
            origin = None if self.settings.fake_products else get_self_origin(self.settings)
            jwt, status_url = await self._request_token(product_id)

            attempt.advance(PurchaseStep.AWAITING_PLATFORM)
            invoker = PaymentInvoker(self.settings.pay_platform, capabilities)
            platform_result = await invoker.invoke_payment(jwt, product_id)

            attempt.advance(PurchaseStep.RESOLVING, platform_status=platform_result.status)
            record = await self._resolve_transaction(
                product_id, platform_result, status_url, poll_config
            )

            if record.receipt:
                attempt.advance(
                    PurchaseStep.STORING_RECEIPT,
                    backend=capabilities.receipt_backend.value,
                )
                receipt_store = ReceiptStore(self.settings, capabilities)
                await receipt_store.store_receipt(record.receipt, product_id)

            metadata = await self._api_client.get_product_metadata(product_id, origin)
            product_info = ProductInfo.from_metadata(
                product_id,
                metadata,
                price_point=record.price_point,
                receipt=record.receipt,
            )

            attempt.advance(PurchaseStep.RESOLVED)
            logger.info("purchase_completed", name=product_info.name)
            return product_info

        except PurchaseError as e:
            e.with_product_info(product_id)
            attempt.advance(
                PurchaseStep.FAILED,
                reason=e.kind,
                code=e.code,
                failed_step=attempt.step.value,
            )
            raise
        finally:
            unbind_context("purchase_id", "product_id")

    async def _request_token(self, product_id: str) -> tuple[str, str]:
        """Get a payment JWT and the status URL for its transaction."""
        if self.settings.fake_products:
            logger.info("fake_jwt_generated", product_id=product_id)
            return generate_fake_jwt(product_id), self._api_client.status_url(product_id)

        prepared = await self._api_client.prepare_payment(product_id)
        return prepared.webpayJWT, self._api_client.status_url(product_id, prepared)

    async def _resolve_transaction(
        self,
        product_id: str,
        platform_result: PlatformResult,
        status_url: str,
        poll_config: PollConfig,
    ) -> TransactionRecord:
        """Settle the transaction, polling only when the platform did not.

        A status reported by the platform is checked before any poll, so a
        failed or unrecognized one never costs a status query.
        """
        if platform_result.status is not None:
            reported = TransactionRecord(
                product_id=product_id,
                status=platform_result.status,
                receipt=platform_result.receipt,
                price_point=platform_result.price_point,
                raw=platform_result.raw if isinstance(platform_result.raw, dict) else {},
            )
            completed = check_transaction(reported)
            if completed is not None:
                logger.info("polling_skipped", product_id=product_id, status=reported.status)
                return completed

        record = await self._poller.poll_transaction(product_id, status_url, poll_config)
        if record.receipt is None and platform_result.receipt is not None:
            record = record.model_copy(update={"receipt": platform_result.receipt})
        return record

    async def close(self) -> None:
        """Release the API client's HTTP resources."""
        await self._api_client.close()

    async def __aenter__(self) -> "Purchaser":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def _deliver_to_callback(
    task: "asyncio.Task[ProductInfo]",
    callback: PurchaseCallback,
    product_id: str,
) -> None:
    """Hand a finished purchase task to a legacy (error, product_info) callback."""
    if task.cancelled():
        error: Optional[BaseException] = PurchaseError(
            "Purchase attempt was cancelled",
            code="PURCHASE_CANCELLED",
            product_info=ProductInfo(product_id=product_id),
        )
    else:
        error = task.exception()

    if error is None:
        callback(None, task.result())
        return

    product_info = getattr(error, "product_info", None) or ProductInfo(product_id=product_id)
    callback(error, product_info)


def purchase(
    product_id: str,
    options_or_callback: Union[PurchaseOptions, PurchaseCallback] = None,
    callback: Optional[PurchaseCallback] = None,
    *,
    settings: PurchaseSettings,
) -> "asyncio.Task[ProductInfo]":
    """Run a single purchase with a throwaway Purchaser.

    Same calling conventions as Purchaser.purchase(). The HTTP client is
    closed once the attempt finishes.
    """
    purchaser = Purchaser(settings)
    return purchaser._start(product_id, options_or_callback, callback, close_when_done=True)
