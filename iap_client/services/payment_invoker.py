"""Payment Invoker - runs the platform payment dialog for one JWT.

The platform primitive is ``pay_platform.pay(jwts, on_success, on_error)``.
It reports exactly one outcome; this module turns it into a single awaited
result. A dismissed or rejected dialog is final for the attempt.
"""

from typing import Any, Optional

from iap_client.errors import PayPlatformError, PayPlatformUnavailable
from iap_client.logging_config import get_logger
from iap_client.models import PlatformResult, ProductInfo
from iap_client.utils.callbacks import await_callback_outcome
from iap_client.utils.capabilities import PlatformCapabilities

logger = get_logger(__name__)


class PaymentInvoker:
    """Invokes the platform payment dialog."""

    def __init__(self, pay_platform: Optional[Any], capabilities: PlatformCapabilities):
        """Initialize payment invoker.

        Args:
            pay_platform: Object exposing pay(jwts, on_success, on_error), or None
            capabilities: Capabilities probed for this attempt; has_pay gates the dialog
        """
        self._pay_platform = pay_platform
        self._capabilities = capabilities

    async def invoke_payment(self, jwt: str, product_id: str) -> PlatformResult:
        """Show the payment dialog for a JWT and wait for its outcome.

        Args:
            jwt: Payment token for this attempt
            product_id: Product being purchased, for error context

        Returns:
            PlatformResult parsed from the platform's success value

        Raises:
            PayPlatformError: If the platform reports an error (code is the
                platform's error name, e.g. DIALOG_CLOSED_BY_USER)
            PayPlatformUnavailable: If no payment primitive is configured
        """
        product_info = ProductInfo(product_id=product_id)
        if not self._capabilities.has_pay:
            logger.error("pay_platform_missing", product_id=product_id)
            raise PayPlatformUnavailable(
                "No platform payment primitive is configured", product_info=product_info
            )

        logger.info("payment_dialog_opened", product_id=product_id, jwt=jwt)
        outcome = await await_callback_outcome(
            lambda on_success, on_error: self._pay_platform.pay([jwt], on_success, on_error),
            operation="pay",
        )

        if not outcome.ok:
            logger.warning(
                "payment_dialog_error",
                product_id=product_id,
                error_name=outcome.error_name,
            )
            raise PayPlatformError(
                f"Payment platform reported an error: {outcome.error_name}",
                code=outcome.error_name,
                product_info=product_info,
            )

        result = PlatformResult.from_raw(outcome.value)
        logger.info(
            "payment_dialog_succeeded",
            product_id=product_id,
            status=result.status,
            has_receipt=result.receipt is not None,
        )
        return result
