"""Receipt store - persists proof of purchase on the device.

Receipts go to the installed app's native store when it has one, otherwise
to a JSON list in local storage. The local list is append-only and
deduplicated by exact string equality.
"""

import json
from typing import List, Optional

from iap_client.errors import AddReceiptError, ConfigurationError, PayPlatformUnavailable
from iap_client.logging_config import get_logger
from iap_client.models import ProductInfo, PurchaseSettings
from iap_client.utils.callbacks import await_callback_outcome
from iap_client.utils.capabilities import (
    PlatformCapabilities,
    ReceiptBackend,
    resolve_capabilities,
)

logger = get_logger(__name__)


class ReceiptStore:
    """Stores receipts through the backend the platform supports.

    The backend is chosen once, when the store is created.
    """

    def __init__(
        self,
        settings: PurchaseSettings,
        capabilities: Optional[PlatformCapabilities] = None,
    ):
        """Initialize receipt store.

        Args:
            settings: Settings holding app_self, local_storage and its key
            capabilities: Pre-resolved capabilities (probed from settings if not provided)
        """
        self._settings = settings
        self._capabilities = capabilities or resolve_capabilities(settings)

    @property
    def backend(self) -> ReceiptBackend:
        return self._capabilities.receipt_backend

    async def store_receipt(self, receipt: str, product_id: str) -> None:
        """Persist a receipt.

        Args:
            receipt: Opaque receipt string
            product_id: Product the receipt proves, for error context

        Raises:
            AddReceiptError: If the device store rejects the receipt
            PayPlatformUnavailable: If no storage mechanism exists
            ConfigurationError: If the local receipt list is corrupt
        """
        backend = self.backend
        logger.info(
            "receipt_store_started",
            backend=backend.value,
            product_id=product_id,
            receipt=receipt,
        )

        if backend == ReceiptBackend.DEVICE:
            await self._add_to_device(receipt, product_id)
        elif backend == ReceiptBackend.FALLBACK:
            self._add_to_local_storage(receipt, product_id)
        else:
            logger.error("no_receipt_storage", product_id=product_id)
            raise PayPlatformUnavailable(
                "No receipt storage is available: the app has no add_receipt() "
                "and local storage is disabled",
                product_info=ProductInfo(product_id=product_id),
            )

    async def _add_to_device(self, receipt: str, product_id: str) -> None:
        app_self = self._settings.app_self
        outcome = await await_callback_outcome(
            lambda on_success, on_error: app_self.add_receipt(receipt, on_success, on_error),
            operation="add_receipt",
        )
        if not outcome.ok:
            logger.error(
                "add_receipt_failed",
                product_id=product_id,
                error_name=outcome.error_name,
            )
            raise AddReceiptError(
                f"Error adding receipt to device: {outcome.error_name}",
                code=outcome.error_name,
                product_info=ProductInfo(product_id=product_id),
            )
        logger.info("receipt_stored", backend=ReceiptBackend.DEVICE.value, product_id=product_id)

    def _add_to_local_storage(self, receipt: str, product_id: str) -> None:
        # No await between read and write: the check-then-append is atomic on the loop.
        receipts = self._read_local_receipts(product_id)
        if receipt in receipts:
            logger.info(
                "receipt_already_stored",
                backend=ReceiptBackend.FALLBACK.value,
                product_id=product_id,
            )
            return

        receipts.append(receipt)
        try:
            self._settings.local_storage.set_item(
                self._settings.local_storage_key, json.dumps(receipts)
            )
        except (ValueError, OSError) as e:
            logger.error("local_storage_write_failed", product_id=product_id, error=str(e))
            raise PayPlatformUnavailable(
                f"Could not write receipts to local storage: {e}",
                product_info=ProductInfo(product_id=product_id),
            ) from e
        logger.info(
            "receipt_stored",
            backend=ReceiptBackend.FALLBACK.value,
            product_id=product_id,
            stored_count=len(receipts),
        )

    def _read_local_receipts(self, product_id: Optional[str] = None) -> List[str]:
        storage = self._settings.local_storage
        if storage is None:
            return []
        key = self._settings.local_storage_key
        product_info = ProductInfo(product_id=product_id) if product_id else None
        try:
            raw = storage.get_item(key)
        except (ValueError, OSError) as e:
            logger.error("local_storage_read_failed", product_id=product_id, error=str(e))
            raise ConfigurationError(
                f"Could not read receipts from local storage: {e}",
                product_info=product_info,
            ) from e
        if not raw:
            return []
        try:
            receipts = json.loads(raw)
        except ValueError:
            receipts = None
        if not isinstance(receipts, list) or not all(isinstance(r, str) for r in receipts):
            raise ConfigurationError(
                f"Local storage key {key!r} does not hold a JSON list of receipts",
                product_info=product_info,
            )
        return receipts

    def get_receipts(self) -> List[str]:
        """Get receipts stored in local storage, in append order."""
        return self._read_local_receipts()

    def __repr__(self) -> str:
        return f"ReceiptStore(backend={self.backend.value})"
