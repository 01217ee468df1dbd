"""Platform capability probing.

Capabilities are resolved once per purchase attempt from the configured
collaborators, never by inspecting their types.
"""

from enum import Enum

from pydantic import BaseModel, Field

from iap_client.models.settings import PurchaseSettings


class ReceiptBackend(str, Enum):
    """Where receipts are persisted on this platform."""

    DEVICE = "device"
    FALLBACK = "fallback"
    NONE = "none"


class PlatformCapabilities(BaseModel):
    """Named capabilities of the current platform."""

    has_pay: bool = Field(..., description="A payment primitive is configured")
    has_add_receipt: bool = Field(..., description="The installed app can store receipts natively")
    has_local_storage: bool = Field(..., description="A local fallback store is configured")

    class Config:
        frozen = True

    @property
    def receipt_backend(self) -> ReceiptBackend:
        if self.has_add_receipt:
            return ReceiptBackend.DEVICE
        if self.has_local_storage:
            return ReceiptBackend.FALLBACK
        return ReceiptBackend.NONE


def resolve_capabilities(settings: PurchaseSettings) -> PlatformCapabilities:
    """Probe the configured collaborators for what they can do."""
    pay_platform = settings.pay_platform
    app_self = settings.app_self
    return PlatformCapabilities(
        has_pay=pay_platform is not None and callable(getattr(pay_platform, "pay", None)),
        has_add_receipt=app_self is not None and callable(getattr(app_self, "add_receipt", None)),
        has_local_storage=settings.local_storage is not None,
    )
