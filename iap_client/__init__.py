"""In-app purchase client.

Orchestrates a purchase: payment JWT, platform payment dialog, transaction
polling, receipt storage, and product info.

Example:
    settings = configure(pay_platform=platform, app_self=app, local_storage=MemoryStorage())
    async with Purchaser(settings) as purchaser:
        info = await purchaser.purchase("some-guid", {"max_tries": 5})
"""

from iap_client.config import configure, load_settings
from iap_client.errors import (
    AddReceiptError,
    ApiError,
    ApiRequestError,
    ApiRequestTimeout,
    BadApiResponse,
    ConfigurationError,
    InvalidApp,
    InvalidAppOrigin,
    PayPlatformError,
    PayPlatformUnavailable,
    PurchaseError,
    PurchaseTimeout,
)
from iap_client.models import PollConfig, ProductInfo, PurchaseSettings
from iap_client.repositories.local_storage import JsonFileStorage, MemoryStorage
from iap_client.services.purchase_orchestrator import Purchaser, PurchaseStep, purchase

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "Purchaser",
    "PurchaseStep",
    "purchase",
    "configure",
    "load_settings",
    # Models
    "PollConfig",
    "ProductInfo",
    "PurchaseSettings",
    # Storage
    "JsonFileStorage",
    "MemoryStorage",
    # Errors
    "PurchaseError",
    "ConfigurationError",
    "PurchaseTimeout",
    "PayPlatformError",
    "PayPlatformUnavailable",
    "AddReceiptError",
    "InvalidApp",
    "InvalidAppOrigin",
    "ApiError",
    "ApiRequestError",
    "ApiRequestTimeout",
    "BadApiResponse",
]
