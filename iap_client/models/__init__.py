"""Pydantic models for settings, API payloads, and domain objects."""

# Settings models
from .settings import (
    PollConfig,
    PurchaseSettings,
)

# Product models
from .product import (
    ProductInfo,
    ProductMetadata,
)

# Transaction models
from .transaction import (
    PreparedPayment,
    TransactionRecord,
    TransactionStatus,
    parse_status,
)

# Stub payment API models
from .stub_api import (
    PrepareRequest,
    ResetResponse,
    ScriptTransactionRequest,
    ScriptTransactionResponse,
    StubCatalogConfig,
    StubProductDefinition,
    StubTransaction,
    StubTransactionResponse,
)

# Platform models
from .platform import (
    CallbackOutcome,
    PlatformResult,
)

__all__ = [
    # Settings
    "PollConfig",
    "PurchaseSettings",
    # Product
    "ProductInfo",
    "ProductMetadata",
    # Transaction
    "PreparedPayment",
    "TransactionRecord",
    "TransactionStatus",
    "parse_status",
    # Platform
    "CallbackOutcome",
    "PlatformResult",
    # Stub payment API
    "PrepareRequest",
    "ResetResponse",
    "ScriptTransactionRequest",
    "ScriptTransactionResponse",
    "StubCatalogConfig",
    "StubProductDefinition",
    "StubTransaction",
    "StubTransactionResponse",
]
