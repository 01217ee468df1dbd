"""Utility functions and helpers for the purchase client."""

from iap_client.utils.app_origin import get_self_origin
from iap_client.utils.callbacks import await_callback_outcome, error_name_of
from iap_client.utils.capabilities import (
    PlatformCapabilities,
    ReceiptBackend,
    resolve_capabilities,
)
from iap_client.utils.token_generator import (
    decode_fake_jwt,
    generate_fake_jwt,
    generate_test_receipt,
    generate_transaction_id,
)

__all__ = [
    # Platform probing
    "PlatformCapabilities",
    "ReceiptBackend",
    "resolve_capabilities",
    "get_self_origin",
    # Callback bridge
    "await_callback_outcome",
    "error_name_of",
    # Token generation
    "generate_fake_jwt",
    "decode_fake_jwt",
    "generate_transaction_id",
    "generate_test_receipt",
]
