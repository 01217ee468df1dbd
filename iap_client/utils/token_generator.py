"""Payment token, transaction ID and receipt generation utilities.

Builds the test artifacts used in fake-products mode and by the stub payment
API. Fake JWTs are real HS256 tokens signed with a well-known key, so they
are never accepted by a production payment provider.
"""

import base64
import json
import time
import uuid
from typing import Any

import jwt

FAKE_JWT_SECRET = "iap-client-fake-products"
FAKE_JWT_ISSUER = "iap-client-fake"
PAY_REQUEST_TYPE = "mozilla/payments/pay/v1"


def generate_fake_jwt(
    product_id: str,
    simulate_result: str = "postback",
    secret: str = FAKE_JWT_SECRET,
) -> str:
    """Generate a locally signed payment token for fake-products mode.

    Format: HS256 JWT whose request simulates a payment result.

    Args:
        product_id: Product the token pays for
        simulate_result: Simulated result ("postback" succeeds, "chargeback" fails)
        secret: Signing key

    Returns:
        Encoded JWT string
    """
    now = int(time.time())
    payload = {
        "iss": FAKE_JWT_ISSUER,
        "aud": "marketplace.firefox.com",
        "typ": PAY_REQUEST_TYPE,
        "iat": now,
        "exp": now + 3600,
        "request": {
            "id": product_id,
            "pricePoint": 10,
            "name": "Fake product",
            "description": "fake product",
            "simulate": {"result": simulate_result},
            "transactionId": generate_transaction_id(),
        },
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def decode_fake_jwt(token: str, secret: str = FAKE_JWT_SECRET) -> dict[str, Any]:
    """Decode and verify a fake payment token.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired or not ours
    """
    return jwt.decode(
        token,
        secret,
        algorithms=["HS256"],
        audience="marketplace.firefox.com",
        issuer=FAKE_JWT_ISSUER,
    )


def generate_transaction_id(prefix: str = "txn") -> str:
    """Generate a unique transaction ID.

    Format: {prefix}_{uuid}_{timestamp}
    Example: txn_a1b2c3d4e5f6a7b8_1700000000000
    """
    token_id = uuid.uuid4().hex[:16]
    timestamp = int(time.time() * 1000)
    return f"{prefix}_{token_id}_{timestamp}"


def generate_test_receipt(product_id: str, app_origin: str, transaction_id: str) -> str:
    """Generate a test receipt for a completed stub transaction.

    Receipts are opaque to the client; this one is a base64 JSON blob so that
    two transactions never share a receipt.
    """
    body = {
        "typ": "test-receipt",
        "product": {"url": app_origin, "storedata": f"inapp_id={product_id}"},
        "user": {"type": "directed-identifier", "value": uuid.uuid4().hex},
        "iss": "https://payments.example.com",
        "nbf": int(time.time()),
        "reissue": f"https://payments.example.com/reissue/{transaction_id}",
    }
    encoded = base64.urlsafe_b64encode(json.dumps(body, sort_keys=True).encode("utf-8"))
    return f"{transaction_id}~{encoded.decode('ascii')}"
