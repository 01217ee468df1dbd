"""Shared fixtures: fake platform collaborators and a mock payment API.

The fakes mirror what a real runtime provides:
- FakePayPlatform: pay(jwts, on_success, on_error)
- FakeInstalledApp: manifest data and add_receipt(receipt, on_success, on_error)
- FakePaymentApi: httpx.MockTransport handler for prepare/status/product endpoints
"""

import json
from typing import Any, Optional

import httpx
import pytest

from iap_client.api.client import PaymentApiClient
from iap_client.config import configure
from iap_client.repositories.local_storage import MemoryStorage

API_URL_BASE = "https://payments.test"
APP_ORIGIN = "app://game.example.com"


class FakePayPlatform:
    """Payment primitive that answers immediately with a fixed outcome."""

    def __init__(self, result: Any = None, error: Optional[str] = None):
        self.result = result
        self.error = error
        self.calls: list[list[str]] = []

    def pay(self, jwts, on_success, on_error):
        self.calls.append(list(jwts))
        if self.error is not None:
            on_error({"name": self.error})
        else:
            on_success(self.result)


class FakeInstalledApp:
    """Installed app object with an optional native receipt store."""

    def __init__(
        self,
        origin: Optional[str] = APP_ORIGIN,
        manifest_type: str = "privileged",
        manifest_url: str = "",
        receipt_error: Optional[str] = None,
    ):
        self.origin = origin
        self.manifest = {"type": manifest_type}
        if origin:
            self.manifest["origin"] = origin
        self.manifest_url = manifest_url
        self.receipt_error = receipt_error
        self.receipts: list[str] = []

    def add_receipt(self, receipt, on_success, on_error):
        if self.receipt_error is not None:
            on_error({"name": self.receipt_error})
            return
        self.receipts.append(receipt)
        on_success()


class FakePaymentApi:
    """Scripted remote payment API.

    Status responses are served from ``statuses`` one per query; the last one
    repeats. Completed responses carry ``receipt``.
    """

    def __init__(
        self,
        statuses: Optional[list[str]] = None,
        receipt: Optional[str] = "receipt-1",
        price_point: str = "10",
        error_code: Optional[str] = None,
        product_name: str = "Magic Cheese",
    ):
        self.statuses = list(statuses or ["completed"])
        self.receipt = receipt
        self.price_point = price_point
        self.error_code = error_code
        self.product_name = product_name
        self.requests: list[httpx.Request] = []

    def _count(self, fragment: str) -> int:
        return sum(1 for r in self.requests if fragment in r.url.path)

    @property
    def prepare_requests(self) -> int:
        return self._count("/webpay/inapp/prepare/")

    @property
    def status_queries(self) -> int:
        return self._count("/webpay/inapp/transaction/")

    @property
    def product_requests(self) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if "/in-app/" in r.url.path or "/stub-in-app-products/" in r.url.path
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/webpay/inapp/prepare/"):
            product_id = json.loads(request.content)["productId"]
            return httpx.Response(
                200,
                json={
                    "webpayJWT": f"jwt-for-{product_id}",
                    "contribStatusURL": f"/api/v1/webpay/inapp/transaction/{product_id}/",
                },
            )

        if "/webpay/inapp/transaction/" in path:
            status = self.statuses[0]
            if len(self.statuses) > 1:
                self.statuses.pop(0)
            body: dict[str, Any] = {"status": status}
            if status == "completed":
                body["receipt"] = self.receipt
                body["pricePoint"] = self.price_point
            if status == "failed" and self.error_code:
                body["errorCode"] = self.error_code
            return httpx.Response(200, json=body)

        if "/stub-in-app-products/" in path or "/in-app/" in path:
            product_id = path.rstrip("/").rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "guid": product_id,
                    "name": self.product_name,
                    "logo_url": "http://site/image.png",
                    "app": "fxpay-example",
                    "price_id": 237,
                    "active": True,
                },
            )

        return httpx.Response(404, json={"detail": "not found"})


@pytest.fixture
def payment_api():
    """Scripted payment API answering "completed" with receipt-1."""
    return FakePaymentApi()


@pytest.fixture
def pay_platform():
    """Payment primitive that succeeds without reporting a status."""
    return FakePayPlatform()


@pytest.fixture
def storage():
    """Empty in-memory local storage."""
    return MemoryStorage()


@pytest.fixture
def make_settings(pay_platform, storage):
    """Factory for settings wired to the fake platform.

    Defaults: website origin, local storage fallback, 1 ms poll interval.
    """

    def _make(**overrides):
        values = {
            "api_url_base": API_URL_BASE,
            "app_origin": APP_ORIGIN,
            "pay_platform": pay_platform,
            "local_storage": storage,
            "poll_interval_ms": 1,
        }
        values.update(overrides)
        return configure(**values)

    return _make


@pytest.fixture
def make_api_client():
    """Factory for a PaymentApiClient routed to a FakePaymentApi."""

    def _make(settings, api: FakePaymentApi) -> PaymentApiClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(api.handler))
        return PaymentApiClient(settings, http_client=http_client)

    return _make


@pytest.fixture
def fake_pay_platform_cls():
    return FakePayPlatform


@pytest.fixture
def fake_app_cls():
    return FakeInstalledApp


@pytest.fixture
def fake_api_cls():
    return FakePaymentApi
