"""Tests for the remote payment API client."""

import json

import httpx
import pytest

from iap_client.api.client import PaymentApiClient
from iap_client.config import configure
from iap_client.errors import ApiRequestError, ApiRequestTimeout, BadApiResponse
from iap_client.models import PreparedPayment

API_URL_BASE = "https://payments.test"


def client_for(handler, **settings_overrides):
    """Build a PaymentApiClient whose requests go to handler."""
    settings = configure(api_url_base=API_URL_BASE, **settings_overrides)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PaymentApiClient(settings, http_client=http_client)


class TestUrls:
    """Test URL construction."""

    def test_versioned_url(self):
        client = PaymentApiClient(configure(api_url_base=API_URL_BASE))
        assert client.url("/webpay/inapp/prepare/") == f"{API_URL_BASE}/api/v1/webpay/inapp/prepare/"

    def test_unversioned_url(self):
        client = PaymentApiClient(configure(api_url_base=API_URL_BASE))
        assert client.url("/api/v1/x/", versioned=False) == f"{API_URL_BASE}/api/v1/x/"

    def test_absolute_url_passes_through(self):
        client = PaymentApiClient(configure(api_url_base=API_URL_BASE))
        assert client.url("https://other.test/status/") == "https://other.test/status/"

    def test_status_url_from_prepare_response(self):
        """Test that the server-provided status URL is not versioned twice."""
        client = PaymentApiClient(configure(api_url_base=API_URL_BASE))
        prepared = PreparedPayment(
            webpayJWT="jwt", contribStatusURL="/api/v1/webpay/inapp/transaction/some-guid/"
        )

        assert (
            client.status_url("some-guid", prepared)
            == f"{API_URL_BASE}/api/v1/webpay/inapp/transaction/some-guid/"
        )

    def test_status_url_template(self):
        client = PaymentApiClient(configure(api_url_base=API_URL_BASE))
        assert (
            client.status_url("some-guid")
            == f"{API_URL_BASE}/api/v1/webpay/inapp/transaction/some-guid/"
        )


class TestPreparePayment:
    """Test exchanging a product ID for a JWT."""

    @pytest.mark.asyncio
    async def test_prepare_payment(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "webpayJWT": "<jwt>",
                    "contribStatusURL": "/api/v1/webpay/inapp/transaction/some-guid/",
                },
            )

        prepared = await client_for(handler).prepare_payment("some-guid")

        assert prepared.webpayJWT == "<jwt>"
        assert seen[0].method == "POST"
        assert str(seen[0].url) == f"{API_URL_BASE}/api/v1/webpay/inapp/prepare/"
        assert json.loads(seen[0].content) == {"productId": "some-guid"}

    @pytest.mark.asyncio
    async def test_prepare_response_without_jwt(self):
        client = client_for(lambda request: httpx.Response(200, json={"other": 1}))

        with pytest.raises(BadApiResponse) as exc_info:
            await client.prepare_payment("some-guid")

        assert exc_info.value.product_info.product_id == "some-guid"


class TestTransactionStatus:
    """Test status queries."""

    @pytest.mark.asyncio
    async def test_completed_transaction(self):
        def handler(request):
            return httpx.Response(
                200, json={"status": "completed", "receipt": "r1", "pricePoint": 10}
            )

        record = await client_for(handler).get_transaction(
            "some-guid", f"{API_URL_BASE}/api/v1/webpay/inapp/transaction/some-guid/"
        )

        assert record.product_id == "some-guid"
        assert record.status == "completed"
        assert record.receipt == "r1"
        assert record.price_point == "10"
        assert record.known_status == "completed"

    @pytest.mark.asyncio
    async def test_missing_status(self):
        client = client_for(lambda request: httpx.Response(200, json={"receipt": "r1"}))

        with pytest.raises(BadApiResponse):
            await client.get_transaction("some-guid", f"{API_URL_BASE}/status/")


class TestProductMetadata:
    """Test product metadata lookups."""

    @pytest.mark.asyncio
    async def test_metadata_for_origin(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"guid": "some-guid", "name": "Magic Cheese"})

        metadata = await client_for(handler).get_product_metadata(
            "some-guid", "app://game.example.com"
        )

        assert metadata.name == "Magic Cheese"
        assert "/payments/" in seen[0].url.path
        assert seen[0].url.path.endswith("/in-app/some-guid/")

    @pytest.mark.asyncio
    async def test_stub_metadata_in_fake_mode(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"guid": "some-guid", "name": "Stub"})

        await client_for(handler, fake_products=True).get_product_metadata("some-guid")

        assert seen[0].url.path == "/api/v1/payments/stub-in-app-products/some-guid/"

    @pytest.mark.asyncio
    async def test_unknown_fields_ignored(self):
        def handler(request):
            return httpx.Response(
                200, json={"guid": "some-guid", "name": "Stub", "resource_uri": "/x/"}
            )

        metadata = await client_for(handler, fake_products=True).get_product_metadata("some-guid")
        assert metadata.guid == "some-guid"


class TestErrorMapping:
    """Test that transport failures are re-typed at the boundary."""

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = client_for(lambda request: httpx.Response(500, text="server error"))

        with pytest.raises(ApiRequestError) as exc_info:
            await client.prepare_payment("some-guid")

        assert "HTTP 500" in exc_info.value.message
        assert exc_info.value.product_info.product_id == "some-guid"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ApiRequestTimeout) as exc_info:
            await client_for(handler, api_timeout_ms=50).prepare_payment("some-guid")

        assert exc_info.value.code == "API_REQUEST_TIMEOUT"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ApiRequestError):
            await client_for(handler).prepare_payment("some-guid")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = client_for(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(BadApiResponse):
            await client.prepare_payment("some-guid")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        client = client_for(lambda request: httpx.Response(200, json=["completed"]))

        with pytest.raises(BadApiResponse):
            await client.get_transaction("some-guid", f"{API_URL_BASE}/status/")


class TestClientLifecycle:
    """Test HTTP client ownership."""

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = PaymentApiClient(configure(), http_client=http_client)

        await client.close()

        assert http_client.is_closed is False
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        client = PaymentApiClient(configure(api_timeout_ms=1500))
        http_client = client.http_client

        assert http_client.timeout.read == 1.5
        await client.close()

        assert http_client.is_closed is True
