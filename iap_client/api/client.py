"""Remote payment API client.

Wraps the three endpoints the purchase flow needs:
- POST <api>/webpay/inapp/prepare/ - exchange a product ID for a payment JWT
- GET  transaction status URL - current status of a payment
- GET  <api>/payments/{origin}/in-app/{product_id}/ - product metadata
  (or the stub products endpoint in fake-products mode)

Transport failures are re-typed as ApiError subclasses here, at the boundary.
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from iap_client.errors import ApiRequestError, ApiRequestTimeout, BadApiResponse
from iap_client.logging_config import get_logger
from iap_client.models import (
    PreparedPayment,
    ProductInfo,
    ProductMetadata,
    PurchaseSettings,
    TransactionRecord,
)

logger = get_logger(__name__)


class PaymentApiClient:
    """Async client for the remote payment API."""

    def __init__(
        self,
        settings: PurchaseSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize API client.

        Args:
            settings: Settings providing base URL, prefix, paths and timeout
            http_client: HTTP client to use (created lazily if not provided)
        """
        self.settings = settings
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            timeout = self.settings.api_timeout_seconds
            self._http_client = (
                httpx.AsyncClient(timeout=timeout) if timeout is not None else httpx.AsyncClient()
            )
        return self._http_client

    def url(self, path: str, versioned: bool = True) -> str:
        """Build an absolute API URL.

        Absolute URLs pass through; server-provided paths are not versioned again.
        """
        if path.startswith(("http://", "https://")):
            return path
        prefix = self.settings.api_version_prefix if versioned else ""
        return f"{self.settings.api_url_base}{prefix}{path}"

    async def _request(
        self, method: str, url: str, product_id: str, **kwargs: Any
    ) -> dict[str, Any]:
        """Make a request and decode its JSON object body."""
        product_info = ProductInfo(product_id=product_id)
        if self.settings.api_timeout_seconds is not None and not self._owns_client:
            kwargs.setdefault("timeout", self.settings.api_timeout_seconds)

        logger.debug("api_request_started", method=method, url=url)
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("api_request_timeout", method=method, url=url, error=str(e))
            raise ApiRequestTimeout(
                f"{method} {url} timed out", product_info=product_info
            )
        except httpx.HTTPError as e:
            logger.error(
                "api_request_failed",
                method=method,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ApiRequestError(
                f"{method} {url} failed: {e}", product_info=product_info
            )

        if response.status_code >= 400:
            logger.error(
                "api_error_response",
                method=method,
                url=url,
                status=response.status_code,
                text=response.text[:200],
            )
            raise ApiRequestError(
                f"{method} {url} returned HTTP {response.status_code}",
                product_info=product_info,
            )

        try:
            data = response.json()
        except ValueError:
            raise BadApiResponse(
                f"{method} {url} returned a non-JSON body", product_info=product_info
            )
        if not isinstance(data, dict):
            raise BadApiResponse(
                f"{method} {url} returned {type(data).__name__}, expected an object",
                product_info=product_info,
            )

        logger.debug("api_request_completed", method=method, url=url, status=response.status_code)
        return data

    async def prepare_payment(self, product_id: str) -> PreparedPayment:
        """Request a payment JWT for a product.

        Raises:
            ApiError: On transport, HTTP or decoding failures
        """
        url = self.url(self.settings.prepare_jwt_api_url)
        data = await self._request("POST", url, product_id, json={"productId": product_id})
        try:
            return PreparedPayment(**data)
        except ValidationError as e:
            raise BadApiResponse(
                f"Prepare response is missing fields: {e}",
                product_info=ProductInfo(product_id=product_id),
            )

    def status_url(self, product_id: str, prepared: Optional[PreparedPayment] = None) -> str:
        """Transaction status URL: the server-provided one, else the template."""
        if prepared is not None and prepared.contribStatusURL:
            return self.url(prepared.contribStatusURL, versioned=False)
        return self.url(self.settings.transaction_status_api_url.format(product_id=product_id))

    async def get_transaction(self, product_id: str, status_url: str) -> TransactionRecord:
        """Query the current transaction status."""
        data = await self._request("GET", status_url, product_id)
        if "status" not in data:
            raise BadApiResponse(
                f"Transaction response from {status_url} has no status",
                product_info=ProductInfo(product_id=product_id),
            )
        return TransactionRecord.from_response(product_id, data)

    async def get_product_metadata(
        self, product_id: str, origin: Optional[str] = None
    ) -> ProductMetadata:
        """Fetch product metadata.

        Args:
            product_id: Product identifier
            origin: App origin; ignored in fake-products mode

        Raises:
            ApiError: On transport, HTTP or decoding failures
        """
        if self.settings.fake_products:
            path = self.settings.stub_product_info_api_url.format(product_id=product_id)
        else:
            path = self.settings.product_info_api_url.format(
                origin=quote(origin or "", safe=""), product_id=product_id
            )

        data = await self._request("GET", self.url(path), product_id)
        try:
            return ProductMetadata(**data)
        except ValidationError as e:
            raise BadApiResponse(
                f"Product response is missing fields: {e}",
                product_info=ProductInfo(product_id=product_id),
            )

    async def close(self) -> None:
        """Close HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
