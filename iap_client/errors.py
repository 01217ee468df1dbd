"""Purchase error taxonomy.

Every failure the purchase flow delivers is a PurchaseError subclass carrying
a machine-readable code and, when known, the product it concerns.
"""

from typing import Any, Optional

from iap_client.models.product import ProductInfo


class PurchaseError(Exception):
    """Base exception for all purchase flow errors."""

    default_code = "PURCHASE_ERROR"

    def __init__(
        self,
        message: str = "",
        code: Optional[str] = None,
        product_info: Optional[ProductInfo] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.product_info = product_info

    @property
    def kind(self) -> str:
        return type(self).__name__

    def with_product_info(self, product_id: str) -> "PurchaseError":
        """Attach minimal product info unless some is already present."""
        if self.product_info is None:
            self.product_info = ProductInfo(product_id=product_id)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
            "product_info": self.product_info.model_dump() if self.product_info else None,
        }

    def __str__(self) -> str:
        return f"{self.kind}({self.code}): {self.message}" if self.message else f"{self.kind}({self.code})"

    def __repr__(self) -> str:
        product_id = self.product_info.product_id if self.product_info else None
        return f"{self.kind}(code={self.code!r}, message={self.message!r}, product_id={product_id!r})"


class ConfigurationError(PurchaseError):
    """Raised when settings are invalid or a transaction reports an unknown status."""

    default_code = "CONFIGURATION_ERROR"


class PurchaseTimeout(PurchaseError):
    """Raised when polling runs out of attempts before the transaction settles."""

    default_code = "PURCHASE_TIMEOUT"


class PayPlatformError(PurchaseError):
    """Raised when the platform payment dialog reports an error or the transaction fails."""

    default_code = "PAY_PLATFORM_ERROR"


class PayPlatformUnavailable(PurchaseError):
    """Raised when a required platform capability is missing."""

    default_code = "PAY_PLATFORM_UNAVAILABLE"


class AddReceiptError(PurchaseError):
    """Raised when the device receipt store rejects a receipt."""

    default_code = "ADD_RECEIPT_ERROR"


class InvalidApp(PurchaseError):
    """Raised when the calling application cannot be identified."""

    default_code = "INVALID_APP"


class InvalidAppOrigin(InvalidApp):
    """Raised when the calling application's origin cannot be derived."""

    default_code = "INVALID_APP_ORIGIN"


class ApiError(PurchaseError):
    """Base exception for remote payment API failures."""

    default_code = "API_ERROR"


class ApiRequestError(ApiError):
    """Raised on transport failures and non-success HTTP responses."""

    default_code = "API_REQUEST_ERROR"


class ApiRequestTimeout(ApiError):
    """Raised when a request exceeds the configured timeout."""

    default_code = "API_REQUEST_TIMEOUT"


class BadApiResponse(ApiError):
    """Raised when a response body cannot be decoded or lacks required fields."""

    default_code = "BAD_API_RESPONSE"
