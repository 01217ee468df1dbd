"""Transaction models - prepared payments and transaction status records."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class TransactionStatus(str, Enum):
    """Known transaction statuses reported by the remote API."""

    PENDING = "pending"
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"  # terminal success
    FAILED = "failed"  # terminal failure


def parse_status(value: Any) -> Optional[TransactionStatus]:
    """Map a raw status value to a TransactionStatus, None when unrecognized."""
    try:
        return TransactionStatus(value)
    except ValueError:
        return None


class PreparedPayment(BaseModel):
    """Response of POST <api>/webpay/inapp/prepare/."""

    webpayJWT: str = Field(..., description="Signed payment token for the platform dialog")
    contribStatusURL: Optional[str] = Field(
        None, description="Transaction status URL for this payment"
    )

    class Config:
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "webpayJWT": "<base64 JWT>",
                "contribStatusURL": "/api/v1/webpay/inapp/transaction/some-guid/",
            }
        }


class TransactionRecord(BaseModel):
    """Latest known state of one transaction."""

    product_id: str = Field(..., description="Product identifier")
    status: str = Field(..., description="Raw status value")
    receipt: Optional[str] = Field(None, description="Receipt once completed")
    price_point: Optional[str] = Field(None, description="Price point charged")
    error_code: Optional[str] = Field(None, description="Remote error code for failed transactions")
    raw: dict[str, Any] = Field(default_factory=dict, description="Unparsed response body")

    @property
    def known_status(self) -> Optional[TransactionStatus]:
        return parse_status(self.status)

    @classmethod
    def from_response(cls, product_id: str, data: dict[str, Any]) -> "TransactionRecord":
        """Build a record from a transaction status response body.

        Args:
            product_id: Product the transaction belongs to
            data: Decoded JSON body, e.g. {"status": "completed", "receipt": "..."}

        Returns:
            TransactionRecord
        """
        price_point = data.get("pricePoint", data.get("price_point"))
        return cls(
            product_id=product_id,
            status=str(data.get("status")),
            receipt=data.get("receipt"),
            price_point=str(price_point) if price_point is not None else None,
            error_code=data.get("errorCode", data.get("error_code")),
            raw=dict(data),
        )
