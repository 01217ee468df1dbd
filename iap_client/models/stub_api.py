"""Stub payment API models - catalog configuration, requests and responses."""

from typing import Optional

from pydantic import BaseModel, Field


class StubProductDefinition(BaseModel):
    """Product served by the stub payment API, loaded from its YAML catalog."""

    guid: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Human-readable product name")
    logo_url: Optional[str] = Field(None, description="Small product image URL")
    price_point: str = Field(default="10", description="Price point returned on completed transactions")
    app: str = Field(default="stub-app", description="Owning app slug")


class StubCatalogConfig(BaseModel):
    """Complete stub catalog configuration."""

    app_origin: str = Field(default="app://stub-app", description="Origin the catalog belongs to")
    api_version_prefix: str = Field(default="/api/v1", description="Prefix all API routes live under")
    initial_statuses: list[str] = Field(
        default_factory=lambda: ["completed"],
        description="Statuses a new transaction reports on successive polls",
    )
    products: list[StubProductDefinition] = Field(default_factory=list, description="Stub products")


class PrepareRequest(BaseModel):
    """Request body of POST /webpay/inapp/prepare/."""

    productId: str = Field(..., description="Product to prepare a payment for")


class StubTransaction(BaseModel):
    """Transaction state kept by the stub payment API."""

    transaction_id: str = Field(..., description="Unique transaction ID")
    product_id: str = Field(..., description="Product ID")
    statuses: list[str] = Field(..., description="Remaining scripted statuses, first is current")
    receipt: Optional[str] = Field(None, description="Receipt reported once completed")
    price_point: Optional[str] = Field(None, description="Price point reported once completed")
    error_code: Optional[str] = Field(None, description="Error code reported when failed")
    polls: int = Field(default=0, description="Number of status queries served")

    def advance(self) -> str:
        """Return the current status and move to the next scripted one.

        The last scripted status repeats forever.
        """
        current = self.statuses[0]
        if len(self.statuses) > 1:
            self.statuses.pop(0)
        self.polls += 1
        return current


class ScriptTransactionRequest(BaseModel):
    """Control request scripting the statuses a product's next transactions report."""

    statuses: list[str] = Field(..., min_length=1, description="Statuses for successive polls")
    error_code: Optional[str] = Field(None, description="Error code for failed transactions")

    class Config:
        json_schema_extra = {
            "example": {
                "statuses": ["pending", "incomplete", "completed"],
                "error_code": None,
            }
        }


class ScriptTransactionResponse(BaseModel):
    """Response after scripting a product's transactions."""

    product_id: str = Field(..., description="Product ID")
    statuses: list[str] = Field(..., description="Scripted statuses")
    message: str = Field(..., description="Success message")


class StubTransactionResponse(BaseModel):
    """Response of GET /webpay/inapp/transaction/{product_id}/."""

    status: str = Field(..., description="Current transaction status")
    receipt: Optional[str] = Field(None, description="Receipt, once completed")
    pricePoint: Optional[str] = Field(None, description="Price point, once completed")
    errorCode: Optional[str] = Field(None, description="Error code, when failed")


class ResetResponse(BaseModel):
    """Response after resetting stub state."""

    transactions_cleared: int = Field(..., description="Number of transactions removed")
    message: str = Field(..., description="Success message")
