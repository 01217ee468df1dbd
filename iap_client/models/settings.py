"""Settings models - purchase client configuration and polling options.

Unknown keys are rejected. camelCase aliases (apiUrlBase, maxTries, ...) are
accepted alongside the snake_case field names.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class PollConfig(BaseModel):
    """Transaction polling options supplied per purchase."""

    max_tries: int = Field(default=10, gt=0, description="Maximum status queries")
    poll_interval_ms: int = Field(default=1000, ge=0, description="Delay between status queries")

    class Config:
        extra = "forbid"
        frozen = True
        alias_generator = to_camel
        populate_by_name = True


class PurchaseSettings(BaseModel):
    """Configuration consumed by the purchase orchestrator and its collaborators."""

    # Remote payment API
    api_url_base: str = Field(default="https://marketplace.firefox.com", description="API origin")
    api_version_prefix: str = Field(default="/api/v1", description="Versioned API path prefix")
    api_timeout_ms: Optional[int] = Field(
        default=None, gt=0, description="Overrides the HTTP client's default timeout"
    )
    prepare_jwt_api_url: str = Field(
        default="/webpay/inapp/prepare/", description="Accepts a product ID and returns a JWT"
    )
    transaction_status_api_url: str = Field(
        default="/webpay/inapp/transaction/{product_id}/",
        description="Status URL used when the prepare response carries none",
    )
    product_info_api_url: str = Field(
        default="/payments/{origin}/in-app/{product_id}/", description="Product metadata URL"
    )
    stub_product_info_api_url: str = Field(
        default="/payments/stub-in-app-products/{product_id}/",
        description="Product metadata URL in fake-products mode",
    )

    # When true, work with fake products and locally built test JWTs.
    fake_products: bool = Field(default=False, description="Use stub products and fake JWTs")

    # Receipts
    local_storage: Optional[Any] = Field(
        default=None, description="KeyValueStorage used as receipt fallback; None disables it"
    )
    local_storage_key: str = Field(default="iapReceipts", description="Key holding the receipt list")

    # Platform collaborators
    app_self: Optional[Any] = Field(default=None, description="Installed app object, if any")
    app_origin: Optional[str] = Field(default=None, description="Origin for non-app websites")
    pay_platform: Optional[Any] = Field(default=None, description="Platform payment primitive")

    # Default polling options
    max_tries: int = Field(default=10, gt=0, description="Default maximum status queries")
    poll_interval_ms: int = Field(default=1000, ge=0, description="Default polling delay")

    class Config:
        extra = "forbid"
        frozen = True
        alias_generator = to_camel
        populate_by_name = True
        arbitrary_types_allowed = True

    @field_validator("api_url_base")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"api_url_base must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @property
    def default_poll_config(self) -> PollConfig:
        return PollConfig(max_tries=self.max_tries, poll_interval_ms=self.poll_interval_ms)

    @property
    def api_timeout_seconds(self) -> Optional[float]:
        if self.api_timeout_ms is None:
            return None
        return self.api_timeout_ms / 1000
