"""Product models - remote catalog metadata and normalized product info."""

from typing import Optional

from pydantic import BaseModel, Field


class ProductMetadata(BaseModel):
    """Product metadata as returned by the remote in-app product endpoint."""

    guid: str = Field(..., description="Product identifier")
    name: str = Field(..., description="Human-readable product name")
    logo_url: Optional[str] = Field(None, description="Small product image URL")
    app: Optional[str] = Field(None, description="Owning app slug")
    price_id: Optional[int] = Field(None, description="Price point identifier")
    active: bool = Field(default=True, description="Whether the product can be sold")

    class Config:
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "guid": "39a9d24c-4d59-4d42-8c8e-bd8ac4d2c5a1",
                "name": "Magic Cheese",
                "logo_url": "http://site/image.png",
                "app": "fxpay-example",
                "price_id": 237,
                "active": True,
            }
        }


class ProductInfo(BaseModel):
    """Normalized product information delivered to callers."""

    product_id: str = Field(..., description="Product identifier the purchase was made for")
    name: Optional[str] = Field(None, description="Human-readable product name")
    small_image_url: Optional[str] = Field(None, description="Small product image URL")
    price_point: Optional[str] = Field(None, description="Price point reported by the transaction")
    receipt: Optional[str] = Field(None, description="Receipt stored for this purchase")

    @classmethod
    def from_metadata(
        cls,
        product_id: str,
        metadata: ProductMetadata,
        price_point: Optional[str] = None,
        receipt: Optional[str] = None,
    ) -> "ProductInfo":
        """Merge catalog metadata with transaction details.

        The purchased identifier always wins over the catalog guid.
        """
        return cls(
            product_id=product_id,
            name=metadata.name,
            small_image_url=metadata.logo_url,
            price_point=price_point,
            receipt=receipt,
        )
