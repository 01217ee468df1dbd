"""Platform models - callback outcomes and payment dialog results."""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, Field


class CallbackOutcome(BaseModel):
    """Tagged result of a single-shot success/error callback pair."""

    ok: bool = Field(..., description="True when the success callback fired")
    value: Any = Field(None, description="Value passed to the success callback")
    error_name: Optional[str] = Field(None, description="Error identifier passed to the error callback")

    @classmethod
    def success(cls, value: Any = None) -> "CallbackOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error_name: str) -> "CallbackOutcome":
        return cls(ok=False, error_name=error_name)


class PlatformResult(BaseModel):
    """Success value of the platform payment dialog.

    Some platforms report the settled transaction directly; when they do,
    polling is skipped.
    """

    status: Optional[str] = Field(None, description="Transaction status, if reported")
    receipt: Optional[str] = Field(None, description="Receipt, if reported")
    price_point: Optional[str] = Field(None, description="Price point, if reported")
    raw: Any = Field(None, description="Unparsed platform value")

    @classmethod
    def from_raw(cls, value: Any) -> "PlatformResult":
        """Extract transaction fields from a mapping success value."""
        if not isinstance(value, Mapping):
            return cls(raw=value)
        price_point = value.get("pricePoint", value.get("price_point"))
        return cls(
            status=value.get("status"),
            receipt=value.get("receipt"),
            price_point=str(price_point) if price_point is not None else None,
            raw=value,
        )
