"""Tests for the purchase error taxonomy."""

import pytest

from iap_client.errors import (
    AddReceiptError,
    ApiError,
    ApiRequestError,
    ApiRequestTimeout,
    BadApiResponse,
    ConfigurationError,
    InvalidApp,
    InvalidAppOrigin,
    PayPlatformError,
    PayPlatformUnavailable,
    PurchaseError,
    PurchaseTimeout,
)
from iap_client.models import ProductInfo


class TestDefaultCodes:
    """Test that each error kind carries its default code."""

    @pytest.mark.parametrize(
        "error_cls,code",
        [
            (PurchaseError, "PURCHASE_ERROR"),
            (ConfigurationError, "CONFIGURATION_ERROR"),
            (PurchaseTimeout, "PURCHASE_TIMEOUT"),
            (PayPlatformError, "PAY_PLATFORM_ERROR"),
            (PayPlatformUnavailable, "PAY_PLATFORM_UNAVAILABLE"),
            (AddReceiptError, "ADD_RECEIPT_ERROR"),
            (InvalidApp, "INVALID_APP"),
            (InvalidAppOrigin, "INVALID_APP_ORIGIN"),
            (ApiError, "API_ERROR"),
            (ApiRequestError, "API_REQUEST_ERROR"),
            (ApiRequestTimeout, "API_REQUEST_TIMEOUT"),
            (BadApiResponse, "BAD_API_RESPONSE"),
        ],
    )
    def test_default_code(self, error_cls, code):
        error = error_cls("boom")
        assert error.code == code
        assert isinstance(error, PurchaseError)

    def test_explicit_code_wins(self):
        """Test that a platform error name replaces the default code."""
        error = PayPlatformError("closed", code="DIALOG_CLOSED_BY_USER")
        assert error.code == "DIALOG_CLOSED_BY_USER"


class TestHierarchy:
    """Test error kind relationships."""

    def test_invalid_app_origin_is_invalid_app(self):
        assert issubclass(InvalidAppOrigin, InvalidApp)

    def test_api_errors_share_a_base(self):
        for error_cls in (ApiRequestError, ApiRequestTimeout, BadApiResponse):
            assert issubclass(error_cls, ApiError)

    def test_kind_is_class_name(self):
        assert PurchaseTimeout().kind == "PurchaseTimeout"


class TestProductInfo:
    """Test product info enrichment."""

    def test_product_info_defaults_to_none(self):
        assert PurchaseError("x").product_info is None

    def test_with_product_info_attaches_minimal_info(self):
        error = PurchaseTimeout("too slow").with_product_info("some-guid")

        assert error.product_info == ProductInfo(product_id="some-guid")

    def test_with_product_info_keeps_existing(self):
        """Test that richer info attached earlier is not replaced."""
        info = ProductInfo(product_id="some-guid", price_point="10")
        error = PayPlatformError("failed", product_info=info)

        error.with_product_info("other")

        assert error.product_info is info

    def test_with_product_info_returns_same_error(self):
        error = ConfigurationError("bad")
        assert error.with_product_info("some-guid") is error


class TestRepresentation:
    """Test string and dict representations."""

    def test_str_includes_kind_and_code(self):
        error = AddReceiptError("Error adding receipt", code="ADD_RECEIPT_ERROR")
        assert str(error) == "AddReceiptError(ADD_RECEIPT_ERROR): Error adding receipt"

    def test_str_without_message(self):
        assert str(PurchaseTimeout()) == "PurchaseTimeout(PURCHASE_TIMEOUT)"

    def test_repr_includes_product_id(self):
        error = PurchaseTimeout("x", product_info=ProductInfo(product_id="some-guid"))
        assert "product_id='some-guid'" in repr(error)

    def test_to_dict(self):
        error = PayPlatformError(
            "closed",
            code="DIALOG_CLOSED_BY_USER",
            product_info=ProductInfo(product_id="some-guid"),
        )

        data = error.to_dict()

        assert data["kind"] == "PayPlatformError"
        assert data["code"] == "DIALOG_CLOSED_BY_USER"
        assert data["message"] == "closed"
        assert data["product_info"]["product_id"] == "some-guid"
