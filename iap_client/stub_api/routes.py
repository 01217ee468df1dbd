"""Stub payment API routes.

Payment API (mounted under the catalog's api_version_prefix):
- POST /webpay/inapp/prepare/ - Issue a fake JWT and open a transaction
- GET /webpay/inapp/transaction/{product_id}/ - Report the scripted status
- GET /payments/stub-in-app-products/{product_id}/ - Stub product metadata
- GET /payments/{origin}/in-app/{product_id}/ - Product metadata for an app origin

Control API:
- POST /stub/transactions/{product_id}/script - Script transaction statuses
- POST /stub/reset - Reset all state
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from iap_client.logging_config import get_logger
from iap_client.models import (
    PrepareRequest,
    ResetResponse,
    ScriptTransactionRequest,
    ScriptTransactionResponse,
    StubProductDefinition,
    StubTransaction,
    StubTransactionResponse,
    TransactionStatus,
)
from iap_client.stub_api.catalog import StubCatalog, StubProductNotFoundError
from iap_client.stub_api.transaction_store import StubTransactionStore, TransactionNotFoundError
from iap_client.utils.token_generator import (
    generate_fake_jwt,
    generate_test_receipt,
    generate_transaction_id,
)

logger = get_logger(__name__)
payment_router = APIRouter(tags=["Payment API"])
control_router = APIRouter(tags=["Control API"], prefix="/stub")


def _catalog(request: Request) -> StubCatalog:
    return request.app.state.catalog


def _transactions(request: Request) -> StubTransactionStore:
    return request.app.state.transactions


def _get_product(request: Request, product_id: str) -> StubProductDefinition:
    try:
        return _catalog(request).get_by_id(product_id)
    except StubProductNotFoundError:
        logger.warning("product_not_found", product_id=product_id)
        raise HTTPException(
            status_code=404,
            detail={
                "error": "Product not found",
                "message": f"Product '{product_id}' does not exist in the stub catalog",
            },
        )


def _open_transaction(request: Request, product: StubProductDefinition) -> StubTransaction:
    catalog = _catalog(request)
    transaction_id = generate_transaction_id()
    return _transactions(request).create(
        transaction_id=transaction_id,
        product_id=product.guid,
        receipt=generate_test_receipt(product.guid, catalog.app_origin, transaction_id),
        price_point=product.price_point,
    )


def _product_metadata(product: StubProductDefinition) -> dict[str, Any]:
    return {
        "guid": product.guid,
        "name": product.name,
        "logo_url": product.logo_url,
        "app": product.app,
        "active": True,
    }


@payment_router.post("/webpay/inapp/prepare/", summary="Prepare payment JWT")
async def prepare_payment(body: PrepareRequest, request: Request) -> dict[str, str]:
    """Issue a payment JWT for a product and open its transaction.

    Raises:
        404: Product not found
    """
    product = _get_product(request, body.productId)
    transaction = _open_transaction(request, product)
    jwt = generate_fake_jwt(product.guid)

    logger.info(
        "payment_prepared",
        product_id=product.guid,
        transaction_id=transaction.transaction_id,
        statuses=transaction.statuses,
        jwt=jwt,
    )
    prefix = _catalog(request).config.api_version_prefix
    return {
        "webpayJWT": jwt,
        "contribStatusURL": f"{prefix}/webpay/inapp/transaction/{product.guid}/",
    }


@payment_router.get(
    "/webpay/inapp/transaction/{product_id}/",
    response_model=StubTransactionResponse,
    response_model_exclude_none=True,
    summary="Get transaction status",
)
async def get_transaction(product_id: str, request: Request) -> StubTransactionResponse:
    """Report the current scripted status of a product's transaction.

    Clients in fake-products mode sign their own JWTs and never call
    prepare; their first status query opens the transaction.

    Raises:
        404: Product not found
    """
    try:
        transaction, status = _transactions(request).poll(product_id)
    except TransactionNotFoundError:
        _open_transaction(request, _get_product(request, product_id))
        logger.info("transaction_opened_on_poll", product_id=product_id)
        transaction, status = _transactions(request).poll(product_id)

    logger.info(
        "transaction_polled",
        product_id=product_id,
        status=status,
        polls=transaction.polls,
    )
    response = StubTransactionResponse(status=status)
    if status == TransactionStatus.COMPLETED.value:
        response.receipt = transaction.receipt
        response.pricePoint = transaction.price_point
    elif status == TransactionStatus.FAILED.value:
        response.errorCode = transaction.error_code
    return response


@payment_router.get(
    "/payments/stub-in-app-products/{product_id}/", summary="Get stub product"
)
async def get_stub_product(product_id: str, request: Request) -> dict[str, Any]:
    """Get stub product metadata (fake-products mode)."""
    return _product_metadata(_get_product(request, product_id))


@payment_router.get("/payments/{origin:path}/in-app/{product_id}/", summary="Get in-app product")
async def get_in_app_product(origin: str, product_id: str, request: Request) -> dict[str, Any]:
    """Get product metadata for an app origin.

    Raises:
        404: Unknown origin or product
    """
    catalog = _catalog(request)
    if origin != catalog.app_origin:
        logger.warning("unknown_app_origin", origin=origin, expected=catalog.app_origin)
        raise HTTPException(
            status_code=404,
            detail={
                "error": "App not found",
                "message": f"No in-app products for origin '{origin}'",
            },
        )
    return _product_metadata(_get_product(request, product_id))


@control_router.post(
    "/transactions/{product_id}/script",
    response_model=ScriptTransactionResponse,
    summary="Script transaction statuses",
)
async def script_transaction(
    product_id: str, body: ScriptTransactionRequest, request: Request
) -> ScriptTransactionResponse:
    """Script the statuses the next transactions of a product report.

    Statuses are served one per poll; the last one repeats. Any string is
    accepted so invalid states can be simulated.
    """
    _get_product(request, product_id)
    _transactions(request).set_script(product_id, body.statuses, body.error_code)
    logger.info("transaction_scripted", product_id=product_id, statuses=body.statuses)
    return ScriptTransactionResponse(
        product_id=product_id,
        statuses=body.statuses,
        message="Transaction script set",
    )


@control_router.post("/reset", response_model=ResetResponse, summary="Reset stub state")
async def reset(request: Request) -> ResetResponse:
    """Clear all transactions and scripts."""
    removed = _transactions(request).clear()
    logger.info("stub_state_reset", transactions_cleared=removed)
    return ResetResponse(transactions_cleared=removed, message="Stub state reset")
