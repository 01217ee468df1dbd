"""Bridge from single-shot success/error callbacks to one awaited outcome.

Platform primitives (payment dialog, device receipt store) report through a
success callback or an error callback. The bridge delivers exactly one
CallbackOutcome per call: the first delivery wins, later ones are logged and
dropped. Deliveries from other threads are marshalled onto the event loop.
"""

import asyncio
import threading
from collections.abc import Callable, Mapping
from typing import Any

from iap_client.logging_config import get_logger
from iap_client.models.platform import CallbackOutcome

logger = get_logger(__name__)

SuccessCallback = Callable[..., None]
ErrorCallback = Callable[..., None]
Starter = Callable[[SuccessCallback, ErrorCallback], Any]

UNKNOWN_ERROR = "UNKNOWN_ERROR"


def error_name_of(error: Any) -> str:
    """Extract a platform error identifier.

    Platforms report errors as plain names, as {"name": ...} mappings, or as
    objects with a ``name`` attribute.
    """
    if error is None:
        return UNKNOWN_ERROR
    if isinstance(error, str):
        return error or UNKNOWN_ERROR
    if isinstance(error, Mapping):
        return str(error.get("name") or UNKNOWN_ERROR)
    name = getattr(error, "name", None)
    if name:
        return str(name)
    return type(error).__name__


async def await_callback_outcome(start: Starter, operation: str) -> CallbackOutcome:
    """Run a callback-based primitive and await its single outcome.

    Args:
        start: Called with (on_success, on_error); must trigger the primitive
        operation: Name used in logs, e.g. "pay" or "add_receipt"

    Returns:
        CallbackOutcome tagged ok/error
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[CallbackOutcome] = loop.create_future()
    loop_thread = threading.get_ident()

    def settle(outcome: CallbackOutcome) -> None:
        if future.done():
            logger.warning(
                "duplicate_callback_ignored",
                operation=operation,
                ok=outcome.ok,
                error_name=outcome.error_name,
            )
            return
        future.set_result(outcome)

    def deliver(outcome: CallbackOutcome) -> None:
        if threading.get_ident() == loop_thread:
            settle(outcome)
        else:
            loop.call_soon_threadsafe(settle, outcome)

    def on_success(value: Any = None) -> None:
        deliver(CallbackOutcome.success(value))

    def on_error(error: Any = None) -> None:
        deliver(CallbackOutcome.failure(error_name_of(error)))

    try:
        start(on_success, on_error)
    except Exception as e:
        logger.error(
            "callback_primitive_raised",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        deliver(CallbackOutcome.failure(error_name_of(e)))

    return await future
