"""
COURIER - Request Callbacks

Callback configuration for the request lifecycle and the dispatch rule
that maps a transfer result onto exactly one of them.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from courier.core.types import Outcome, TransferResult

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[int, str], None]
DroppedCallback = Callable[[], None]


def _noop(*args: Any) -> None:
    pass


@dataclass
class Callbacks:
    """
    Lifecycle callbacks of a request, all defaulting to no-ops.

    on_init receives the request and may still add parameters or headers.
    The *_async variants are the early callbacks fired on the worker thread
    during the transfer when async processing is enabled.
    """

    on_init: Callable[[Any], None] = _noop
    on_response: ResponseCallback = _noop
    on_failure: ResponseCallback = _noop
    on_connection_dropped: DroppedCallback = _noop
    on_response_async: ResponseCallback = _noop
    on_failure_async: ResponseCallback = _noop
    on_connection_dropped_async: DroppedCallback = _noop


def _call_safely(name: str, callback: Callable, *args: Any) -> None:
    try:
        callback(*args)
    except Exception as e:
        logger.error(f"Error in {name} callback: {e}", exc_info=True)


def run_init(callbacks: Callbacks, request: Any) -> None:
    """Run the init callback, logging instead of propagating its errors."""
    _call_safely("on_init", callbacks.on_init, request)


def dispatch(callbacks: Callbacks, result: TransferResult, early: bool = False) -> Outcome:
    """
    Invoke exactly one callback for a transfer result.

    Args:
        callbacks: Callback configuration
        result: Result of the transfer step
        early: Use the *_async variants

    Returns:
        The outcome that was dispatched

    Note:
        Errors raised by the callback are caught and logged so a faulty
        handler cannot break the lifecycle.
    """
    outcome = result.outcome

    if outcome is Outcome.SUCCESS:
        callback = callbacks.on_response_async if early else callbacks.on_response
        _call_safely("success", callback, result.status, result.body)
    elif outcome is Outcome.FAILURE:
        callback = callbacks.on_failure_async if early else callbacks.on_failure
        _call_safely("failure", callback, result.status, result.body)
    else:
        callback = (
            callbacks.on_connection_dropped_async if early else callbacks.on_connection_dropped
        )
        _call_safely("connection dropped", callback)

    return outcome


def json_callbacks(
    on_success: Optional[Callable[[Dict[str, Any]], None]] = None,
    on_error: Optional[Callable[[int, str], None]] = None,
    on_init: Callable[[Any], None] = _noop,
) -> Callbacks:
    """
    Build callbacks that parse a JSON object response.

    Success bodies are parsed with json.loads and passed to on_success; a body
    that is not a JSON object is reported to on_error with "Invalid JSON
    response". Failures are reported as (status, body) and dropped
    connections as (-1, "Connection lost").

    Args:
        on_success: Receives the parsed JSON object
        on_error: Receives (code, message)
        on_init: Init callback, e.g. to add parameters

    Returns:
        Callbacks instance
    """

    def handle_response(status: int, body: str) -> None:
        try:
            parsed = json.loads(body)
        except ValueError as e:
            logger.warning(f"Failed to parse response: {e}")
            parsed = None

        if not isinstance(parsed, dict):
            if on_error:
                on_error(status, "Invalid JSON response")
            return

        if on_success:
            on_success(parsed)

    def handle_failure(status: int, body: str) -> None:
        if on_error:
            on_error(status, body)

    def handle_dropped() -> None:
        if on_error:
            on_error(-1, "Connection lost")

    return Callbacks(
        on_init=on_init,
        on_response=handle_response,
        on_failure=handle_failure,
        on_connection_dropped=handle_dropped,
    )
