"""Out-of-band fault reporting.

Faults are errors that must not change what a dispatch call returns but must
not be lost either (for example a hook that settled twice with different
outcomes). Host applications can intercept them with ``set_fault_sink``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

FaultSink = Callable[[BaseException], None]


def report_unhandled(error: BaseException) -> None:
    """Default sink: defer the error to the event loop, or log it as fatal."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.critical("Unhandled hook fault: %s", error, exc_info=(type(error), error, error.__traceback__))
        return
    loop.call_soon(
        loop.call_exception_handler,
        {"message": "Unhandled hook fault", "exception": error},
    )


_fault_sink: FaultSink = report_unhandled


def get_fault_sink() -> FaultSink:
    return _fault_sink


def set_fault_sink(sink: FaultSink | None) -> FaultSink:
    """Install ``sink`` (``None`` restores the default) and return the previous one."""
    global _fault_sink
    previous = _fault_sink
    _fault_sink = sink or report_unhandled
    return previous


def raise_fault(error: BaseException) -> None:
    _fault_sink(error)
