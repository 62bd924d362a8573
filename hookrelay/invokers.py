"""Drive a single hook function through the settle-once protocol.

A hook function is called as ``fn(hook_name, context, callback)`` and may
provide its value by returning it or by passing it to ``callback``. The
callback always returns ``None`` so a hook function can safely do
``return callback(value)``. Returning ``None`` (or ``NO_VALUE``) means the
hook function did not provide a value through the return channel.

Synchronous hook functions must settle before they return. Asynchronous hook
functions may also return an awaitable, pass an awaitable to the callback, or
return nothing and call the callback later.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

from hookrelay.diagnostics import report_hook_bug
from hookrelay.faults import FaultSink
from hookrelay.models import NO_VALUE, DiagnosticKind, HookDescriptor, SettlementRecord, SettlementState
from hookrelay.settlement import SettlementTracker

NO_SETTLEMENT_DETAIL = (
    "The hook function neither called the callback nor returned a value. "
    "This is prohibited because it will result in freezes once the hook supports asynchronous behavior."
)


def _returned(value: Any) -> Any:
    return NO_VALUE if value is None else value


def call_hook_fn_sync(hook: HookDescriptor, context: Any, *, fault_sink: FaultSink | None = None) -> Any:
    """Call ``hook`` synchronously and return the value it settled with.

    Raises the hook function's exception if it threw before settling. If it
    threw after calling the callback the exception is absorbed: the anomaly
    is reported, the exception goes to the fault sink and the callback value
    is returned.
    """
    tracker = SettlementTracker(hook, forbid_deferred=True, fault_sink=fault_sink)

    def settle(failed: bool, payload: Any, how: str) -> Any:
        if tracker.attempt_settle(failed, payload, how):
            return tracker.outcome()
        if failed:
            tracker.fault(payload)
        return tracker.outcome()

    def callback(value: Any = NO_VALUE) -> None:
        tracker.attempt_settle(False, value, "callback")

    try:
        ret = hook.fn(hook.hook_name, context, callback)
    except Exception as err:
        return settle(True, err, "thrown exception")

    ret = _returned(ret)
    if ret is NO_VALUE:
        if tracker.settled:
            return tracker.outcome()
        report_hook_bug(DiagnosticKind.NO_SETTLEMENT, hook, NO_SETTLEMENT_DETAIL)

    return settle(False, ret, "returned value")


def start_hook_fn_async(
    hook: HookDescriptor, context: Any, *, fault_sink: FaultSink | None = None
) -> asyncio.Future[Any]:
    """Call ``hook`` now and return a future for the value it settles with.

    Must be called with a running event loop. Direct values settle on the next
    loop iteration, awaitables settle when they complete and a thrown
    exception settles immediately; the first of these wins.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def deliver(record: SettlementRecord) -> None:
        if future.done():
            return
        if isinstance(record.error, asyncio.CancelledError):
            future.cancel()
        elif record.state == SettlementState.REJECTED:
            future.set_exception(record.error)
        else:
            future.set_result(record.value)

    tracker = SettlementTracker(hook, on_settled=deliver, fault_sink=fault_sink)

    def settle_later(payload: Any, how: str, how_rejected: str) -> None:
        if not inspect.isawaitable(payload):
            loop.call_soon_threadsafe(tracker.attempt_settle, False, payload, how)
            return

        def awaited(deferred: asyncio.Future[Any]) -> None:
            if deferred.cancelled():
                tracker.attempt_settle(True, asyncio.CancelledError(), how_rejected)
            elif (error := deferred.exception()) is not None:
                tracker.attempt_settle(True, error, how_rejected)
            else:
                tracker.attempt_settle(False, _returned(deferred.result()), how)

        def track() -> None:
            asyncio.ensure_future(payload, loop=loop).add_done_callback(awaited)

        # The callback may run on a thread without an event loop.
        loop.call_soon_threadsafe(track)

    def callback(value: Any = NO_VALUE) -> None:
        settle_later(value, "callback", "rejected awaitable passed to callback")

    try:
        ret = hook.fn(hook.hook_name, context, callback)
    except Exception as err:
        tracker.attempt_settle(True, err, "thrown exception")
        return future

    ret = _returned(ret)
    if ret is NO_VALUE:
        # Not done yet; the hook function will call the callback later.
        return future

    settle_later(ret, "returned value", "awaitable rejection")
    return future


async def call_hook_fn_async(hook: HookDescriptor, context: Any, *, fault_sink: FaultSink | None = None) -> Any:
    return await start_hook_fn_async(hook, context, fault_sink=fault_sink)
