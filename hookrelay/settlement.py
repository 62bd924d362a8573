"""One-shot settlement tracking for a single hook function invocation.

A hook function settles when it provides its value or error. It may try to do
so through several channels (callback, return value, thrown exception,
awaitable); only the first attempt counts. Every later attempt is reported as
an anomaly, and an attempt with a different outcome is also escalated to the
fault sink.
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable
from typing import Any

from hookrelay.diagnostics import bug_prefix, report_hook_bug
from hookrelay.errors import SettlementAnomalyError
from hookrelay.faults import FaultSink, raise_fault
from hookrelay.models import DiagnosticKind, HookDescriptor, SettlementRecord, SettlementState

DEFERRED_VALUE_DETAIL = (
    "The hook function provided an awaitable (e.g., a coroutine or Future) which is "
    "prohibited because the hook expects to get the value synchronously."
)


class SettlementTracker:
    def __init__(
        self,
        hook: HookDescriptor,
        *,
        forbid_deferred: bool = False,
        on_settled: Callable[[SettlementRecord], None] | None = None,
        fault_sink: FaultSink | None = None,
    ) -> None:
        self.hook = hook
        self.record = SettlementRecord()
        self._forbid_deferred = forbid_deferred
        self._on_settled = on_settled
        self._fault_sink = fault_sink
        self._lock = threading.Lock()

    @property
    def settled(self) -> bool:
        return self.record.settled

    def attempt_settle(self, failed: bool, payload: Any, how: str) -> bool:
        """Record the first outcome; report (and never apply) any later one.

        Returns True when this attempt settled the invocation.
        """
        with self._lock:
            first = not self.record.settled
            if first:
                if failed:
                    self.record = SettlementRecord(state=SettlementState.REJECTED, error=payload, how=how)
                else:
                    self.record = SettlementRecord(state=SettlementState.RESOLVED, value=payload, how=how)
            record = self.record

        if not failed and self._forbid_deferred and inspect.isawaitable(payload):
            report_hook_bug(DiagnosticKind.DEFERRED_VALUE, self.hook, DEFERRED_VALUE_DETAIL)
        if not first:
            self._report_repeat(record, failed, payload, how)
            return False

        if self._on_settled is not None:
            self._on_settled(record)
        return True

    def outcome(self) -> Any:
        """Return the settled value or raise the settled error."""
        if self.record.state == SettlementState.REJECTED:
            assert self.record.error is not None
            raise self.record.error
        return self.record.value

    def fault(self, error: BaseException) -> None:
        if self._fault_sink is not None:
            self._fault_sink(error)
        else:
            raise_fault(error)

    def _report_repeat(self, record: SettlementRecord, failed: bool, payload: Any, how: str) -> None:
        action = "reject" if failed else "resolve"
        duplicate = record.same_outcome(failed, payload)
        detail = (
            f"Attempt to {action} via {how} but it already {record.state.value} via {record.how}. "
            f"Ignoring this attempt to {action}."
        )
        kind = DiagnosticKind.DUPLICATE_SETTLEMENT if duplicate else DiagnosticKind.CONFLICTING_SETTLEMENT
        report_hook_bug(kind, self.hook, detail)
        if not duplicate:
            self.fault(SettlementAnomalyError(f"{bug_prefix(self.hook)}: {detail}", hook=self.hook, attempted=payload))
