"""Deprecated hook notices, emitted once per hook function.

To deprecate the ``fooBar`` hook::

    from hookrelay.deprecation import DEPRECATION_NOTICES

    DEPRECATION_NOTICES["fooBar"] = "use the newSpiffy hook instead"
"""

from __future__ import annotations

import threading
from collections.abc import Mapping

from hookrelay.diagnostics import report_diagnostic
from hookrelay.models import DiagnosticKind, HookDescriptor, HookDiagnostic

# Hook name -> advisory text explaining the deprecation.
DEPRECATION_NOTICES: dict[str, str] = {}

_warned: dict[str, bool] = {}
_warned_lock = threading.Lock()


def check_deprecation(hook: HookDescriptor, notices: Mapping[str, str] | None = None) -> bool:
    """Warn if ``hook`` is registered against a deprecated hook.

    Returns True when a notice was emitted by this call.
    """
    table = DEPRECATION_NOTICES if notices is None else notices
    notice = table.get(hook.hook_name)
    if notice is None:
        return False
    with _warned_lock:
        if _warned.get(hook.function_name):
            return False
        _warned[hook.function_name] = True
    report_diagnostic(
        HookDiagnostic.for_hook(
            DiagnosticKind.DEPRECATION,
            hook,
            f"{hook.hook_name} hook used by the {hook.owner_name} plugin "
            f"({hook.function_name}) is deprecated: {notice}",
        )
    )
    return True


def deprecation_ledger() -> dict[str, bool]:
    """Snapshot of already-warned function names. Testing only."""
    with _warned_lock:
        return dict(_warned)


def reset_deprecation_ledger() -> None:
    """Forget every emitted notice. Testing only."""
    with _warned_lock:
        _warned.clear()
