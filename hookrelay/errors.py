"""Exception types raised by the hook dispatch engine."""

from __future__ import annotations

from typing import Any

from hookrelay.models import HookDescriptor


class HookRelayError(RuntimeError):
    pass


class SettlementAnomalyError(HookRelayError):
    """A hook function tried to settle again with a different outcome.

    Never raised through the normal return path; it is handed to the fault
    sink so the first result stays intact.
    """

    def __init__(self, message: str, *, hook: HookDescriptor, attempted: Any = None) -> None:
        super().__init__(message)
        self.hook = hook
        self.attempted = attempted


class ManifestError(HookRelayError):
    pass
