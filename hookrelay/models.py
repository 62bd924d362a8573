"""Core domain models for hook dispatch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class _NoValue:
    """Marker for a hook function that contributed nothing.

    Distinct from ``None``, which some hooks use as a meaningful result.
    """

    _instance: _NoValue | None = None

    def __new__(cls) -> _NoValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Any = _NoValue()


# fn(hook_name, context, callback) -> value | awaitable | None
HookFunction = Callable[..., Any]


class SettlementState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class DiagnosticKind(str, Enum):
    DEPRECATION = "deprecation"
    DUPLICATE_SETTLEMENT = "duplicate_settlement"
    CONFLICTING_SETTLEMENT = "conflicting_settlement"
    DEFERRED_VALUE = "deferred_value"
    NO_SETTLEMENT = "no_settlement"


class HookDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    hook_name: str
    owner_name: str = ""
    function_name: str
    fn: HookFunction

    @classmethod
    def from_function(
        cls,
        hook_name: str,
        fn: HookFunction,
        owner_name: str = "",
        function_name: str | None = None,
    ) -> HookDescriptor:
        return cls(
            hook_name=hook_name,
            owner_name=owner_name,
            function_name=function_name or function_reference(fn),
            fn=fn,
        )


def function_reference(fn: HookFunction) -> str:
    module = getattr(fn, "__module__", None) or "<unknown>"
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
    return f"{module}:{name}"


_SCALARS = (str, bytes, int, float, complex, bool)


@dataclass
class SettlementRecord:
    state: SettlementState = SettlementState.PENDING
    value: Any = NO_VALUE
    error: BaseException | None = None
    how: str = ""

    @property
    def settled(self) -> bool:
        return self.state != SettlementState.PENDING

    def same_outcome(self, failed: bool, payload: Any) -> bool:
        """Whether a later settlement attempt repeats this record exactly."""
        if failed:
            return self.state == SettlementState.REJECTED and payload is self.error
        if self.state != SettlementState.RESOLVED:
            return False
        if payload is self.value:
            return True
        # Scalars compare by value; containers and other objects by identity.
        if isinstance(payload, _SCALARS) and type(payload) is type(self.value):
            return payload == self.value
        return False


class HookDiagnostic(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: DiagnosticKind
    hook_name: str
    owner_name: str = ""
    function_name: str = ""
    message: str

    @classmethod
    def for_hook(cls, kind: DiagnosticKind, hook: HookDescriptor, message: str) -> HookDiagnostic:
        return cls(
            kind=kind,
            hook_name=hook.hook_name,
            owner_name=hook.owner_name,
            function_name=hook.function_name,
            message=message,
        )
