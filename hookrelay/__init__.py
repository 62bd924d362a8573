"""Hook dispatch engine with settle-once enforcement for plugin hook functions."""

from .deprecation import DEPRECATION_NOTICES, check_deprecation
from .errors import HookRelayError, ManifestError, SettlementAnomalyError
from .faults import set_fault_sink
from .hooks import (
    HookManager,
    a_call_all,
    a_call_first,
    call_all,
    call_all_str,
    call_first,
    get_default_manager,
    set_bubble_exceptions,
)
from .models import NO_VALUE, HookDescriptor
from .registry import HookRegistry, default_registry

__all__ = [
    "DEPRECATION_NOTICES",
    "NO_VALUE",
    "HookDescriptor",
    "HookManager",
    "HookRegistry",
    "HookRelayError",
    "ManifestError",
    "SettlementAnomalyError",
    "a_call_all",
    "a_call_first",
    "call_all",
    "call_all_str",
    "call_first",
    "check_deprecation",
    "default_registry",
    "get_default_manager",
    "set_bubble_exceptions",
    "set_fault_sink",
]
