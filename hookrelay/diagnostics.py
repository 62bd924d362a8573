"""Diagnostic reporting for misbehaving hook functions."""

from __future__ import annotations

import logging

from hookrelay.models import DiagnosticKind, HookDescriptor, HookDiagnostic

logger = logging.getLogger(__name__)

_LEVELS = {
    DiagnosticKind.DEPRECATION: logging.WARNING,
    DiagnosticKind.NO_SETTLEMENT: logging.WARNING,
    DiagnosticKind.DUPLICATE_SETTLEMENT: logging.ERROR,
    DiagnosticKind.CONFLICTING_SETTLEMENT: logging.ERROR,
    DiagnosticKind.DEFERRED_VALUE: logging.ERROR,
}


def bug_prefix(hook: HookDescriptor) -> str:
    return (
        f"BUG IN HOOK FUNCTION (plugin: {hook.owner_name}, "
        f"function name: {hook.function_name}, hook: {hook.hook_name})"
    )


def report_diagnostic(diagnostic: HookDiagnostic) -> HookDiagnostic:
    logger.log(_LEVELS[diagnostic.kind], "%s", diagnostic.message, extra={"hook_diagnostic": diagnostic})
    return diagnostic


def report_hook_bug(kind: DiagnosticKind, hook: HookDescriptor, detail: str) -> HookDiagnostic:
    return report_diagnostic(HookDiagnostic.for_hook(kind, hook, f"{bug_prefix(hook)}: {detail}"))
