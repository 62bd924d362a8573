"""Hook dispatch: aggregate and first-match calls over registered hook functions."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable, Mapping, Sized
from pathlib import Path
from typing import Any

from hookrelay.config import HookRelayConfig
from hookrelay.deprecation import DEPRECATION_NOTICES, check_deprecation
from hookrelay.faults import FaultSink
from hookrelay.invokers import call_hook_fn_sync, start_hook_fn_async
from hookrelay.models import NO_VALUE, HookDescriptor
from hookrelay.registry import HookRegistry, default_registry

logger = logging.getLogger(__name__)

_bubble_exceptions = True

Predicate = Callable[[Any], bool]
LegacyCallback = Callable[[BaseException | None, Any], Any]


def flatten_results(results: Iterable[Any]) -> list[Any]:
    """Drop ``NO_VALUE`` entries and flatten exactly one level of lists."""
    flattened: list[Any] = []
    for result in results:
        if result is NO_VALUE:
            continue
        if isinstance(result, (list, tuple)):
            flattened.extend(result)
        else:
            flattened.append(result)
    return flattened


def has_items(result: Any) -> bool:
    return result is not None and isinstance(result, Sized) and len(result) > 0


def _normalize(value: Any) -> Any:
    if value is None or value is NO_VALUE:
        return []
    return value


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class HookManager:
    """Invokes hook functions registered in a HookRegistry.

    ``call_all``/``a_call_all`` run every hook function and enforce the
    settle-once protocol; ``call_first``/``a_call_first`` stop at the first
    matching result and use a lighter wrapper without anomaly detection.
    """

    def __init__(
        self,
        registry: HookRegistry | None = None,
        deprecation_notices: Mapping[str, str] | None = None,
        *,
        bubble_exceptions: bool | None = None,
        fault_sink: FaultSink | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        # None follows the process-wide DEPRECATION_NOTICES table.
        self.deprecation_notices = deprecation_notices
        # None follows the process-wide set_bubble_exceptions switch.
        self._bubble_exceptions = bubble_exceptions
        self.fault_sink = fault_sink

    @property
    def bubble_exceptions(self) -> bool:
        if self._bubble_exceptions is None:
            return _bubble_exceptions
        return self._bubble_exceptions

    @bubble_exceptions.setter
    def bubble_exceptions(self, enabled: bool | None) -> None:
        self._bubble_exceptions = enabled

    @classmethod
    def from_config(
        cls,
        config: HookRelayConfig,
        registry: HookRegistry | None = None,
        base_path: str | Path = ".",
        fault_sink: FaultSink | None = None,
    ) -> HookManager:
        registry = registry if registry is not None else HookRegistry()
        for manifest in config.manifests:
            path = Path(manifest)
            if not path.is_absolute():
                path = Path(base_path) / path
            registry.load_manifest(path)
        notices = {**DEPRECATION_NOTICES, **config.deprecation_notices}
        return cls(
            registry=registry,
            deprecation_notices=notices,
            bubble_exceptions=config.bubble_exceptions,
            fault_sink=fault_sink,
        )

    def call_all(self, hook_name: str, context: Any = None) -> list[Any]:
        """Run every hook function for ``hook_name`` synchronously, in order."""
        if context is None:
            context = {}
        results = []
        for hook in self.registry.lookup(hook_name):
            check_deprecation(hook, self.deprecation_notices)
            results.append(call_hook_fn_sync(hook, context, fault_sink=self.fault_sink))
        return flatten_results(results)

    async def a_call_all(
        self,
        hook_name: str,
        context: Any = None,
        callback: LegacyCallback | None = None,
    ) -> Any:
        """Run every hook function for ``hook_name`` concurrently.

        All hook functions are started before waiting on any of them. The
        first failure fails the whole call. With ``callback`` the result is
        whatever ``callback(error, results)`` returns.
        """
        if context is None:
            context = {}
        pending = []
        for hook in self.registry.lookup(hook_name):
            check_deprecation(hook, self.deprecation_notices)
            pending.append(start_hook_fn_async(hook, context, fault_sink=self.fault_sink))
        try:
            results = flatten_results(await asyncio.gather(*pending))
        except Exception as err:
            if callback is None:
                raise
            return await _resolve(callback(err, None))
        if callback is None:
            return results
        return await _resolve(callback(None, results))

    def call_first(self, hook_name: str, context: Any = None, predicate: Predicate | None = None) -> Any:
        """Return the first non-empty result (or first matching ``predicate``), else ``[]``."""
        if context is None:
            context = {}
        matches = predicate or has_items
        for hook in self.registry.lookup(hook_name):
            result = self._call_lightly(hook, context)
            if matches(result):
                return result
        return []

    async def a_call_first(
        self,
        hook_name: str,
        context: Any = None,
        callback: LegacyCallback | None = None,
        predicate: Predicate | None = None,
    ) -> Any:
        if context is None:
            context = {}
        try:
            result = await self._a_first(hook_name, context, predicate or has_items)
        except Exception as err:
            if callback is None:
                raise
            return await _resolve(callback(err, None))
        if callback is None:
            return result
        return await _resolve(callback(None, result))

    def call_all_str(
        self,
        hook_name: str,
        context: Any = None,
        sep: str = "",
        pre: str = "",
        post: str = "",
    ) -> str:
        return sep.join(f"{pre}{item}{post}" for item in self.call_all(hook_name, context))

    async def _a_first(self, hook_name: str, context: Any, matches: Predicate) -> Any:
        for hook in self.registry.lookup(hook_name):
            result = await self._a_call_lightly(hook, context)
            if matches(result):
                return result
        return []

    def _call_lightly(self, hook: HookDescriptor, context: Any) -> Any:
        check_deprecation(hook, self.deprecation_notices)
        try:
            return _normalize(hook.fn(hook.hook_name, context, _normalize))
        except Exception:
            if self.bubble_exceptions:
                raise
            self._log_failure(hook)
            return []

    async def _a_call_lightly(self, hook: HookDescriptor, context: Any) -> Any:
        check_deprecation(hook, self.deprecation_notices)
        called_back: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def callback(value: Any = NO_VALUE) -> None:
            if not called_back.done():
                called_back.set_result(value)

        try:
            ret = hook.fn(hook.hook_name, context, callback)
            if ret is None or ret is NO_VALUE:
                ret = await called_back
            ret = await _resolve(ret)
            if (ret is None or ret is NO_VALUE) and called_back.done():
                ret = await _resolve(called_back.result())
        except Exception:
            if self.bubble_exceptions:
                raise
            self._log_failure(hook)
            return []
        return _normalize(ret)

    def _log_failure(self, hook: HookDescriptor) -> None:
        logger.exception(
            "Hook function %s (plugin: %s) failed for hook %s",
            hook.function_name,
            hook.owner_name,
            hook.hook_name,
        )


_default_manager = HookManager()


def get_default_manager() -> HookManager:
    return _default_manager


def set_bubble_exceptions(enabled: bool) -> None:
    """Process-wide switch: propagate (True) or log (False) first-match failures.

    Applies to every HookManager built without an explicit ``bubble_exceptions``.
    """
    global _bubble_exceptions
    _bubble_exceptions = enabled


def call_all(hook_name: str, context: Any = None) -> list[Any]:
    return _default_manager.call_all(hook_name, context)


async def a_call_all(hook_name: str, context: Any = None, callback: LegacyCallback | None = None) -> Any:
    return await _default_manager.a_call_all(hook_name, context, callback)


def call_first(hook_name: str, context: Any = None, predicate: Predicate | None = None) -> Any:
    return _default_manager.call_first(hook_name, context, predicate)


async def a_call_first(
    hook_name: str,
    context: Any = None,
    callback: LegacyCallback | None = None,
    predicate: Predicate | None = None,
) -> Any:
    return await _default_manager.a_call_first(hook_name, context, callback, predicate)


def call_all_str(hook_name: str, context: Any = None, sep: str = "", pre: str = "", post: str = "") -> str:
    return _default_manager.call_all_str(hook_name, context, sep, pre, post)
