import importlib
import textwrap
import uuid
from collections.abc import Callable
from pathlib import Path

import pytest

from hookrelay.deprecation import reset_deprecation_ledger
from hookrelay.faults import set_fault_sink
from hookrelay.hooks import HookManager
from hookrelay.models import DiagnosticKind, HookDiagnostic
from hookrelay.registry import HookRegistry

FN_NAME = "pluginFileName:hookFunctionName"


@pytest.fixture(autouse=True)
def clear_deprecation_ledger():
    reset_deprecation_ledger()
    yield
    reset_deprecation_ledger()


@pytest.fixture
def faults():
    captured: list[BaseException] = []
    previous = set_fault_sink(captured.append)
    yield captured
    set_fault_sink(previous)


@pytest.fixture
def registry() -> HookRegistry:
    return HookRegistry()


@pytest.fixture
def manager(registry: HookRegistry, faults) -> HookManager:
    return HookManager(registry, deprecation_notices={})


@pytest.fixture
def diagnostics(caplog) -> Callable[..., list[HookDiagnostic]]:
    def collect(kind: DiagnosticKind | None = None) -> list[HookDiagnostic]:
        found = [record.hook_diagnostic for record in caplog.records if hasattr(record, "hook_diagnostic")]
        if kind is not None:
            found = [item for item in found if item.kind == kind]
        return found

    return collect


@pytest.fixture
def write_plugin(tmp_path: Path, monkeypatch) -> Callable[[str], str]:
    """Write an importable plugin module under tmp_path and return its name."""
    monkeypatch.syspath_prepend(str(tmp_path))

    def write(source: str) -> str:
        module_name = f"plugin_{uuid.uuid4().hex}"
        (tmp_path / f"{module_name}.py").write_text(textwrap.dedent(source))
        importlib.invalidate_caches()
        return module_name

    return write
