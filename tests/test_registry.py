from pathlib import Path

import pytest

from hookrelay.errors import ManifestError
from hookrelay.registry import HookRegistry, resolve_function

PLUGIN_SOURCE = """
def first(hook_name, context, callback):
    return ["first"]


def second(hook_name, context, callback):
    callback(["second"])


class Namespace:
    @staticmethod
    def nested(hook_name, context, callback):
        return "nested"


NOT_CALLABLE = 3
"""


def sample_hook(hook_name, context, callback):
    return None


def test_register_defaults_function_name_to_reference() -> None:
    registry = HookRegistry()

    descriptor = registry.register("testHook", sample_hook)

    assert descriptor.hook_name == "testHook"
    assert descriptor.owner_name == ""
    assert descriptor.function_name == f"{__name__}:sample_hook"
    assert descriptor.fn is sample_hook


def test_lookup_returns_a_copy_in_registration_order() -> None:
    registry = HookRegistry()
    registry.register("testHook", sample_hook, owner_name="a", function_name="a:one")
    registry.register("testHook", sample_hook, owner_name="b", function_name="b:two")

    found = registry.lookup("testHook")
    found.clear()

    assert [hook.function_name for hook in registry.lookup("testHook")] == ["a:one", "b:two"]
    assert registry.lookup("missingHook") == []


def test_hook_names_skips_emptied_hooks() -> None:
    registry = HookRegistry()
    registry.register("zeta", sample_hook)
    registry.register("alpha", sample_hook)
    registry.register("gone", sample_hook)
    registry.hooks["gone"].clear()

    assert registry.hook_names() == ["alpha", "zeta"]

    registry.clear()
    assert registry.hook_names() == []


def test_load_manifest_registers_references_in_order(tmp_path: Path, write_plugin) -> None:
    module = write_plugin(PLUGIN_SOURCE)
    manifest = tmp_path / "plugins.yaml"
    manifest.write_text(
        f"""
plugins:
  - name: ep_one
    hooks:
      testHook:
        - "{module}:first"
        - "{module}:second"
  - name: ep_two
    hooks:
      testHook: "{module}:Namespace.nested"
      otherHook: "{module}:first"
"""
    )
    registry = HookRegistry()

    assert registry.load_manifest(manifest) == 4

    hooks = registry.lookup("testHook")
    assert [hook.owner_name for hook in hooks] == ["ep_one", "ep_one", "ep_two"]
    assert [hook.function_name for hook in hooks] == [
        f"{module}:first",
        f"{module}:second",
        f"{module}:Namespace.nested",
    ]
    assert hooks[2].fn("testHook", {}, None) == "nested"
    assert registry.hook_names() == ["otherHook", "testHook"]


def test_load_empty_manifest(tmp_path: Path) -> None:
    manifest = tmp_path / "plugins.yaml"
    manifest.write_text("")

    assert HookRegistry().load_manifest(manifest) == 0


@pytest.mark.parametrize(
    "reference",
    ["no_colon_here", ":missing_module", "module_only:", "hookrelay_no_such_module:fn"],
)
def test_resolve_function_rejects_bad_references(reference: str) -> None:
    with pytest.raises(ManifestError):
        resolve_function(reference)


def test_resolve_function_rejects_missing_and_non_callable(write_plugin) -> None:
    module = write_plugin(PLUGIN_SOURCE)

    with pytest.raises(ManifestError, match="missing attribute 'absent'"):
        resolve_function(f"{module}:absent")
    with pytest.raises(ManifestError, match="non-callable"):
        resolve_function(f"{module}:NOT_CALLABLE")


def test_load_manifest_errors(tmp_path: Path) -> None:
    registry = HookRegistry()

    with pytest.raises(ManifestError, match="Cannot read"):
        registry.load_manifest(tmp_path / "absent.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("plugins: [unclosed")
    with pytest.raises(ManifestError, match="Cannot read"):
        registry.load_manifest(broken)

    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("plugins:\n  - name: ep_one\n    extra: true\n")
    with pytest.raises(ManifestError, match="Invalid plugin manifest"):
        registry.load_manifest(invalid)

    assert registry.hook_names() == []
