"""Hook registration and plugin manifest loading."""

from __future__ import annotations

import importlib
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hookrelay.errors import ManifestError
from hookrelay.models import HookDescriptor, HookFunction

logger = logging.getLogger(__name__)


class PluginDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    hooks: dict[str, str | list[str]] = Field(default_factory=dict)


class PluginManifest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    plugins: list[PluginDefinition] = Field(default_factory=list)


def resolve_function(reference: str) -> HookFunction:
    """Import a ``"package.module:attribute"`` reference."""
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ManifestError(f"Hook function reference must look like 'module:function', got {reference!r}")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ManifestError(f"Cannot import module {module_name!r} for {reference!r}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ManifestError(f"{reference!r} does not resolve: missing attribute {part!r}") from exc
    if not callable(target):
        raise ManifestError(f"{reference!r} resolved to a non-callable {type(target).__name__}")
    return target


class HookRegistry:
    """Hook name -> hook functions, in registration order.

    ``hooks`` is public so callers can adjust registrations between calls.
    """

    def __init__(self) -> None:
        self.hooks: dict[str, list[HookDescriptor]] = defaultdict(list)

    def register(
        self,
        hook_name: str,
        fn: HookFunction,
        owner_name: str = "",
        function_name: str | None = None,
    ) -> HookDescriptor:
        descriptor = HookDescriptor.from_function(hook_name, fn, owner_name=owner_name, function_name=function_name)
        self.hooks[hook_name].append(descriptor)
        return descriptor

    def lookup(self, hook_name: str) -> list[HookDescriptor]:
        return list(self.hooks.get(hook_name) or [])

    def hook_names(self) -> list[str]:
        return sorted(name for name, descriptors in self.hooks.items() if descriptors)

    def clear(self) -> None:
        self.hooks.clear()

    def load_manifest(self, path: str | Path) -> int:
        """Register every hook function listed in a YAML plugin manifest."""
        manifest_path = Path(path)
        try:
            raw = yaml.safe_load(manifest_path.read_text())
        except (OSError, yaml.YAMLError) as exc:
            raise ManifestError(f"Cannot read plugin manifest {manifest_path}: {exc}") from exc
        try:
            manifest = PluginManifest.model_validate(raw or {})
        except ValidationError as exc:
            raise ManifestError(f"Invalid plugin manifest {manifest_path}: {exc}") from exc

        registered = 0
        for plugin in manifest.plugins:
            for hook_name, references in plugin.hooks.items():
                if isinstance(references, str):
                    references = [references]
                for reference in references:
                    self.register(hook_name, resolve_function(reference), owner_name=plugin.name, function_name=reference)
                    registered += 1
        logger.debug("Loaded %s hook functions from %s", registered, manifest_path)
        return registered


default_registry = HookRegistry()
