"""CLI entrypoint for inspecting and invoking hooks from plugin manifests."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from hookrelay.config import HookRelayConfig, load_effective_config
from hookrelay.errors import ManifestError
from hookrelay.hooks import HookManager
from hookrelay.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def _load_yaml_dict(path: str | None) -> dict | None:
    if not path:
        return None
    data = yaml.safe_load(Path(path).read_text())
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data


def _load_config(args: argparse.Namespace) -> HookRelayConfig:
    return load_effective_config(
        project_path=args.project_path,
        system_defaults=_load_yaml_dict(args.system_config),
        runtime_override=_load_yaml_dict(args.runtime_override),
    )


def _build_manager(args: argparse.Namespace, config: HookRelayConfig) -> HookManager:
    manager = HookManager.from_config(config, base_path=args.project_path)
    for manifest in args.manifest or []:
        manager.registry.load_manifest(manifest)
    return manager


def _parse_context(raw: str | None) -> Any:
    if not raw:
        return None
    return json.loads(raw)


def _add_common_config_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--project-path", default=".", help="Project root holding .hookrelay.yaml")
    cmd.add_argument("--system-config", help="Optional system defaults YAML")
    cmd.add_argument("--runtime-override", help="Optional runtime override YAML")
    cmd.add_argument(
        "--manifest",
        action="append",
        help="Plugin manifest YAML to load in addition to configured manifests (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="hookrelay hook dispatcher")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to config")

    sub = parser.add_subparsers(dest="command", required=True)

    hooks = sub.add_parser("hooks", help="List registered hooks and their functions as JSON")
    _add_common_config_flags(hooks)

    call = sub.add_parser("call", help="Invoke a hook and print the aggregate result as JSON")
    call.add_argument("hook", help="Hook name to invoke")
    call.add_argument("--context", help="JSON value passed to every hook function")
    call.add_argument("--async", dest="use_async", action="store_true", help="Use the asynchronous dispatcher")
    call.add_argument("--first", action="store_true", help="Stop at the first non-empty result")
    _add_common_config_flags(call)

    return parser


def _run_hooks(manager: HookManager) -> int:
    listing = {
        name: [
            {"plugin": hook.owner_name, "function": hook.function_name}
            for hook in manager.registry.lookup(name)
        ]
        for name in manager.registry.hook_names()
    }
    print(json.dumps(listing, indent=2))
    return 0


def _dispatch(manager: HookManager, args: argparse.Namespace) -> Any:
    context = _parse_context(args.context)
    if args.use_async:
        if args.first:
            return asyncio.run(manager.a_call_first(args.hook, context))
        return asyncio.run(manager.a_call_all(args.hook, context))
    if args.first:
        return manager.call_first(args.hook, context)
    return manager.call_all(args.hook, context)


def _run_call(manager: HookManager, args: argparse.Namespace) -> int:
    try:
        result = _dispatch(manager, args)
    except Exception:
        logger.exception("Hook %s failed", args.hook)
        return 1
    print(json.dumps(result, indent=2, default=str))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _load_config(args)
    configure_logging(args.log_level or config.log_level)

    try:
        manager = _build_manager(args, config)
    except ManifestError as exc:
        logger.error("%s", exc)
        return 2

    if args.command == "hooks":
        return _run_hooks(manager)
    if args.command == "call":
        return _run_call(manager, args)

    parser.print_help(sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
