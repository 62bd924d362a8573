import json
from pathlib import Path

import pytest

from hookrelay import cli

PLUGIN_SOURCE = """
import asyncio


def greet(hook_name, context, callback):
    return callback(["hello " + context.get("name", "world")])


async def greet_later(hook_name, context, callback):
    await asyncio.sleep(0)
    return "later"


def nothing(hook_name, context, callback):
    return []


def explode(hook_name, context, callback):
    raise ValueError("plugin exploded")
"""


@pytest.fixture
def manifest(tmp_path: Path, write_plugin) -> Path:
    module = write_plugin(PLUGIN_SOURCE)
    path = tmp_path / "plugins.yaml"
    path.write_text(
        f"""
plugins:
  - name: ep_greeter
    hooks:
      greet:
        - "{module}:nothing"
        - "{module}:greet"
      greetLater: "{module}:greet_later"
      explode: "{module}:explode"
"""
    )
    return path


def _run(capsys, argv: list[str]) -> tuple[int, str]:
    exit_code = cli.main(argv)
    return exit_code, capsys.readouterr().out


def test_cli_parser_supports_commands() -> None:
    parser = cli.build_parser()

    parsed = parser.parse_args(["hooks", "--manifest", "a.yaml", "--manifest", "b.yaml"])
    assert parsed.command == "hooks"
    assert parsed.manifest == ["a.yaml", "b.yaml"]

    parsed_call = parser.parse_args(["--log-level", "DEBUG", "call", "greet", "--async", "--first"])
    assert parsed_call.command == "call"
    assert parsed_call.hook == "greet"
    assert parsed_call.use_async is True
    assert parsed_call.first is True
    assert parsed_call.log_level == "DEBUG"


def test_hooks_command_lists_functions(tmp_path: Path, manifest: Path, capsys) -> None:
    exit_code, out = _run(capsys, ["hooks", "--project-path", str(tmp_path), "--manifest", str(manifest)])

    assert exit_code == 0
    listing = json.loads(out)
    assert sorted(listing) == ["explode", "greet", "greetLater"]
    assert [entry["plugin"] for entry in listing["greet"]] == ["ep_greeter", "ep_greeter"]
    assert listing["greet"][1]["function"].endswith(":greet")


def test_call_command_prints_aggregate_result(tmp_path: Path, manifest: Path, capsys) -> None:
    exit_code, out = _run(
        capsys,
        [
            "call",
            "greet",
            "--context",
            '{"name": "ada"}',
            "--project-path",
            str(tmp_path),
            "--manifest",
            str(manifest),
        ],
    )

    assert exit_code == 0
    assert json.loads(out) == ["hello ada"]


def test_call_command_async_and_first(tmp_path: Path, manifest: Path, capsys) -> None:
    common = ["--project-path", str(tmp_path), "--manifest", str(manifest)]

    exit_code, out = _run(capsys, ["call", "greetLater", "--async", *common])
    assert exit_code == 0
    assert json.loads(out) == ["later"]

    exit_code, out = _run(capsys, ["call", "greet", "--first", *common])
    assert exit_code == 0
    assert json.loads(out) == ["hello world"]

    exit_code, out = _run(capsys, ["call", "greet", "--async", "--first", *common])
    assert exit_code == 0
    assert json.loads(out) == ["hello world"]


def test_call_command_reports_hook_failure(tmp_path: Path, manifest: Path, capsys, caplog) -> None:
    exit_code, out = _run(
        capsys,
        ["call", "explode", "--project-path", str(tmp_path), "--manifest", str(manifest)],
    )

    assert exit_code == 1
    assert out == ""
    assert any("Hook explode failed" in record.getMessage() for record in caplog.records)


def test_configured_manifests_and_bad_manifest(tmp_path: Path, manifest: Path, capsys) -> None:
    (tmp_path / ".hookrelay.yaml").write_text(f"manifests:\n  - {manifest.name}\n")

    exit_code, out = _run(capsys, ["call", "greet", "--project-path", str(tmp_path)])
    assert exit_code == 0
    assert json.loads(out) == ["hello world"]

    missing = tmp_path / "missing.yaml"
    exit_code, _ = _run(capsys, ["hooks", "--project-path", str(tmp_path), "--manifest", str(missing)])
    assert exit_code == 2
