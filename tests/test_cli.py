from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

import rbacsync.cli as cli
from rbacsync.cli import _format_plan, _format_summary, _run_pull, _run_sync, build_parser, main
from rbacsync.cli.common import confirm, load_cli_config, resolve_log_level, run_with_signals
from rbacsync.contracts.cancellation import CancelToken
from rbacsync.contracts.config import RbacSyncConfig
from rbacsync.contracts.exceptions import (
    AuthenticationError,
    ConfigError,
    DuplicateMemberError,
    NetworkError,
    OperationCancelledError,
    RemoteAPIError,
    RoleLoadError,
    SyncError,
)
from rbacsync.contracts.plan import ChangePlan, ExecutionResult, MemberOperationFailure
from rbacsync.contracts.role import TeamMember
from rbacsync.sdk import RbacSync
from tests.fakes.roles import make_role
from tests.fakes.store import FakeRoleStore


def _write_role(directory: Path, name: str, body: str = "") -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / f"{name}.yaml").write_text(f"name: {name}\n{body}", encoding="utf-8")


def _use_store(
    monkeypatch: pytest.MonkeyPatch,
    store: FakeRoleStore,
    config: RbacSyncConfig | None = None,
) -> RbacSyncConfig:
    config = config or RbacSyncConfig(api_token="token")
    monkeypatch.setattr(cli, "load_cli_config", lambda _args: config)
    monkeypatch.setattr(cli.RbacSync, "from_config", lambda cfg, **_kwargs: RbacSync(store=store, config=cfg))
    return config


def _answer(monkeypatch: pytest.MonkeyPatch, answer: bool) -> list[str]:
    asked: list[str] = []

    async def _confirm(message: str) -> bool:
        asked.append(message)
        return answer

    monkeypatch.setattr(cli, "confirm", _confirm)
    return asked


def _sync_args(*argv: str) -> argparse.Namespace:
    return build_parser().parse_args(["sync", *argv])


def test_build_parser_requires_subcommand() -> None:
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args([])

    assert exc.value.code == 2


def test_sync_defaults() -> None:
    args = build_parser().parse_args(["sync"])

    assert args.directory == "."
    assert args.auto_invite is True
    assert (args.dry_run, args.diff, args.delete, args.force) == (False, False, False, False)
    assert args.config is None
    assert args.api_token is None


def test_sync_accepts_every_flag() -> None:
    args = build_parser().parse_args(
        ["sync", "roles", "--dry-run", "--diff", "--delete", "--force", "--no-invite", "--api-token", "t", "-v"]
    )

    assert args.directory == "roles"
    assert args.auto_invite is False
    assert args.api_token == "t"
    assert args.verbose is True


def test_verbose_and_debug_are_exclusive() -> None:
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["pull", "--verbose", "--debug"])

    assert exc.value.code == 2


def test_init_defaults() -> None:
    args = build_parser().parse_args(["init"])

    assert args.output is None
    assert args.force is False


def test_version_prints_and_exits(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        build_parser().parse_args(["--version"])

    assert exc.value.code == 0
    assert "rbacsync" in capsys.readouterr().out


@pytest.mark.parametrize(
    ("verbose", "debug", "config", "expected"),
    [
        (False, True, None, logging.DEBUG),
        (True, False, None, logging.INFO),
        (False, False, None, logging.ERROR),
        (False, False, RbacSyncConfig(), logging.ERROR),
        (False, False, RbacSyncConfig(log_level="warn"), logging.WARNING),
        (True, False, RbacSyncConfig(log_level="error"), logging.INFO),
    ],
)
def test_resolve_log_level(verbose: bool, debug: bool, config: RbacSyncConfig | None, expected: int) -> None:
    assert resolve_log_level(verbose=verbose, debug=debug, config=config) == expected


def test_load_cli_config_applies_flags_and_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}
    monkeypatch.setattr("rbacsync.cli.common.logging.basicConfig", lambda **kwargs: captured.update(kwargs))
    monkeypatch.setenv("RBACSYNC_API_TOKEN", "from-env")
    args = _sync_args("--api-token", "from-flag", "--api-endpoint", "https://flag.test", "--debug")

    config = load_cli_config(args)

    assert config.api_token == "from-flag"
    assert config.api_endpoint == "https://flag.test"
    assert captured["level"] == logging.DEBUG
    assert captured["stream"] is sys.stderr
    assert captured["force"] is True


def test_format_plan_lists_roles() -> None:
    plan = ChangePlan(creates=(make_role("admin"), make_role("ops")), deletes=("old",))

    assert _format_plan(plan) == [
        "Sync plan: 2 to create, 1 to delete",
        "Will create 2 role(s):",
        "  - admin",
        "  - ops",
        "Will delete 1 role(s):",
        "  - old",
    ]


def test_format_summary_includes_member_activity() -> None:
    result = ExecutionResult(
        created=1,
        invited=2,
        assigned=1,
        member_errors=(
            MemberOperationFailure(identity="x@y.com", role_name="ops", action="invite", error=RuntimeError("boom")),
        ),
    )

    assert _format_summary(result) == (
        "Sync completed: Created 1 role(s)\nMembers: 2 invited, 1 reassigned\nWarning: invite x@y.com -> ops: boom"
    )


@pytest.mark.asyncio
async def test_run_sync_dry_run_reports_without_writing(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    _write_role(tmp_path, "admin", "resources:\n  allowed: ['*']\n")
    store = FakeRoleStore(roles=[make_role("stale")])
    _use_store(monkeypatch, store)

    result = await _run_sync(_sync_args(str(tmp_path), "--diff"), cancel)

    assert result is not None
    assert result.would_create == 1
    assert store.calls == ["get_roles"]
    out = capsys.readouterr().out
    assert "DRY RUN: No changes will be applied" in out
    assert "Will create 1 role(s):" in out
    assert "CREATE: admin (allowed: [*], denied: [])" in out
    assert "Note: 1 remote role(s) have no local file and were kept (use --delete to remove): stale" in out


@pytest.mark.asyncio
async def test_run_sync_with_nothing_to_do(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    _write_role(tmp_path, "admin")
    _use_store(monkeypatch, FakeRoleStore(roles=[make_role("admin")]))

    assert await _run_sync(_sync_args(str(tmp_path)), cancel) is None
    assert "No changes needed" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_run_sync_prints_skipped_files(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    _write_role(tmp_path, "admin")
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    _use_store(monkeypatch, FakeRoleStore(roles=[make_role("admin")]))

    await _run_sync(_sync_args(str(tmp_path)), cancel)

    out = capsys.readouterr().out
    assert "Warning: Skipped empty.yaml (file is empty)" in out
    assert "Help: Check your YAML files" in out


@pytest.mark.asyncio
async def test_run_sync_delete_needs_confirmation(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    tmp_path.mkdir(exist_ok=True)
    store = FakeRoleStore(roles=[make_role("stale")])
    _use_store(monkeypatch, store)
    asked = _answer(monkeypatch, False)

    assert await _run_sync(_sync_args(str(tmp_path), "--delete"), cancel) is None

    assert asked == ["Do you want to continue?"]
    assert "delete_role:stale" not in store.calls
    assert "Operation cancelled by user" in capsys.readouterr().out


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("flags", "config"),
    [
        (("--delete", "--force"), RbacSyncConfig(api_token="token")),
        (("--delete",), RbacSyncConfig(api_token="token", confirm=True)),
    ],
)
async def test_run_sync_delete_without_prompt(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    cancel: CancelToken,
    flags: tuple[str, ...],
    config: RbacSyncConfig,
) -> None:
    store = FakeRoleStore(roles=[make_role("stale")])
    _use_store(monkeypatch, store, config)
    asked = _answer(monkeypatch, False)

    result = await _run_sync(_sync_args(str(tmp_path), *flags, "--verbose"), cancel)

    assert asked == []
    assert result is not None
    assert result.deleted == 1
    assert "stale" not in store.roles


@pytest.mark.asyncio
async def test_run_sync_raises_execution_error_after_summary(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    _write_role(tmp_path, "admin")
    _write_role(tmp_path, "ops")
    store = FakeRoleStore()
    store.fail_on["create_role:ops"] = RemoteAPIError(400, "invalid")
    _use_store(monkeypatch, store)

    with pytest.raises(SyncError, match="failed to create role 'ops'"):
        await _run_sync(_sync_args(str(tmp_path), "--verbose"), cancel)

    assert "Sync completed: Execution failed" in capsys.readouterr().out


@pytest.mark.asyncio
@pytest.mark.parametrize(("answer", "removed"), [(True, True), (False, False)])
async def test_run_sync_offers_to_remove_orphans(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    cancel: CancelToken,
    answer: bool,
    removed: bool,
) -> None:
    _write_role(tmp_path, "ops", "members: [a@x.com]\n")
    store = FakeRoleStore(
        roles=[make_role("ops", role_id="policy-1")],
        members=[
            TeamMember(id="u1", email="a@x.com", policy_id="policy-1"),
            TeamMember(id="u2", email="gone@x.com", policy_id="policy-1"),
        ],
    )
    _use_store(monkeypatch, store)
    asked = _answer(monkeypatch, answer)

    await _run_sync(_sync_args(str(tmp_path), "--verbose"), cancel)

    out = capsys.readouterr().out
    assert "Team members not declared in any role:\n  - gone@x.com" in out
    assert asked == ["Remove 1 orphaned member(s) and invitation(s)?"]
    assert ("remove_member:gone@x.com" in store.calls) is removed
    if removed:
        assert "Removed 1 orphaned member(s) and invitation(s)" in out
    else:
        assert "Orphaned members kept" in out


@pytest.mark.asyncio
async def test_run_pull_dry_run_shows_diffs(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    (tmp_path / "admin.yaml").write_text("name: admin\n", encoding="utf-8")
    _use_store(monkeypatch, FakeRoleStore(roles=[make_role("admin", allowed=["*"]), make_role("new")]))
    args = build_parser().parse_args(["pull", str(tmp_path), "--diff"])

    result = await _run_pull(args, cancel)

    assert result.dry_run is True
    out = capsys.readouterr().out
    assert "DRY-RUN: Showing what would be done with detailed diffs" in out
    assert "Downloaded 2 role(s) from API" in out
    assert f"Would update {tmp_path / 'admin.yaml'}" in out
    assert f"Would create {tmp_path / 'new.yaml'}" in out
    assert "+resources:" in out
    assert "Pull completed (dry-run): 1 would be created, 1 would be updated" in out


@pytest.mark.asyncio
async def test_run_pull_writes_files(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str], cancel: CancelToken
) -> None:
    (tmp_path / "admin.yaml").write_text("name: admin\n", encoding="utf-8")
    _use_store(monkeypatch, FakeRoleStore(roles=[make_role("admin", allowed=["*"]), make_role("new")]))
    args = build_parser().parse_args(["pull", str(tmp_path)])

    await _run_pull(args, cancel)

    out = capsys.readouterr().out
    assert "Skipped admin.yaml (file already exists)" in out
    assert "Pull completed: 1 created, 1 skipped" in out
    assert (tmp_path / "new.yaml").exists()


def test_main_runs_sync_end_to_end(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_role(tmp_path, "admin", "resources:\n  allowed: ['*']\n")
    store = FakeRoleStore()
    _use_store(monkeypatch, store)

    assert main(["sync", str(tmp_path), "--verbose"]) == 0
    assert "admin" in store.roles
    assert "Sync completed: Created 1 role(s)" in capsys.readouterr().out


def _raising(error: BaseException):
    def _run(coro: Any) -> None:
        coro.close()
        raise error

    return _run


def _cancelled_sync_error() -> SyncError:
    try:
        try:
            raise OperationCancelledError("interrupted by SIGINT")
        except OperationCancelledError as exc:
            raise SyncError("failed to create role 'a': interrupted by SIGINT") from exc
    except SyncError as wrapped:
        return wrapped


@pytest.mark.parametrize(
    ("error", "exit_code"),
    [
        (ConfigError("bad config"), 3),
        (RoleLoadError("bad roles"), 3),
        (DuplicateMemberError("a@x.com", ["admin", "ops"]), 3),
        (AuthenticationError(401, "bad token"), 4),
        (NetworkError("down"), 4),
        (SyncError("sync failed"), 5),
        (OperationCancelledError("interrupted"), 130),
        (KeyboardInterrupt(), 130),
        (_cancelled_sync_error(), 130),
        (RuntimeError("boom"), 1),
    ],
)
def test_main_maps_errors_to_exit_codes(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    error: BaseException,
    exit_code: int,
) -> None:
    monkeypatch.setattr(cli.asyncio, "run", _raising(error))

    actual = main(["sync", "--dry-run"])

    assert actual == exit_code
    assert "error:" in capsys.readouterr().err


def test_main_prints_guidance(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(cli.asyncio, "run", _raising(ConfigError("API token is required", guidance="set it")))

    assert main(["pull"]) == 3
    assert capsys.readouterr().err == "error: API token is required\nhelp: set it\n"


def test_main_without_token_is_input_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["sync", str(tmp_path), "--dry-run"]) == 3
    assert "API token is required" in capsys.readouterr().err


def test_main_init_writes_template(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output = tmp_path / "config.yaml"

    assert main(["init", "--output", str(output)]) == 0
    assert output.exists()
    assert f"Config written to {output}" in capsys.readouterr().out


def test_main_init_refuses_overwrite(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output = tmp_path / "config.yaml"
    output.write_text("api_token: keep\n", encoding="utf-8")

    assert main(["init", "-o", str(output)]) == 3
    assert "help: Pass --force to overwrite it." in capsys.readouterr().err
    assert output.read_text(encoding="utf-8") == "api_token: keep\n"


def test_main_init_uses_default_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli, "DEFAULT_CONFIG_PATH", tmp_path / "default" / "config.yaml")

    assert main(["init"]) == 0
    assert (tmp_path / "default" / "config.yaml").exists()


@pytest.mark.asyncio
async def test_confirm_declines_without_terminal(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "stdin", SimpleNamespace(isatty=lambda: False))

    assert await confirm("Proceed?") is False
    assert "pass --force to proceed" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_confirm_asks_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    asked: list[tuple[str, bool]] = []

    class _Question:
        async def ask_async(self) -> bool:
            return True

    def _confirm(message: str, default: bool) -> _Question:
        asked.append((message, default))
        return _Question()

    monkeypatch.setattr(sys, "stdin", SimpleNamespace(isatty=lambda: True))
    monkeypatch.setitem(sys.modules, "questionary", SimpleNamespace(confirm=_confirm))

    assert await confirm("Proceed?") is True
    assert asked == [("Proceed?", False)]


@pytest.mark.asyncio
async def test_confirm_treats_aborted_prompt_as_no(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Question:
        async def ask_async(self) -> None:
            return None

    monkeypatch.setattr(sys, "stdin", SimpleNamespace(isatty=lambda: True))
    monkeypatch.setitem(sys.modules, "questionary", SimpleNamespace(confirm=lambda *_a, **_k: _Question()))

    assert await confirm("Proceed?") is False


@pytest.mark.asyncio
async def test_run_with_signals_passes_fresh_token() -> None:
    seen: list[CancelToken] = []

    async def _main(token: CancelToken) -> str:
        seen.append(token)
        return "done"

    assert await run_with_signals(_main) == "done"
    assert len(seen) == 1
    assert seen[0].cancelled is False
