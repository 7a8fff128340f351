"""Tests for the rbacsync module entrypoint."""

from __future__ import annotations

import importlib
import runpy
import sys
import tomllib
from pathlib import Path

import pytest


def test_module_entrypoint_exits_only_when_run_as_main(monkeypatch: pytest.MonkeyPatch) -> None:
    cli_module = importlib.import_module("rbacsync.cli")
    calls: list[int] = []

    def fake_main() -> int:
        calls.append(1)
        return 4

    monkeypatch.setattr(cli_module, "main", fake_main)
    monkeypatch.delitem(sys.modules, "rbacsync.__main__", raising=False)

    importlib.import_module("rbacsync.__main__")
    assert calls == []

    monkeypatch.delitem(sys.modules, "rbacsync.__main__", raising=False)
    with pytest.raises(SystemExit) as exc_info:
        runpy.run_module("rbacsync.__main__", run_name="__main__")

    assert calls == [1]
    assert exc_info.value.code == 4


def test_pyproject_defines_console_script() -> None:
    pyproject_path = Path(__file__).resolve().parents[1] / "pyproject.toml"
    pyproject_data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))

    assert pyproject_data["project"]["scripts"]["rbacsync"] == "rbacsync.cli:main"
