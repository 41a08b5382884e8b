from __future__ import annotations

import pytest

from pychip8.utils import debug
from pychip8.utils.debug import debug_enabled, debug_log, reload_categories, report_error


@pytest.fixture(autouse=True)
def _reset_categories():
    reload_categories()
    yield
    reload_categories()


def test_disabled_without_environment(monkeypatch, capsys) -> None:
    monkeypatch.delenv(debug.ENV_DEBUG, raising=False)

    assert not debug_enabled("cpu")
    debug_log("cpu", "hidden %d", 1)
    assert capsys.readouterr().out == ""


def test_categories_are_parsed(monkeypatch, capsys) -> None:
    monkeypatch.setenv(debug.ENV_DEBUG, " CPU , timer")

    assert debug_enabled("cpu")
    assert debug_enabled("timer")
    assert not debug_enabled("audio")

    debug_log("cpu", "pc=%03x", 0x200)
    assert capsys.readouterr().out == "[CHIP8][cpu] pc=200\n"


def test_all_enables_everything(monkeypatch) -> None:
    monkeypatch.setenv(debug.ENV_DEBUG, "all")

    assert debug_enabled("perf")
    assert debug_enabled()


def test_report_error_always_writes_stderr(monkeypatch, capsys) -> None:
    monkeypatch.delenv(debug.ENV_DEBUG, raising=False)

    report_error("cpu", "unknown instruction %04X", 0x0123)

    assert capsys.readouterr().err == "[CHIP8][cpu] ERROR: unknown instruction 0123\n"
