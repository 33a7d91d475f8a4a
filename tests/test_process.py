from __future__ import annotations

import subprocess

import pytest

import mc_ctrl.core.process as process
from mc_ctrl.common.config import ControlSettings
from mc_ctrl.common.errors import ProcessControlError
from mc_ctrl.core.process import ScriptProcessController


def fake_run(returncode=0, stdout="", stderr="", error=None, calls=None):
    def run(command, **kwargs):
        if calls is not None:
            calls.append((command, kwargs))
        if error is not None:
            raise error
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)

    return run


def test_runs_script_with_verb(monkeypatch):
    calls = []
    monkeypatch.setattr(process.subprocess, "run", fake_run(stdout="ok\n", calls=calls))

    result = ScriptProcessController("/opt/mc/control.sh", timeout=30).run("start")

    assert result.ok
    assert result.stdout == "ok\n"
    command, kwargs = calls[0]
    assert command == ["/opt/mc/control.sh", "start"]
    assert kwargs["timeout"] == 30
    assert kwargs["capture_output"] is True


def test_non_zero_exit_raises_with_stderr(monkeypatch):
    monkeypatch.setattr(process.subprocess, "run", fake_run(returncode=2, stderr="screen not found\n"))

    with pytest.raises(ProcessControlError) as excinfo:
        ScriptProcessController("/opt/mc/control.sh").run("stop")

    error = excinfo.value
    assert error.exit_code == 2
    assert "screen not found" in str(error)
    assert error.stderr == "screen not found\n"


def test_timeout_raises(monkeypatch):
    expired = subprocess.TimeoutExpired(["control.sh", "start"], 5, output=b"partial")
    monkeypatch.setattr(process.subprocess, "run", fake_run(error=expired))

    with pytest.raises(ProcessControlError) as excinfo:
        ScriptProcessController("control.sh", timeout=5).run("start")

    assert "timed out" in str(excinfo.value)
    assert excinfo.value.stdout == "partial"


def test_missing_script_binary(monkeypatch):
    monkeypatch.setattr(process.subprocess, "run", fake_run(error=FileNotFoundError("No such file")))

    with pytest.raises(ProcessControlError, match="Failed to launch"):
        ScriptProcessController("/missing.sh").run("start")


def test_unconfigured_script_is_an_error(monkeypatch):
    calls = []
    monkeypatch.setattr(process.subprocess, "run", fake_run(calls=calls))

    with pytest.raises(ProcessControlError, match="MC_CONTROL_SCRIPT"):
        ScriptProcessController(None).run("start")
    assert calls == []


def test_unknown_verb_is_rejected():
    with pytest.raises(ProcessControlError):
        ScriptProcessController("/opt/mc/control.sh").run("restart")


def test_from_settings():
    settings = ControlSettings(control_script="/srv/mc.sh", control_timeout=45.0)

    controller = ScriptProcessController.from_settings(settings)

    assert controller.script == "/srv/mc.sh"
    assert controller.timeout == 45.0
