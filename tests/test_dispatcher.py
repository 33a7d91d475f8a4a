from __future__ import annotations

import pytest

from conftest import FakeProbe, FakeProcess, FakeSessions
from mc_ctrl.common.errors import RconConnectionError, RconTimeoutError, ValidationError
from mc_ctrl.core.dispatcher import CommandDispatcher, read_recent_lines
from mc_ctrl.core.models import ActionResult, BannedPlayer, ProbeResult, ServerState
from mc_ctrl.core.status import StatusAggregator


@pytest.fixture
def sleeps():
    return []


def make_dispatcher(rcon_config, sessions, process=None, sleeps=None, **kwargs):
    return CommandDispatcher(
        rcon_config,
        process=process or FakeProcess(),
        session_factory=sessions,
        sleep=(sleeps.append if sleeps is not None else lambda seconds: None),
        **kwargs,
    )


def test_ban_succeeds(rcon_config):
    sessions = FakeSessions({"ban Steve": "Banned Steve: Banned by an operator."})

    result = make_dispatcher(rcon_config, sessions).dispatch("banPlayer", player="Steve")

    assert result == ActionResult(True, "Banned Steve: Banned by an operator.")
    assert sessions.sent == ["ban Steve"]


def test_ban_is_idempotent(rcon_config):
    sessions = FakeSessions({"ban Steve": "Nothing changed. The player is already banned"})

    result = make_dispatcher(rcon_config, sessions).dispatch("banPlayer", player="Steve")

    assert result.success is True


def test_ban_unknown_player_fails_with_server_text(rcon_config):
    sessions = FakeSessions({"ban Ghost": "That player does not exist"})

    result = make_dispatcher(rcon_config, sessions).dispatch("banPlayer", player="Ghost")

    assert result == ActionResult(False, "That player does not exist")


def test_unban_strips_the_reason(rcon_config):
    sessions = FakeSessions({"pardon Steve": "Unbanned Steve"})

    result = make_dispatcher(rcon_config, sessions).dispatch("unbanPlayer", player="Steve (griefing)")

    assert sessions.sent == ["pardon Steve"]
    assert result == ActionResult(True, "Unbanned Steve")


def test_unban_is_idempotent(rcon_config):
    sessions = FakeSessions({"pardon Alex": "Nothing changed. The player isn't banned"})

    result = make_dispatcher(rcon_config, sessions).unban_player("Alex")

    assert result.success is True


def test_unban_of_whitespace_name_is_rejected(rcon_config):
    sessions = FakeSessions()

    with pytest.raises(ValidationError):
        make_dispatcher(rcon_config, sessions).unban_player("   ")
    assert sessions.opened == 0


@pytest.mark.parametrize(
    "response, expected",
    [
        ("Steve is already an op", True),
        ("STEVE IS ALREADY AN OP", True),
        ("Made Steve a server operator", False),
        (RconTimeoutError("Timeout while receiving data"), False),
    ],
)
def test_check_op(rcon_config, response, expected):
    sessions = FakeSessions({"op Steve": response})

    assert make_dispatcher(rcon_config, sessions).dispatch("checkOp", player="Steve") is expected
    assert sessions.sent == ["op Steve"]


def test_check_op_when_rcon_is_down(rcon_config):
    sessions = FakeSessions(connect_error=RconConnectionError("Connection refused"))

    assert make_dispatcher(rcon_config, sessions).check_op("Steve") is False


@pytest.mark.parametrize(
    "op_action, command",
    [(True, "op Steve"), (False, "deop Steve"), ("true", "op Steve"), ("false", "deop Steve"), (0, "deop Steve")],
)
def test_toggle_op(rcon_config, op_action, command):
    sessions = FakeSessions({command: "done"})

    result = make_dispatcher(rcon_config, sessions).dispatch("toggleOp", player="Steve", opAction=op_action)

    assert sessions.sent == [command]
    assert result == ActionResult(True, "done")


def test_toggle_op_rejects_unreadable_flag(rcon_config):
    sessions = FakeSessions()

    with pytest.raises(ValidationError):
        make_dispatcher(rcon_config, sessions).dispatch("toggleOp", player="Steve", opAction="maybe")
    assert sessions.opened == 0


def test_kick(rcon_config):
    sessions = FakeSessions({"kick Alex": "Kicked Alex: Kicked by an operator"})

    result = make_dispatcher(rcon_config, sessions).dispatch("kickPlayer", player="Alex")

    assert result == ActionResult(True, "Kicked Alex: Kicked by an operator")


def test_command_passes_response_through(rcon_config):
    sessions = FakeSessions({"time set day": "Set the time to 1000"})

    result = make_dispatcher(rcon_config, sessions).dispatch("command", command="time set day")

    assert result == ActionResult(True, "Set the time to 1000")


def test_command_failure_message_is_the_error_text(rcon_config):
    sessions = FakeSessions(connect_error=RconConnectionError("Connection refused"))

    result = make_dispatcher(rcon_config, sessions).dispatch("command", command="list")

    assert result == ActionResult(False, "Connection refused")
    assert sessions.closed == sessions.opened == 1


@pytest.mark.parametrize(
    "action, params",
    [
        ("command", {}),
        ("command", {"command": "   "}),
        ("checkOp", {}),
        ("toggleOp", {"player": "Steve"}),
        ("banPlayer", {"player": None}),
        ("unbanPlayer", {"player": ""}),
        ("kickPlayer", {}),
    ],
)
def test_missing_parameters_are_rejected_before_io(rcon_config, action, params):
    sessions = FakeSessions()

    with pytest.raises(ValidationError):
        make_dispatcher(rcon_config, sessions).dispatch(action, **params)
    assert sessions.opened == 0


@pytest.mark.parametrize("action", ["", None, "explode", "ban"])
def test_unknown_actions_are_rejected(rcon_config, action):
    sessions = FakeSessions()

    with pytest.raises(ValidationError):
        make_dispatcher(rcon_config, sessions).dispatch(action)
    assert sessions.opened == 0


def test_list_bans(rcon_config):
    sessions = FakeSessions({"banlist": "There are 2 bans:\nSteve griefing\nAlex spam bot"})

    bans = make_dispatcher(rcon_config, sessions).dispatch("getBannedPlayers")

    assert bans == [BannedPlayer("Steve", "griefing"), BannedPlayer("Alex", "spam bot")]


def test_list_bans_empty(rcon_config):
    sessions = FakeSessions({"banlist": "There are no bans"})

    assert make_dispatcher(rcon_config, sessions).list_bans() == []


def test_list_bans_propagates_connection_errors(rcon_config):
    sessions = FakeSessions(connect_error=RconConnectionError("Connection refused"))

    with pytest.raises(RconConnectionError):
        make_dispatcher(rcon_config, sessions).list_bans()


def test_refresh_uses_status_aggregator(rcon_config):
    sessions = FakeSessions({"list": "There are 1 of a max of 20 players online: Steve"})
    status = StatusAggregator(rcon_config, FakeProbe(ProbeResult(20, "1.20.1")), session_factory=sessions)

    result = make_dispatcher(rcon_config, sessions, status=status).dispatch("refresh")

    assert result.state is ServerState.ONLINE
    assert result.players == ("Steve",)


def test_start_waits_settle_delay(rcon_config, sleeps):
    process = FakeProcess(stdout="Starting server\n")

    result = make_dispatcher(rcon_config, FakeSessions(), process=process, sleeps=sleeps).dispatch("start")

    assert result == ActionResult(True, "Starting server")
    assert process.calls == ["start"]
    assert sleeps == [10]


def test_start_failure_skips_settle_delay(rcon_config, sleeps):
    process = FakeProcess(failures={"start": "Control script 'start' exited with status 1: no java"})

    result = make_dispatcher(rcon_config, FakeSessions(), process=process, sleeps=sleeps).start()

    assert result == ActionResult(False, "Control script 'start' exited with status 1: no java")
    assert sleeps == []


def test_stop_default_message(rcon_config):
    process = FakeProcess()

    result = make_dispatcher(rcon_config, FakeSessions(), process=process).stop()

    assert result == ActionResult(True, "Server stop requested")
    assert process.calls == ["stop"]


def test_restart_is_stop_then_start(rcon_config, sleeps):
    process = FakeProcess()

    result = make_dispatcher(rcon_config, FakeSessions(), process=process, sleeps=sleeps,
                             start_settle_seconds=2.5).dispatch("restart")

    assert result.success is True
    assert process.calls == ["stop", "start"]
    assert sleeps == [2.5]


def test_restart_does_not_start_after_failed_stop(rcon_config, sleeps):
    process = FakeProcess(failures={"stop": "stop failed"})

    result = make_dispatcher(rcon_config, FakeSessions(), process=process, sleeps=sleeps).restart()

    assert result == ActionResult(False, "stop failed")
    assert process.calls == ["stop"]
    assert sleeps == []


def test_logs_returns_last_lines(rcon_config, tmp_path):
    log_file = tmp_path / "latest.log"
    log_file.write_text("".join(f"line {n}\n" for n in range(150)), encoding="utf-8")

    lines = make_dispatcher(rcon_config, FakeSessions(), log_path=str(log_file)).dispatch("logs")

    assert len(lines) == 100
    assert lines[0] == "line 50"
    assert lines[-1] == "line 149"


def test_logs_missing_file_is_empty(rcon_config, tmp_path, caplog):
    dispatcher = make_dispatcher(rcon_config, FakeSessions(), log_path=str(tmp_path / "missing.log"))

    assert dispatcher.logs() == []
    assert "Failed to read server log" in caplog.text


def test_read_recent_lines_short_file(tmp_path):
    log_file = tmp_path / "latest.log"
    log_file.write_text("a\r\nb\n", encoding="utf-8")

    assert read_recent_lines(log_file, 5) == ["a", "b"]
