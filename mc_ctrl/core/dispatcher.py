"""
Administrative actions on top of RCON and the control script.

Each action opens its own RCON session. Actions issued concurrently are not
ordered with respect to each other: a ``ban`` and an ``unban`` for the same
player sent at the same time may be applied in either order. Callers that
depend on ordering must wait for one `ActionResult` before issuing the next
action.

Mutating actions report failures as ``ActionResult(success=False)`` carrying
the underlying error text. Only a missing parameter or an unknown action
raises (`ValidationError`), and that happens before any I/O.
"""

import time
from collections import deque
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from mc_ctrl.common.config import ControlSettings, RconConfig
from mc_ctrl.common.constants import (
    DEFAULT_GAME_PORT,
    DEFAULT_LOG_LINES,
    DEFAULT_LOG_PATH,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_START_SETTLE_SECONDS,
    ProcessVerbs,
)
from mc_ctrl.common.errors import McCtrlError, ValidationError
from mc_ctrl.common.logging_config import get_logger

from .models import ActionResult, BannedPlayer, ServerStatus
from .parsers import normalize_player_name, parse_ban_list
from .process import ProcessController, ScriptProcessController
from .rcon import SessionFactory, execute_rcon_command, rcon_session
from .status import StatusAggregator, StatusProbe

OP_ALREADY_MARKER = 'already an op'
BAN_SUCCESS_MARKERS = ('banned', 'already banned')
UNBAN_SUCCESS_MARKERS = ('unbanned', 'not banned', "isn't banned")

_TRUE_STRINGS = {'true', '1', 'yes', 'on'}
_FALSE_STRINGS = {'false', '0', 'no', 'off'}

# Errors an RCON round-trip can end with; anything else is a bug and propagates.
_ACTION_ERRORS = (McCtrlError, OSError, ValueError)


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    if isinstance(value, int):
        return bool(value)
    raise ValidationError(f"Invalid value for {name}: {value!r}")


def _contains_any(text: str, markers: Tuple[str, ...]) -> bool:
    lowered = (text or '').lower()
    return any(marker in lowered for marker in markers)


def read_recent_lines(path, limit: int) -> List[str]:
    """Return up to ``limit`` trailing lines of a text file."""
    with open(path, 'r', encoding='utf-8', errors='replace') as handle:
        return [line.rstrip('\r\n') for line in deque(handle, maxlen=max(0, limit))]


class CommandDispatcher:
    """Maps panel actions onto RCON commands and control-script verbs."""

    # action name -> (method, required parameters)
    ACTIONS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
        'refresh': ('refresh', ()),
        'command': ('send_command', ('command',)),
        'logs': ('logs', ()),
        'checkOp': ('check_op', ('player',)),
        'toggleOp': ('toggle_op', ('player', 'opAction')),
        'getBannedPlayers': ('list_bans', ()),
        'banPlayer': ('ban_player', ('player',)),
        'unbanPlayer': ('unban_player', ('player',)),
        'kickPlayer': ('kick_player', ('player',)),
        'start': ('start', ()),
        'stop': ('stop', ()),
        'restart': ('restart', ()),
    }

    PARAM_COERCERS: Dict[str, Callable[[str, Any], Any]] = {
        'opAction': _coerce_bool,
    }

    def __init__(self, rcon_config: RconConfig,
                 status: Optional[StatusAggregator] = None,
                 process: Optional[ProcessController] = None,
                 session_factory: SessionFactory = rcon_session,
                 sleep: Callable[[float], None] = time.sleep,
                 start_settle_seconds: float = DEFAULT_START_SETTLE_SECONDS,
                 log_path: str = DEFAULT_LOG_PATH,
                 log_lines: int = DEFAULT_LOG_LINES):
        self.rcon_config = rcon_config
        self.session_factory = session_factory
        self.status = status or StatusAggregator(
            rcon_config,
            StatusProbe(rcon_config.host, DEFAULT_GAME_PORT, timeout=DEFAULT_QUERY_TIMEOUT),
            session_factory=session_factory,
        )
        self.process = process or ScriptProcessController(None)
        self.start_settle_seconds = start_settle_seconds
        self.log_path = log_path
        self.log_lines = log_lines
        self._sleep = sleep
        self._log = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: Optional[ControlSettings] = None) -> 'CommandDispatcher':
        settings = settings or ControlSettings.from_env()
        rcon_config = settings.rcon_config()
        return cls(
            rcon_config,
            status=StatusAggregator(rcon_config, StatusProbe.from_settings(settings)),
            process=ScriptProcessController.from_settings(settings),
            start_settle_seconds=settings.start_settle_seconds,
            log_path=settings.log_path,
            log_lines=settings.log_lines,
        )

    # -- action API ---------------------------------------------------------

    def dispatch(self, action: str, **params: Any) -> Any:
        """
        Run ``action`` with keyword parameters named as in the web API
        (``command``, ``player``, ``opAction``).

        Raises:
            ValidationError: If the action is unknown or a required parameter is missing
        """
        if not action:
            raise ValidationError("No action specified")
        entry = self.ACTIONS.get(action)
        if entry is None:
            raise ValidationError(f"Invalid action: {action!r}")

        method_name, required = entry
        args = [self._require(action, params, name) for name in required]
        self._log.debug("Dispatching action %s", action)
        return getattr(self, method_name)(*args)

    def _require(self, action: str, params: Dict[str, Any], name: str) -> Any:
        value = params.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"No {name} specified for action {action!r}")
        coerce = self.PARAM_COERCERS.get(name)
        return coerce(name, value) if coerce else value

    # -- status -------------------------------------------------------------

    def refresh(self) -> ServerStatus:
        return self.status.refresh()

    def logs(self) -> List[str]:
        """Last lines of the server log; empty if the file cannot be read."""
        try:
            return read_recent_lines(Path(self.log_path), self.log_lines)
        except OSError as exc:
            self._log.warning("Failed to read server log %s: %s", self.log_path, exc)
            return []

    # -- RCON actions -------------------------------------------------------

    def _send(self, command: str) -> str:
        return execute_rcon_command(command, self.rcon_config, session_factory=self.session_factory)

    def _round_trip(self, command: str) -> Tuple[Optional[str], Optional[ActionResult]]:
        try:
            return self._send(command), None
        except _ACTION_ERRORS as exc:
            self._log.warning("RCON command %r failed: %s", command.split(' ', 1)[0], exc)
            return None, ActionResult(success=False, message=str(exc) or exc.__class__.__name__)

    def send_command(self, command: str) -> ActionResult:
        response, failure = self._round_trip(command)
        if failure is not None:
            return failure
        return ActionResult(success=True, message=response)

    def check_op(self, player: str) -> bool:
        """
        Report whether ``player`` is an operator.

        Vanilla RCON has no read-only query for this, so the check issues
        ``op <player>`` and looks for the "already an op" answer. A player who
        was not an operator is promoted as a side effect.
        """
        response, failure = self._round_trip(f"op {player}")
        if failure is not None:
            return False
        return OP_ALREADY_MARKER in response.lower()

    def toggle_op(self, player: str, should_be_op: bool) -> ActionResult:
        command = f"op {player}" if should_be_op else f"deop {player}"
        response, failure = self._round_trip(command)
        if failure is not None:
            return failure
        return ActionResult(success=True, message=response)

    def ban_player(self, player: str) -> ActionResult:
        """Ban ``player``; banning an already banned player also succeeds."""
        response, failure = self._round_trip(f"ban {player}")
        if failure is not None:
            return failure
        if _contains_any(response, BAN_SUCCESS_MARKERS):
            return ActionResult(success=True, message=response)
        return ActionResult(success=False, message=response or f"Failed to ban {player}")

    def unban_player(self, player: str) -> ActionResult:
        """Pardon ``player``; anything after the first space is dropped first."""
        name = normalize_player_name(player)
        if not name:
            raise ValidationError("No player specified for action 'unbanPlayer'")
        response, failure = self._round_trip(f"pardon {name}")
        if failure is not None:
            return failure
        if _contains_any(response, UNBAN_SUCCESS_MARKERS):
            return ActionResult(success=True, message=response)
        return ActionResult(success=False, message=response or f"Failed to unban {name}")

    def kick_player(self, player: str) -> ActionResult:
        response, failure = self._round_trip(f"kick {player}")
        if failure is not None:
            return failure
        return ActionResult(success=True, message=response)

    def list_bans(self) -> List[BannedPlayer]:
        """
        Query the current ban list.

        Raises:
            RconConnectionError: If the session could not be opened
        """
        return parse_ban_list(self._send('banlist'))

    # -- process control ----------------------------------------------------

    def _run_process(self, verb: str) -> Tuple[ActionResult, bool]:
        try:
            result = self.process.run(verb)
        except McCtrlError as exc:
            self._log.error("Server %s failed: %s", verb, exc)
            return ActionResult(success=False, message=str(exc)), False
        message = result.stdout.strip() or f"Server {verb} requested"
        return ActionResult(success=True, message=message), True

    def start(self) -> ActionResult:
        """
        Start the server, then wait the settle delay.

        Readiness is not awaited; the caller re-polls status afterwards.
        """
        result, ok = self._run_process(ProcessVerbs.START)
        if ok:
            self._sleep(self.start_settle_seconds)
        return result

    def stop(self) -> ActionResult:
        result, _ = self._run_process(ProcessVerbs.STOP)
        return result

    def restart(self) -> ActionResult:
        stopped = self.stop()
        if not stopped.success:
            return stopped
        return self.start()
