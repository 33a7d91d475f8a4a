"""Shared CLI helpers for mc-ctrl commands."""

import sys
from typing import Optional

from mc_ctrl.common.config import ControlSettings
from mc_ctrl.common.constants import ExitCodes
from mc_ctrl.common.errors import (
    ProcessControlError,
    RconAuthenticationError,
    RconConnectionError,
    RconPacketError,
    RconTimeoutError,
    ValidationError,
)
from mc_ctrl.core.dispatcher import CommandDispatcher
from mc_ctrl.core.models import ActionResult


def exit_with_error(message: str, exit_code: int) -> None:
    """Print an error message and exit with the specified code."""
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(exit_code)


def map_exception_to_exit_code(exc: Exception) -> Optional[int]:
    """Translate known exceptions to mc-ctrl exit codes."""
    if isinstance(exc, ValidationError):
        return ExitCodes.VALIDATION_FAILED
    # Checked before its RconConnectionError base class.
    if isinstance(exc, RconAuthenticationError):
        return ExitCodes.RCON_PASSWORD_WRONG
    if isinstance(exc, RconConnectionError):
        return ExitCodes.RCON_CONNECTION_FAILED
    if isinstance(exc, RconTimeoutError):
        return ExitCodes.RCON_TIMEOUT
    if isinstance(exc, RconPacketError):
        return ExitCodes.RCON_PACKET_ERROR
    if isinstance(exc, ProcessControlError):
        return ExitCodes.PROCESS_CONTROL_FAILED
    return None


def build_dispatcher() -> CommandDispatcher:
    """Create a dispatcher from the environment."""
    return CommandDispatcher.from_settings(ControlSettings.from_env())


def report_action(result: ActionResult, failure_code: int = ExitCodes.ACTION_FAILED) -> None:
    """Print a successful action's message or exit with its failure."""
    if result.success:
        if result.message:
            print(result.message)
        return
    exit_with_error(result.message or "Action failed", failure_code)


def fail_from_exception(exc: Exception, default_code: int, prefix: str = "") -> None:
    exit_code = map_exception_to_exit_code(exc)
    if exit_code is None:
        exit_code = default_code
    if isinstance(exc, RconAuthenticationError):
        message = "Authentication failed (wrong RCON password). Check RCON_PASSWORD."
    else:
        message = f"{prefix}{exc}"
    exit_with_error(message, exit_code)
