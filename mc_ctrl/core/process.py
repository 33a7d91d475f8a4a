"""
Start/stop control through an external script.

The script is a black box taking one argument, ``start`` or ``stop``. Exit
status 0 means the request was accepted; whether the server actually
reached the requested state is for a later status refresh to tell.
"""

import subprocess
from abc import ABC, abstractmethod
from typing import Optional

from mc_ctrl.common.config import ControlSettings
from mc_ctrl.common.constants import DEFAULT_CONTROL_TIMEOUT, ProcessVerbs
from mc_ctrl.common.errors import ProcessControlError
from mc_ctrl.common.logging_config import get_logger

from .models import ProcessResult


class ProcessController(ABC):
    """Capability to trigger a server state change."""

    @abstractmethod
    def run(self, verb: str) -> ProcessResult:
        """
        Run the control action ``verb`` (``start`` or ``stop``).

        Raises:
            ProcessControlError: If the action could not be launched or failed
        """


class ScriptProcessController(ProcessController):
    """Runs ``<script> <verb>`` and captures its output."""

    def __init__(self, script: Optional[str], timeout: float = DEFAULT_CONTROL_TIMEOUT):
        self.script = script
        self.timeout = timeout
        self._log = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: ControlSettings) -> 'ScriptProcessController':
        return cls(settings.control_script, timeout=settings.control_timeout)

    def run(self, verb: str) -> ProcessResult:
        if verb not in ProcessVerbs.ALL:
            raise ProcessControlError(f"Unsupported control verb: {verb!r}")
        if not self.script:
            raise ProcessControlError("No control script configured (set MC_CONTROL_SCRIPT)")

        command = [self.script, verb]
        self._log.info("Running control script: %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProcessControlError(
                f"Control script '{verb}' timed out after {self.timeout}s",
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
            ) from exc
        except OSError as exc:
            raise ProcessControlError(f"Failed to launch control script {self.script}: {exc}") from exc

        result = ProcessResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or '',
            stderr=completed.stderr or '',
        )
        if not result.ok:
            detail = result.stderr.strip() or result.stdout.strip() or 'no output'
            self._log.warning("Control script '%s' exited with %s: %s", verb, result.exit_code, detail)
            raise ProcessControlError(
                f"Control script '{verb}' exited with status {result.exit_code}: {detail}",
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result


def _as_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value
