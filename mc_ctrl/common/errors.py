"""
Custom exception classes for MC Control.
"""

from typing import Optional


class McCtrlError(Exception):
    """Base exception class for MC Control errors."""
    pass


class ValidationError(McCtrlError):
    """Raised when an action is unknown or misses a required parameter."""
    pass


class ProbeError(McCtrlError):
    """Raised when the query protocol gives no answer in any variant."""
    pass


class RconConnectionError(McCtrlError):
    """Raised when RCON connection fails."""
    pass


class RconAuthenticationError(RconConnectionError):
    """Raised when RCON authentication fails."""
    pass


class RconPacketError(McCtrlError):
    """Raised when RCON packet is malformed or invalid."""
    pass


class RconTimeoutError(McCtrlError):
    """Raised when RCON operation times out."""
    pass


class ProcessControlError(McCtrlError):
    """Raised when the control script cannot be launched or exits non-zero."""

    def __init__(self, message: str, exit_code: Optional[int] = None,
                 stdout: str = '', stderr: str = '') -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
