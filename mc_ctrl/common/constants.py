"""
Constants and exit codes for MC Control.
"""

DEFAULT_HOST = '127.0.0.1'
DEFAULT_RCON_PORT = 25575
DEFAULT_GAME_PORT = 25565

DEFAULT_QUERY_TIMEOUT = 3.0
DEFAULT_RCON_CONNECT_TIMEOUT = 5.0
DEFAULT_RCON_READ_TIMEOUT = 5.0

DEFAULT_CONTROL_TIMEOUT = 120.0
# Wait after a start before the caller is expected to re-poll status.
DEFAULT_START_SETTLE_SECONDS = 10.0

DEFAULT_LOG_PATH = 'logs/latest.log'
DEFAULT_LOG_LINES = 100


class ExitCodes:
    """Exit codes for different error conditions."""
    OK = 0
    VALIDATION_FAILED = 1
    RCON_CONNECTION_FAILED = 2
    RCON_PASSWORD_WRONG = 3
    RCON_TIMEOUT = 4
    RCON_PACKET_ERROR = 5
    RCON_COMMAND_EXECUTION_FAILED = 6
    PROCESS_CONTROL_FAILED = 7
    ACTION_FAILED = 8


class RconPacketTypes:
    """RCON packet type constants."""
    RESPONSE_VALUE = 0
    EXEC_COMMAND = 2
    AUTH_RESPONSE = 2
    AUTH = 3


class ProcessVerbs:
    """Verbs accepted by the external control script."""
    START = 'start'
    STOP = 'stop'
    ALL = (START, STOP)
