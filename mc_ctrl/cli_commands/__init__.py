"""Registry for CLI subcommands."""

from .player_command import BansCommand, PlayerCommand
from .rcon_command import RconCommand
from .server_command import LogsCommand, ServerCommand
from .status_command import StatusCommand

COMMANDS = (
    StatusCommand,
    RconCommand,
    PlayerCommand,
    BansCommand,
    ServerCommand,
    LogsCommand,
)

__all__ = [
    "COMMANDS",
    "StatusCommand",
    "RconCommand",
    "PlayerCommand",
    "BansCommand",
    "ServerCommand",
    "LogsCommand",
]
