"""MC Control - Minecraft server status and administration core.

Provides:
* A reconciled server status from the status ping and RCON
* Parsers for the plain-text RCON responses of common server distributions
* Player administration (kick, ban, unban, op) with idempotent outcomes
* Start/stop through an external control script
* Thin CLI wrapper (`mc-ctrl`)
"""

from ._version import __version__
from .common.config import ControlSettings, RconConfig  # noqa: F401
from .common.logging_config import configure_logging  # noqa: F401
from .core.dispatcher import CommandDispatcher  # noqa: F401
from .core.models import ActionResult, BannedPlayer, ModInfo, ServerState, ServerStatus  # noqa: F401
from .core.rcon import RconClient, execute_rcon_command, rcon_session, with_session  # noqa: F401
from .core.status import StatusAggregator, StatusProbe  # noqa: F401

__all__ = [
	"__version__",
	"configure_logging",
	"ControlSettings",
	"RconConfig",
	"CommandDispatcher",
	"ActionResult",
	"BannedPlayer",
	"ModInfo",
	"ServerState",
	"ServerStatus",
	"RconClient",
	"execute_rcon_command",
	"rcon_session",
	"with_session",
	"StatusAggregator",
	"StatusProbe",
]
