"""
Value types returned by the status and command layers.

All of them are immutable snapshots: nothing in mc_ctrl keeps or caches
them between calls.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple


def _freeze(mods: Optional[Sequence['ModInfo']]) -> Optional[Tuple['ModInfo', ...]]:
    return tuple(mods) if mods is not None else None


class ServerState(str, Enum):
    ONLINE = 'online'
    OFFLINE = 'offline'


@dataclass(frozen=True)
class ModInfo:
    """One entry of a mod-loader listing."""

    name: str
    id: str
    version: str
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'id': self.id,
            'version': self.version,
            'priority': self.priority,
        }


@dataclass(frozen=True)
class BannedPlayer:
    name: str
    reason: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'reason': self.reason}


@dataclass(frozen=True)
class ActionResult:
    """Uniform outcome of a mutating action."""

    success: bool
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'success': self.success, 'message': self.message}


@dataclass(frozen=True)
class ServerStatus:
    """Reconciled view of the server built from every probing source.

    ``max_players`` of 0 means unknown. ``error`` is only set when no
    source answered.
    """

    state: ServerState = ServerState.OFFLINE
    players: Tuple[str, ...] = ()
    max_players: int = 0
    version: Optional[str] = None
    mods: Optional[Tuple[ModInfo, ...]] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'players', tuple(self.players))
        object.__setattr__(self, 'mods', _freeze(self.mods))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the key names the web panel expects."""
        return {
            'status': self.state.value,
            'players': list(self.players),
            'maxPlayers': self.max_players,
            'version': self.version,
            'mods': [mod.to_dict() for mod in self.mods] if self.mods is not None else None,
            'error': self.error,
        }


@dataclass(frozen=True)
class ProbeResult:
    """What the query protocol reported about a live server."""

    max_players: int = 0
    version: Optional[str] = None


@dataclass(frozen=True)
class VersionInfo:
    """Outcome of the RCON version / mod probe."""

    version: Optional[str] = None
    mods: Optional[Tuple[ModInfo, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'mods', _freeze(self.mods))


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of one control-script invocation."""

    exit_code: int
    stdout: str = ''
    stderr: str = ''

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
