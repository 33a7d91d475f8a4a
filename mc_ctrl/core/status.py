"""
Server status: query-protocol probing and reconciliation with RCON.

Neither protocol is complete on its own. The status ping reports liveness,
the player limit and the version but can time out on a reachable server;
RCON is authoritative for players but only answers once the server is fully
up. `StatusAggregator.refresh` asks both, in order, and folds every failure
into the returned snapshot instead of raising.
"""

from functools import partial
from typing import Callable, List, Optional, Sequence

from mcstatus import BedrockServer, JavaServer

from mc_ctrl.common.config import ControlSettings, RconConfig
from mc_ctrl.common.constants import DEFAULT_QUERY_TIMEOUT
from mc_ctrl.common.errors import ProbeError
from mc_ctrl.common.logging_config import get_logger

from .fallback import first_success
from .models import ModInfo, ProbeResult, ServerState, ServerStatus, VersionInfo
from .parsers import (
    VERSION_PATTERNS,
    loader_version,
    match_version,
    parse_mod_list,
    parse_player_list,
)
from .rcon import SendFn, SessionFactory, rcon_session, with_session

LIST_COMMAND = 'list'
MOD_LIST_COMMAND = 'forge mods'
VERSION_COMMANDS = ('version', 'ver', 'about', 'help')


def _to_probe_result(response) -> ProbeResult:
    players = getattr(response, 'players', None)
    version = getattr(response, 'version', None)
    max_players = getattr(players, 'max', 0) or 0
    name = getattr(version, 'name', None) or None
    return ProbeResult(max_players=int(max_players), version=name)


class StatusProbe:
    """Liveness probe over the unauthenticated status/query protocol."""

    def __init__(self, host: str, port: int, timeout: float = DEFAULT_QUERY_TIMEOUT,
                 attempts: Optional[Sequence[Callable[[], Optional[ProbeResult]]]] = None):
        self.host = host
        self.port = port
        self.timeout = timeout
        # Java edition ping first; the Bedrock ping only runs when it fails.
        self.attempts = list(attempts) if attempts is not None else [
            self.java_status,
            self.bedrock_status,
        ]
        self._log = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: ControlSettings) -> 'StatusProbe':
        return cls(settings.host, settings.game_port, timeout=settings.query_timeout)

    def java_status(self) -> ProbeResult:
        server = JavaServer(self.host, self.port, timeout=self.timeout)
        return _to_probe_result(server.status())

    def bedrock_status(self) -> ProbeResult:
        server = BedrockServer(self.host, self.port, timeout=self.timeout)
        return _to_probe_result(server.status())

    def probe(self) -> ProbeResult:
        """
        Ping the server.

        Raises:
            ProbeError: If no status variant answered
        """
        result = first_success(self.attempts)
        if result is None:
            raise ProbeError(f"{self.host}:{self.port} did not answer a status query")
        self._log.debug("Status query answered: max_players=%s version=%s",
                        result.max_players, result.version)
        return result


def _mod_listing(send: SendFn, command: str, patterns) -> Optional[VersionInfo]:
    text = send(command)
    mods = parse_mod_list(text)
    if not mods:
        return None
    return VersionInfo(version=match_version(text, patterns) or loader_version(mods), mods=mods)


def _version_banner(send: SendFn, command: str, patterns) -> Optional[VersionInfo]:
    version = match_version(send(command), patterns)
    if version is None:
        return None
    return VersionInfo(version=version)


def probe_version_and_mods(send: SendFn,
                           mod_command: str = MOD_LIST_COMMAND,
                           version_commands: Sequence[str] = VERSION_COMMANDS,
                           patterns=VERSION_PATTERNS) -> Optional[VersionInfo]:
    """
    Find the server version (and mod list) over an open RCON session.

    The mod-loader listing is tried first; after that each generic command
    is tried in order. The first command whose response matches one of the
    banner patterns wins.
    """
    attempts = [partial(_mod_listing, send, mod_command, patterns)]
    attempts.extend(partial(_version_banner, send, command, patterns) for command in version_commands)
    return first_success(attempts)


class StatusAggregator:
    """Builds one `ServerStatus` from the status ping and RCON."""

    def __init__(self, rcon_config: RconConfig, probe: StatusProbe,
                 session_factory: SessionFactory = rcon_session,
                 version_probe: Callable[[SendFn], Optional[VersionInfo]] = probe_version_and_mods):
        self.rcon_config = rcon_config
        self.probe = probe
        self.session_factory = session_factory
        self.version_probe = version_probe
        self._log = get_logger(__name__)

    def refresh(self) -> ServerStatus:
        """
        Return a fresh snapshot. Never raises.

        A successful RCON ``list`` marks the server online even if the ping
        failed. The RCON error is only reported when the ping failed as well.
        """
        state = ServerState.OFFLINE
        players: List[str] = []
        max_players = 0
        version: Optional[str] = None
        mods: Optional[Sequence[ModInfo]] = None
        error: Optional[str] = None

        try:
            probed = self.probe.probe()
        except Exception as exc:  # noqa: BLE001 - an unanswered ping just means "no signal"
            self._log.debug("Status query failed: %s", exc)
        else:
            state = ServerState.ONLINE
            max_players = probed.max_players
            version = probed.version

        try:
            listing = with_session(self.rcon_config, lambda send: send(LIST_COMMAND),
                                   session_factory=self.session_factory)
        except Exception as exc:  # noqa: BLE001
            self._log.info("RCON player list unavailable: %s", exc)
            if state is ServerState.OFFLINE:
                error = str(exc) or exc.__class__.__name__
        else:
            players, max_players = parse_player_list(listing, max_players)
            state = ServerState.ONLINE

        if state is ServerState.ONLINE:
            info = self._probe_versions()
            if info is not None:
                if info.mods is not None:
                    mods = info.mods
                if version is None:
                    version = info.version

        return ServerStatus(
            state=state,
            players=players,
            max_players=max_players,
            version=version,
            mods=mods,
            error=error,
        )

    def _probe_versions(self) -> Optional[VersionInfo]:
        try:
            return with_session(self.rcon_config, self.version_probe,
                                session_factory=self.session_factory)
        except Exception as exc:  # noqa: BLE001 - version details are optional
            self._log.debug("Version probe failed: %s", exc)
            return None
