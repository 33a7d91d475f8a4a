"""
Parsers for the plain-text responses of Minecraft RCON commands.

Every function here is side-effect free and never raises on unexpected
input: a field that cannot be extracted keeps its default. Server
distributions (vanilla, Forge, Paper, Spigot, Bukkit) phrase the same
information differently, so most lookups walk an ordered list of patterns.
"""

import re
from typing import List, Optional, Sequence, Tuple

from .models import BannedPlayer, ModInfo

_ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*[A-Za-z]')
_FORMAT_CODE_PATTERN = re.compile('§.', re.DOTALL)

# Vanilla first, then Paper/Spigot; the second group is the player limit.
MAX_PLAYER_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r'(\d+)\s+of a max of\s+(\d+)', re.IGNORECASE),
    re.compile(r'(\d+)\s+out of maximum\s+(\d+)', re.IGNORECASE),
)

NO_BANS_MARKER = 'there are no bans'
BAN_HEADER_MARKER = 'banned players'
BAN_COUNT_HEADER = re.compile(r'^there (?:are|is) \d+ bans?', re.IGNORECASE)
BAN_ENTRY_PATTERN = re.compile(r'^(\S+)\s+(.*)')

MOD_ENTRY_PATTERN = re.compile(
    r'^\s*[•*]\s*(?P<name>.+?)\s*:\s*(?P<id>[^\s(]+)\s*'
    r'\((?P<version>[^)]*)\)\s*(?:-\s*(?P<priority>-?\d+))?'
)

# Banner formats, most specific first; group 1 is the version.
VERSION_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r'\(MC:\s*([^)\s]+)\s*\)'),
    re.compile(r'This server is running \S+ version (\S+)', re.IGNORECASE),
    re.compile(r'\bMinecraft(?:\s+server)?(?:\s+version)?\s*:?\s*v?(\d+\.\d+(?:\.\d+)?)', re.IGNORECASE),
    re.compile(r'\bversion\s*:?\s*v?(\d+(?:\.\d+)+)', re.IGNORECASE),
)

LOADER_MOD_IDS = ('forge', 'neoforge', 'minecraft')


def clean_rcon_output(text) -> str:
    """Strip ANSI escapes and section-sign formatting codes from RCON output."""
    if not isinstance(text, str):
        return ''
    cleaned = _ANSI_PATTERN.sub('', text)
    return _FORMAT_CODE_PATTERN.sub('', cleaned)


def parse_max_players(text) -> Optional[int]:
    """Return the player limit announced by a ``list`` response, if any."""
    cleaned = clean_rcon_output(text)
    for pattern in MAX_PLAYER_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            return int(match.group(2))
    return None


def parse_player_list(text, max_players: int = 0) -> Tuple[List[str], int]:
    """
    Parse a ``list`` response such as
    ``"There are 2 of a max of 20 players online: Steve, Alex"``.

    Returns the player names in server order and the player limit. The limit
    stays ``max_players`` when the text does not state one.
    """
    cleaned = clean_rcon_output(text)
    players: List[str] = []
    if ':' in cleaned:
        _, remainder = cleaned.split(':', 1)
        players = [token.strip() for token in remainder.strip().split(',')]
        players = [name for name in players if name]

    parsed_max = parse_max_players(cleaned)
    return players, parsed_max if parsed_max is not None else max_players


def parse_ban_list(text) -> List[BannedPlayer]:
    """Parse a ``banlist`` response into ``BannedPlayer`` entries."""
    cleaned = clean_rcon_output(text)
    if NO_BANS_MARKER in cleaned.lower():
        return []

    bans: List[BannedPlayer] = []
    for raw_line in cleaned.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        lowered = line.lower()
        if BAN_HEADER_MARKER in lowered or 'no bans' in lowered or line.isdigit():
            continue
        if BAN_COUNT_HEADER.match(line):
            continue
        match = BAN_ENTRY_PATTERN.match(line)
        if match:
            bans.append(BannedPlayer(name=match.group(1), reason=match.group(2).strip()))
    return bans


def parse_mod_list(text) -> List[ModInfo]:
    """Parse bullet entries of the form ``"• name : id (version) - priority"``."""
    mods: List[ModInfo] = []
    for line in clean_rcon_output(text).splitlines():
        match = MOD_ENTRY_PATTERN.match(line)
        if not match:
            continue
        priority = match.group('priority')
        mods.append(ModInfo(
            name=match.group('name').strip(),
            id=match.group('id').strip(),
            version=match.group('version').strip(),
            priority=int(priority) if priority is not None else 0,
        ))
    return mods


def match_version(text, patterns: Sequence[re.Pattern] = VERSION_PATTERNS) -> Optional[str]:
    """Return group 1 of the first pattern that matches ``text``."""
    cleaned = clean_rcon_output(text)
    if not cleaned:
        return None
    for pattern in patterns:
        match = pattern.search(cleaned)
        if match:
            version = match.group(1).strip()
            if version:
                return version
    return None


def loader_version(mods: Sequence[ModInfo]) -> Optional[str]:
    """Version of the mod loader (or the game itself) among listed mods."""
    for loader_id in LOADER_MOD_IDS:
        for mod in mods:
            if mod.id.lower() == loader_id and mod.version:
                return mod.version
    return None


def normalize_player_name(raw) -> str:
    """Keep only the text before the first space (``"Steve (griefing)"`` -> ``"Steve"``)."""
    if not isinstance(raw, str):
        return ''
    stripped = raw.strip()
    if not stripped:
        return ''
    return stripped.split(None, 1)[0]
