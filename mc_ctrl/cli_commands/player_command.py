"""Player administration commands for the mc-ctrl CLI."""

from mc_ctrl import cli_helpers
from mc_ctrl.common.constants import ExitCodes
from mc_ctrl.common.errors import McCtrlError


class PlayerCommand:
    """Kick, ban, unban and operator management for one player."""

    # CLI verb -> (action name, extra parameters)
    ACTIONS = {
        'kick': ('kickPlayer', {}),
        'ban': ('banPlayer', {}),
        'unban': ('unbanPlayer', {}),
        'op': ('toggleOp', {'opAction': True}),
        'deop': ('toggleOp', {'opAction': False}),
        'check-op': ('checkOp', {}),
    }

    @staticmethod
    def add_parser(subparsers) -> None:
        parser = subparsers.add_parser('player', help='Player administration')
        parser.add_argument('player_action', choices=sorted(PlayerCommand.ACTIONS),
                            help='Action to apply')
        parser.add_argument('player', help='Player name')
        parser.set_defaults(func=PlayerCommand.execute)

    @staticmethod
    def execute(args) -> None:
        action, extra = PlayerCommand.ACTIONS[args.player_action]
        dispatcher = cli_helpers.build_dispatcher()
        try:
            result = dispatcher.dispatch(action, player=args.player, **extra)
        except McCtrlError as exc:
            cli_helpers.fail_from_exception(exc, ExitCodes.ACTION_FAILED)
            return

        if action == 'checkOp':
            print(f"{args.player} is {'an operator' if result else 'not an operator'}")
            return
        cli_helpers.report_action(result)


class BansCommand:
    """Lists banned players."""

    @staticmethod
    def add_parser(subparsers) -> None:
        parser = subparsers.add_parser('bans', help='List banned players')
        parser.set_defaults(func=BansCommand.execute)

    @staticmethod
    def execute(args) -> None:
        dispatcher = cli_helpers.build_dispatcher()
        try:
            bans = dispatcher.dispatch('getBannedPlayers')
        except (McCtrlError, OSError, ValueError) as exc:
            cli_helpers.fail_from_exception(exc, ExitCodes.RCON_COMMAND_EXECUTION_FAILED,
                                            prefix="Failed to list bans: ")
            return

        if not bans:
            print("No banned players.")
            return
        for entry in bans:
            print(f"  {entry.name}: {entry.reason}" if entry.reason else f"  {entry.name}")
