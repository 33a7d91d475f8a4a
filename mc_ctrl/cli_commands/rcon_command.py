"""RCON command handling for the mc-ctrl CLI."""

from mc_ctrl import cli_helpers
from mc_ctrl.common.constants import ExitCodes
from mc_ctrl.common.errors import ValidationError


class RconCommand:
    """Handles raw RCON command execution."""

    @staticmethod
    def add_parser(subparsers) -> None:
        """Add RCON command parser to subparsers."""
        parser = subparsers.add_parser('rcon', help='Interface for RCON command execution')
        parser.add_argument('--exec', dest='command', required=True,
                            help='An RCON command to execute')
        parser.set_defaults(func=RconCommand.execute)

    @staticmethod
    def execute(args) -> None:
        """Execute an RCON command."""
        dispatcher = cli_helpers.build_dispatcher()
        try:
            result = dispatcher.dispatch('command', command=args.command)
        except ValidationError as exc:
            cli_helpers.fail_from_exception(exc, ExitCodes.VALIDATION_FAILED, prefix="Invalid command: ")
            return
        cli_helpers.report_action(result, ExitCodes.RCON_COMMAND_EXECUTION_FAILED)
