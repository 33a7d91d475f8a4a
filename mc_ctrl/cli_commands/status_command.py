"""Status command handling for the mc-ctrl CLI."""

import json

from mc_ctrl import cli_helpers


class StatusCommand:
    """Prints the reconciled server status as JSON."""

    @staticmethod
    def add_parser(subparsers) -> None:
        parser = subparsers.add_parser('status', help='Show server status (status ping + RCON)')
        parser.set_defaults(func=StatusCommand.execute)

    @staticmethod
    def execute(args) -> None:
        dispatcher = cli_helpers.build_dispatcher()
        status = dispatcher.dispatch('refresh')
        print(json.dumps(status.to_dict(), indent=2))
