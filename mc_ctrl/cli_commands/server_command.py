"""Server lifecycle and log commands for the mc-ctrl CLI."""

from mc_ctrl import cli_helpers
from mc_ctrl.common.constants import ExitCodes


class ServerCommand:
    """Start, stop or restart through the control script."""

    @staticmethod
    def add_parser(subparsers) -> None:
        parser = subparsers.add_parser('server', help='Start, stop or restart the server')
        parser.add_argument('verb', choices=('start', 'stop', 'restart'), help='Lifecycle action')
        parser.set_defaults(func=ServerCommand.execute)

    @staticmethod
    def execute(args) -> None:
        dispatcher = cli_helpers.build_dispatcher()
        result = dispatcher.dispatch(args.verb)
        cli_helpers.report_action(result, ExitCodes.PROCESS_CONTROL_FAILED)


class LogsCommand:
    """Prints the tail of the server log."""

    @staticmethod
    def add_parser(subparsers) -> None:
        parser = subparsers.add_parser('logs', help='Show recent server log lines')
        parser.set_defaults(func=LogsCommand.execute)

    @staticmethod
    def execute(args) -> None:
        dispatcher = cli_helpers.build_dispatcher()
        lines = dispatcher.dispatch('logs')
        if not lines:
            print("(no logs)")
            return
        print("\n".join(lines))
