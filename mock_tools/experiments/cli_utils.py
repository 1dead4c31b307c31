# mock_tools/experiments/cli_utils.py
# This module contains the command line interface for mocking experiment events and data warehouse payments.


####### IMPORT TOOLS ########
# global imports
import sys
import logging
import argparse
from typing import List, Optional
import uvloop

# local imports
import mock_tools.logs.log_config  # noqa: F401
from mock_tools.config import get_settings
from mock_tools.data_base.crud import StoreUnavailableError
from mock_tools.experiments.schemas import ExperimentType, GenerationSummary
from mock_tools.experiments.templates import (
    mock_experiment_events,
    mock_funnel_experiment_with_trend_metrics,
    mock_data_warehouse_experiment,
)
from mock_tools.experiments.utils import default_start_date, parse_start_date
from mock_tools.infrastructure.resources import Resources


####### LOGGER ########
logger = logging.getLogger("mock_tools.experiments.cli_utils")

VERSION = "1.0.0"
EXPERIMENT_EVENTS = "mock-experiment-events"
DATA_WAREHOUSE = "mock-data-warehouse-experiment"
FUNNEL_WITH_TREND = "mock-funnel-experiment-with-trend-metrics"


######## ARGUMENT TYPES ########
def experiment_type_arg(value: str) -> ExperimentType:
    try:
        return ExperimentType(value)
    except ValueError:
        raise argparse.ArgumentTypeError('Type must be either "funnel" or "trend"') from None


def start_date_arg(value: str):
    try:
        return parse_start_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("flag", help="The flag associated with the experiment")
    parser.add_argument(
        "--start_date",
        type=start_date_arg,
        default=None,
        help="Start date for events (ISO-8601)",
    )
    parser.add_argument(
        "--send-initial-events",
        action="store_true",
        default=False,
        help="Send the initial events for the experiment",
    )


######## PARSER ########
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mock-tools",
        description="Mock PostHog experiment events and data warehouse payments.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    experiment_events = commands.add_parser(
        EXPERIMENT_EVENTS,
        help="Mock events for a funnel or trend experiment (default window: 14 days)",
    )
    experiment_events.add_argument(
        "type",
        type=experiment_type_arg,
        help="The type of experiment to mock (funnel or trend)",
    )
    _add_common_options(experiment_events)

    data_warehouse = commands.add_parser(
        DATA_WAREHOUSE,
        help="Mock exposures in PostHog and payments in the data warehouse (default window: 10 days)",
    )
    _add_common_options(data_warehouse)

    funnel_with_trend = commands.add_parser(
        FUNNEL_WITH_TREND,
        help="Mock a funnel experiment with a purchase trend metric (default window: 14 days)",
    )
    _add_common_options(funnel_with_trend)
    return parser


######## RUN COMMAND ########
async def run_command(args: argparse.Namespace) -> GenerationSummary:
    '''Acquire the external clients, run the chosen template and release them.'''
    settings = get_settings()
    start_date = args.start_date
    if start_date is None:
        days = settings.WAREHOUSE_LOOKBACK_DAYS if args.command == DATA_WAREHOUSE else settings.DEFAULT_LOOKBACK_DAYS
        start_date = default_start_date(days)

    async with Resources(settings, use_store=args.command == DATA_WAREHOUSE) as resources:
        if args.command == EXPERIMENT_EVENTS:
            return await mock_experiment_events(
                resources.sink, args.type, args.flag, start_date, args.send_initial_events,
                settings=settings,
            )
        if args.command == FUNNEL_WITH_TREND:
            return await mock_funnel_experiment_with_trend_metrics(
                resources.sink, args.flag, start_date, args.send_initial_events,
                settings=settings,
            )
        return await mock_data_warehouse_experiment(
            resources.sink, resources.engine, args.flag, start_date, args.send_initial_events,
            settings=settings,
        )


######## MAIN FUNCTION FOR CLI ########
def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    try:
        summary = uvloop.run(run_command(args))
    except StoreUnavailableError as e:
        logger.error("%s aborted: %s", args.command, e)
        return 1

    logger.info(
        "%s done. Users: %d, first events: %d, follow-up events: %d, payments: %d, flag evaluations: %d.",
        args.command,
        summary.users,
        summary.first_events,
        summary.follow_up_events,
        summary.payments,
        summary.flag_evaluations,
    )
    return 0


######## ENTRY POINT ########
if __name__ == "__main__":
    sys.exit(main())
