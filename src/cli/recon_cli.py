"""
Command-line interface for the reconciliation reports.

Usage:
    python -m src.cli.recon_cli get-increase-transaction [payroll_run_ids ...] [options]
    python -m src.cli.recon_cli get-employer-info [employer_ids ...] [options]
    python -m src.cli.recon_cli get-employer-bank-info [employer_ids ...] [options]
    python -m src.cli.recon_cli get-worker-bank-info [employer_ids ...] [options]
    python -m src.cli.recon_cli get-worker-info [employer_ids ...] [--worker-id IDS ...] [options]
    python -m src.cli.recon_cli run-all [options]

Running without a command, or with an unknown one, prints this usage and
exits with status 0.
"""

import argparse
import sys

from dotenv import load_dotenv

from src.core.defaults import DEFAULT_DEFAULTS_PATH, DefaultsLoader, RunDefaults
from src.observability.logger import get_logger, setup_logger
from src.observability.metrics import write_metrics_file
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import FailurePolicy
from src.pipeline.services import (
    get_employer_bank_info,
    get_employer_info,
    get_increase_transactions,
    get_worker_bank_info,
    get_worker_info_by_employer_ids,
    get_worker_info_by_worker_ids,
)

logger = get_logger(__name__)


def _keys(given: list[str], default: list[str], kind: str) -> list[str]:
    if given:
        logger.info(f"Processing {len(given)} {kind} IDs")
        return given
    logger.info(f"No {kind} IDs provided. Using default list.")
    return default


def increase_transactions_command(args, context: ReconContext, defaults: RunDefaults) -> None:
    """Reconcile payment orders of payroll runs against Increase transfers."""
    ids = _keys(args.ids, defaults.payroll_run_ids, "payroll run")
    get_increase_transactions(context, ids)


def employer_info_command(args, context: ReconContext, defaults: RunDefaults) -> None:
    """Export employer business information."""
    ids = _keys(args.ids, defaults.employer_ids, "employer")
    get_employer_info(context, ids)


def employer_bank_info_command(args, context: ReconContext, defaults: RunDefaults) -> None:
    """Export employer bank accounts with their authorizers."""
    ids = _keys(args.ids, defaults.employer_ids, "employer")
    get_employer_bank_info(context, ids)


def worker_bank_info_command(args, context: ReconContext, defaults: RunDefaults) -> None:
    """Export worker bank accounts of employers."""
    ids = _keys(args.ids, defaults.employer_ids, "employer")
    get_worker_bank_info(context, ids)


def worker_info_command(args, context: ReconContext, defaults: RunDefaults) -> None:
    """Export worker personal information by worker id or employer id."""
    if args.worker_id:
        logger.info(f"Processing {len(args.worker_id)} worker IDs")
        get_worker_info_by_worker_ids(context, args.worker_id)
        return
    ids = _keys(args.ids, defaults.employer_ids, "employer")
    get_worker_info_by_employer_ids(context, ids)


def run_all_command(args, context: ReconContext, defaults: RunDefaults) -> None:
    """Run every report with the default ids."""
    get_increase_transactions(context, defaults.payroll_run_ids)
    get_employer_info(context, defaults.employer_ids)
    get_employer_bank_info(context, defaults.employer_ids)
    get_worker_bank_info(context, defaults.employer_ids)
    get_worker_info_by_employer_ids(context, defaults.employer_ids)


COMMANDS = {
    "get-increase-transaction": (increase_transactions_command, "payroll run"),
    "get-employer-info": (employer_info_command, "employer"),
    "get-employer-bank-info": (employer_bank_info_command, "employer"),
    "get-worker-bank-info": (worker_bank_info_command, "employer"),
    "get-worker-info": (worker_info_command, "employer"),
    "run-all": (run_all_command, None),
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per report."""
    parser = argparse.ArgumentParser(
        prog="payroll-recon",
        description="Reconcile payroll payments and export employer/worker records to CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reconcile the default payroll runs
  payroll-recon get-increase-transaction

  # Export bank accounts of two employers, aborting on the first error
  payroll-recon get-employer-bank-info er_123 er_456 --strict

  # Export specific workers
  payroll-recon get-worker-info --worker-id wr_123 wr_456
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first error instead of skipping the failing id"
    )
    common.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of ids processed concurrently (default: 1)"
    )
    common.add_argument(
        "--output-dir",
        default="output",
        help="Directory for report files (default: output)"
    )
    common.add_argument(
        "--defaults",
        default=DEFAULT_DEFAULTS_PATH,
        help=f"YAML file with default ids (default: {DEFAULT_DEFAULTS_PATH})"
    )
    common.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics to this file when the run ends"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, (handler, kind) in COMMANDS.items():
        sub = subparsers.add_parser(
            name,
            parents=[common],
            help=handler.__doc__.strip().splitlines()[0],
        )
        if kind is not None:
            sub.add_argument(
                "ids",
                nargs="*",
                help=f"{kind.capitalize()} IDs (default: built-in list)"
            )
        if name == "get-worker-info":
            sub.add_argument(
                "--worker-id",
                nargs="+",
                default=[],
                help="Worker IDs; when given, employer IDs are ignored"
            )
        sub.set_defaults(handler=handler)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    load_dotenv()
    setup_logger()

    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if not argv or argv[0] not in COMMANDS:
        if argv and not argv[0].startswith("-"):
            logger.info(f"Unknown command: {argv[0]}")
        else:
            logger.info("No command specified.")
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    logger.info(f"Starting process for command: {args.command}")

    context = None
    try:
        defaults = DefaultsLoader(args.defaults).load()
        context = ReconContext(
            output_dir=args.output_dir,
            policy=FailurePolicy.STRICT if args.strict else FailurePolicy.ISOLATE,
            workers=args.workers,
        )
        args.handler(args, context, defaults)
        logger.info("Process completed successfully!")
        return 0
    except Exception as e:
        logger.error(f"An error occurred: {e}", exc_info=True)
        return 1
    finally:
        if context is not None:
            context.close()
        if args.metrics_file:
            try:
                write_metrics_file(args.metrics_file)
            except OSError as e:
                logger.error(f"Could not write metrics file {args.metrics_file}: {e}")


if __name__ == "__main__":
    sys.exit(main())
