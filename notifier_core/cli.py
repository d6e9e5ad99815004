"""
CLI interface for Data Notifier

Usage:
    data-notifier config.json data.csv [--header] [--dry-run] [--json]
"""
import sys
import json
import argparse
import logging

from dotenv import load_dotenv
from pydantic import ValidationError

from notifier_core.channels import ChannelRegistry
from notifier_core.config import NotifierConfig
from notifier_core.dispatcher import Dispatcher
from notifier_core.errors import ConfigLoadError, DataLoadError
from notifier_core.loaders import load_config, load_rows
from notifier_core.matcher import RuleMatcher
from notifier_core.models import RunSummary

logger = logging.getLogger(__name__)


def print_summary(summary: RunSummary, dry_run: bool = False):
    print("\n" + "=" * 60)
    print("NOTIFICATION RUN SUMMARY")
    print("=" * 60)
    print(f"Rules: {summary.total_rules}  Rows: {summary.total_rows}")
    print(f"Matches: {len(summary.results)}")
    print(f"Sent: {summary.sent}")
    print(f"Failed: {summary.failed}")
    print(f"Skipped: {summary.skipped}")
    print(f"Duration: {summary.duration_seconds:.2f}s")

    if summary.excluded_rules:
        print("\nExcluded rules:")
        for rule_id, error in summary.excluded_rules.items():
            print(f"  {rule_id}: {error}")

    by_rule = summary.by_rule()
    if by_rule:
        print("\nBy rule:")
        for rule_id, counts in by_rule.items():
            print(f"  {rule_id}: sent={counts['sent']} failed={counts['failed']} skipped={counts['skipped']}")

    problems = [r for r in summary.results if r.outcome.value != 'sent']
    if problems:
        print("\nProblems:")
        for result in problems:
            print(f"  rule {result.rule_id} row {result.row_index} [{result.outcome.value}]: {result.detail}")

    if dry_run:
        print("\n[DRY RUN MODE - No actual messages sent]")

    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='data-notifier',
        description='Evaluate alert rules against tabular data and send notifications'
    )
    parser.add_argument('config', help='JSON rule file')
    parser.add_argument('data', help='CSV data file')
    parser.add_argument('--header', action='store_true', help='First line of the data file holds field names')
    parser.add_argument('--delimiter', default=',', help='Field separator (default: ,)')
    parser.add_argument('--dry-run', action='store_true', help='Match and render without sending')
    parser.add_argument('--workers', type=int, help='Parallel dispatch workers')
    parser.add_argument('--max-sends', type=int, help='Maximum concurrent channel calls')
    parser.add_argument('--timeout', type=float, help='Seconds allowed per channel call')
    parser.add_argument('--json', action='store_true', help='Print the summary as JSON')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    return parser


def main(argv=None):
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    updates = {}
    if args.dry_run:
        updates['dry_run'] = True
    if args.workers is not None:
        updates['max_workers'] = args.workers
    if args.max_sends is not None:
        updates['max_concurrent_sends'] = args.max_sends
    if args.timeout is not None:
        updates['call_timeout_seconds'] = args.timeout
    if args.log_level:
        updates['log_level'] = args.log_level

    # Fields not given on the command line default from the environment
    try:
        config = NotifierConfig(**updates)
    except (ValidationError, ValueError) as e:
        parser.error(f"invalid configuration: {e}")

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        loaded = load_config(args.config)
        rows = load_rows(args.data, has_header=args.header, delimiter=args.delimiter)
    except (ConfigLoadError, DataLoadError) as e:
        logger.error(f"Load failed: {e}")
        return 1

    try:
        channel_config = config.get_channel_config(loaded.channels)
    except ValueError as e:
        logger.error(f"Invalid channel configuration: {e}")
        return 1

    registry = ChannelRegistry.from_config(channel_config, dry_run=config.dry_run)

    with Dispatcher(
        registry,
        max_workers=config.max_workers,
        max_concurrent_sends=config.max_concurrent_sends,
        call_timeout=config.call_timeout_seconds
    ) as dispatcher:
        summary = dispatcher.run(
            loaded.rules,
            rows,
            matcher=RuleMatcher(max_workers=config.max_workers)
        )

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary(summary, dry_run=config.dry_run)

    return summary.exit_code


if __name__ == '__main__':
    sys.exit(main())
