#!/usr/bin/env python3
"""
Notion to Obsidian Migration Tool - Main CLI Entry Point

This script provides the command-line interface for migrating a Notion
database into Markdown notes inside an Obsidian vault: one note per page
with a frontmatter header, rendered content, downloaded attachments and
resolved relations.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for flat imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

import requests

from config_loader import DEFAULT_CONFIG, ConfigLoader, get_nested
from fetchers import FetcherError
from logger import MigrationLog, log_config, log_section, setup_logging
from models import TitlePolicy
from orchestrator import DestinationMissingError, MigrationOrchestrator, MigrationReport

__version__ = "1.0.0"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Migrate a Notion database into Markdown notes in an Obsidian vault",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Migrate using config.yaml
  python migrate.py --config config.yaml

  # Override the database and destination folder
  python migrate.py --database-id 0123abcd... --destination Notion

  # Probe for free titles instead of appending page ids
  python migrate.py --title-policy deduplicate

  # Show or clear the migration log
  python migrate.py --show-log
  python migrate.py --clear-log

  # Verbose logging
  python migrate.py -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml)'
    )

    parser.add_argument(
        '--database-id',
        type=str,
        help='Notion database to migrate (overrides notion.database_id)'
    )

    parser.add_argument(
        '--vault-path',
        type=str,
        help='Root directory of the Obsidian vault (overrides export.vault_path)'
    )

    parser.add_argument(
        '--destination',
        type=str,
        help='Existing vault folder receiving the notes (overrides export.destination_directory)'
    )

    parser.add_argument(
        '--title-policy',
        choices=[policy.value for policy in TitlePolicy],
        help='How note titles are made unique (overrides export.title_policy)'
    )

    parser.add_argument(
        '--max-workers',
        type=int,
        help='Number of documents converted concurrently'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Write the full log to this file'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write a JSON migration report to this file'
    )

    parser.add_argument(
        '--show-log',
        action='store_true',
        help='Print the migration log and exit'
    )

    parser.add_argument(
        '--clear-log',
        action='store_true',
        help='Clear the migration log and exit'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """Load the config file (defaults only if it is missing) and merge CLI arguments."""
    config_path = Path(args.config)
    if config_path.exists():
        config = ConfigLoader.load(str(config_path))
    else:
        logging.getLogger('notion_obsidian_migrator').warning(
            f"Configuration file {config_path} not found - using defaults and CLI arguments"
        )
        config = ConfigLoader.with_defaults({})
    return ConfigLoader.merge_with_args(config, args)


def open_migration_log(config: dict) -> MigrationLog:
    default_path = DEFAULT_CONFIG['logging']['migration_log']
    return MigrationLog(get_nested(config, 'logging.migration_log', default_path))


def handle_log_commands(args: argparse.Namespace, migration_log: MigrationLog) -> bool:
    """Run --show-log / --clear-log. Returns True if one of them was requested."""
    if args.show_log:
        content = migration_log.read()
        print(content if content else "Migration log is empty.")
    if args.clear_log:
        migration_log.clear()
        print("Migration log cleared.")
    return args.show_log or args.clear_log


def run_migration(config: dict, args: argparse.Namespace, migration_log: MigrationLog, logger: logging.Logger) -> int:
    """Run the orchestrator and print the report. Returns the process exit code."""
    orchestrator = MigrationOrchestrator(config, migration_log=migration_log)

    try:
        report = orchestrator.run()
    except DestinationMissingError as e:
        logger.error(str(e))
        return 2
    except (requests.RequestException, FetcherError) as e:
        logger.error(f"Fetching from Notion failed: {e}")
        return 1
    except KeyboardInterrupt:
        migration_log.message("Migration interrupted by user.", logging.WARNING)
        return 130

    report_generator = MigrationReport(logger)
    print("\n" + report_generator.format_console_report(report))

    if args.report:
        report_generator.export_json_report(report, args.report)

    summary = report.get('summary', {})
    if summary.get('cancelled'):
        return 130
    if summary.get('failed', 0) > 0:
        logger.warning(f"Migration completed with {summary['failed']} failed document(s)")
        return 1

    logger.info("Migration completed successfully")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('notion_obsidian_migrator')

        config = load_configuration(args)
        migration_log = open_migration_log(config)

        if handle_log_commands(args, migration_log):
            return 0

        ConfigLoader.validate(config)

        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level') if not args.verbose else None,
        )
        log_section("Notion to Obsidian Migration Tool")
        logger.info(f"Version: {__version__}")
        log_config(config)

        return run_migration(config, args, migration_log, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nMigration interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
