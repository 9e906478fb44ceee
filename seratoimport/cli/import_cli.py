"""
Serato Import command line interface

    serato-import <top-level-directory> <YYYY-MM-DD> [options]
"""

import argparse
import json
import os
import sys
import time
from dataclasses import replace
from typing import List, Optional

from .. import __version__
from ..core.exceptions import ArgumentError, MissingResourceError, SeratoImportError
from ..core.models import ImportOptions, LOOKUP_POLICIES
from ..importer import SeratoImporter, summarize
from ..services.discovery import parse_cutoff_date
from ..utils.audio import normalize_extensions
from ..utils.logging_config import LOG_LEVELS, setup_logging
from .config import CLIConfig


class ImportArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports problems as ArgumentError instead of exiting with status 2"""

    def error(self, message):
        raise ArgumentError(message)


def create_parser() -> ImportArgumentParser:
    """Create the argument parser"""

    parser = ImportArgumentParser(
        prog='serato-import',
        description="Import recently added audio files into Serato DJ Pro, "
                    "keeping only the highest bitrate copy of each track",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/Downloads/music 2024-05-01              # Import files created since May 1st
  %(prog)s ~/Downloads/music 2024-05-01 --dry-run    # Describe changes without making them
  %(prog)s /music 2024-05-01 --ext m4a --ext mp3     # Accept more than one extension
  %(prog)s /music 2024-05-01 --keep-archived         # Do not prune the archive
        """
    )

    # Positional arguments
    parser.add_argument('root', help='Top-level directory to scan')
    parser.add_argument('date', help='Import files created on or after this date (YYYY-MM-DD)')

    # Basic options
    basic_group = parser.add_argument_group('Basic Options')
    basic_group.add_argument('--dry-run', action='store_true', default=None,
                             help='Describe every action without performing it')
    basic_group.add_argument('--ext', action='append', dest='extensions', metavar='EXT',
                             help='Audio file extension to import (repeatable, default: .m4a)')
    basic_group.add_argument('--lookup-policy', choices=LOOKUP_POLICIES,
                             help='Entry to use when a filename appears more than once in the database '
                                  '(default: latest)')
    basic_group.add_argument('--no-backup', action='store_false', dest='backup_database', default=None,
                             help='Do not back up the database and overview builder')

    # Locations
    path_group = parser.add_argument_group('Locations')
    path_group.add_argument('--serato-dir', metavar='DIR',
                            help='Serato library folder (default: ~/Music/_Serato_)')
    path_group.add_argument('--archive-dir', metavar='DIR',
                            help='Where superseded lower bitrate files are moved')
    path_group.add_argument('--log-dir', dest='audit_log_dir', metavar='DIR',
                            help='Directory for the import and archive cleanup logs (default: ~)')

    # Archive retention
    retention_group = parser.add_argument_group('Archive Retention')
    retention_group.add_argument('--keep-archived', action='store_false', dest='delete_old_archived',
                                 default=None, help='Do not delete old archived files')
    retention_group.add_argument('--retention-days', type=int, metavar='DAYS',
                                 help='Delete archived files older than this (default: 30)')

    # Collaborators
    tool_group = parser.add_argument_group('External Tools')
    tool_group.add_argument('--prober', choices=['ffprobe', 'mutagen'],
                            help='Bitrate probe (default: ffprobe)')
    tool_group.add_argument('--tagger', choices=['exiftool', 'mutagen'],
                            help='Comment tagger (default: exiftool)')

    # Application
    app_group = parser.add_argument_group('Serato DJ Pro')
    app_group.add_argument('--no-relaunch', action='store_false', dest='relaunch_app', default=None,
                           help='Do not restart Serato DJ Pro after importing')
    app_group.add_argument('--app-name', metavar='NAME',
                           help='Application to restart (default: Serato DJ Pro)')

    # Logging options
    logging_group = parser.add_argument_group('Logging Options')
    logging_group.add_argument('--log-level', choices=LOG_LEVELS,
                               help='Console logging level (default: INFO)')
    logging_group.add_argument('--app-log-dir', metavar='DIR',
                               help='Directory for application logs (default: ~/.serato_import/logs)')
    logging_group.add_argument('--no-console-log', action='store_true',
                               help='Disable console logging (file logging only)')

    # Reporting options
    report_group = parser.add_argument_group('Reporting Options')
    report_group.add_argument('--report-path', metavar='FILE',
                              help='Write a JSON report of the run to FILE')

    # Utility options
    utility_group = parser.add_argument_group('Utility Options')
    utility_group.add_argument('--config', metavar='FILE',
                               help='Load configuration from JSON file')
    utility_group.add_argument('--no-progress', action='store_true',
                               help='Hide the progress bar')
    utility_group.add_argument('--verbose', '-v', action='store_true',
                               help='Verbose output')
    utility_group.add_argument('--version', action='version', version=f'Serato Import {__version__}')

    return parser


def create_import_options(args, base: Optional[ImportOptions] = None) -> ImportOptions:
    """Apply command line overrides on top of configured options"""
    options = base or ImportOptions()

    overrides = {
        'dry_run': args.dry_run,
        'delete_old_archived': args.delete_old_archived,
        'retention_days': args.retention_days,
        'lookup_policy': args.lookup_policy,
        'backup_database': args.backup_database,
        'serato_dir': args.serato_dir,
        'archive_dir': args.archive_dir,
        'log_dir': args.audit_log_dir,
        'prober': args.prober,
        'tagger': args.tagger,
        'relaunch_app': args.relaunch_app,
        'app_name': args.app_name,
    }
    if args.extensions:
        overrides['extensions'] = args.extensions

    # CLI args override config, config overrides defaults
    options = replace(options, **{k: v for k, v in overrides.items() if v is not None})

    if options.retention_days < 1:
        raise ArgumentError("Retention must be at least one day", details=str(options.retention_days))

    extensions = normalize_extensions(options.extensions)
    if not extensions:
        raise ArgumentError("At least one file extension is required")

    return replace(options, extensions=extensions, tags=tuple(options.tags))


def _print_error(message: str):
    print(f"❌ {message}", file=sys.stderr)


def write_report(batch_result, report_path: str) -> bool:
    """Write the batch result as JSON; a failure is reported but does not fail the run"""
    try:
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(batch_result.to_dict(), f, indent=2)
    except OSError as e:
        _print_error(f"Could not write report {report_path}: {e}")
        return False

    print(f"📄 Report saved: {report_path}")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = create_parser()

    try:
        args = parser.parse_args(argv)
        cutoff = parse_cutoff_date(args.date)
        if not os.path.isdir(args.root):
            raise ArgumentError(f"Directory not found: {args.root}", filepath=args.root)

        cli_config = CLIConfig(args.config)
        config = cli_config.load_config()
        options = create_import_options(args, cli_config.to_import_options())

        log_config = config['logging']
        console_level = args.log_level or log_config['console_level']
        if console_level not in LOG_LEVELS:
            raise ArgumentError(f"Invalid log level: {console_level}")
    except ArgumentError as e:
        parser.print_usage(sys.stderr)
        _print_error(f"Error: {e}")
        return 1

    setup_logging(
        log_dir=args.app_log_dir or log_config.get('log_dir'),
        console_level=console_level,
        file_level=log_config['file_level'],
        enable_console=not args.no_console_log and log_config.get('enable_console', True)
    )

    print("🎵 Serato Import")
    print(f"   Source: {args.root} (created on or after {cutoff.isoformat()})")
    print(f"   Dry run: {options.dry_run}")
    if args.verbose:
        print(f"   Extensions: {', '.join(options.extensions)}")
        print(f"   Serato folder: {os.path.expanduser(options.serato_dir)}")
        print(f"   Archive folder: {os.path.expanduser(options.archive_dir)}")
        print(f"   Bitrate probe: {options.prober}, tagger: {options.tagger}")
    print()

    start_time = time.time()
    try:
        importer = SeratoImporter(options, show_progress=not args.no_progress)
        batch_result = importer.run(args.root, cutoff)

    except MissingResourceError as e:
        parser.print_usage(sys.stderr)
        _print_error(f"Error: {e.message}")
        return 1
    except SeratoImportError as e:
        _print_error(f"Application Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\n⚠️ Import interrupted by user")
        return 130

    if args.report_path:
        write_report(batch_result, args.report_path)

    if batch_result.is_empty:
        print(f"No new {'/'.join(options.extensions)} files found.")
        return 0

    print("\n📊 Import Summary")
    for line in summarize(batch_result).splitlines():
        print(f"   {line}")

    if options.dry_run:
        print(f"\n[Dry-Run] Nothing was changed. Crate would be: {importer.paths.crate_name}")
    elif batch_result.relaunched:
        print(f"\nDone! The new files should now be in Serato under the crate: "
              f"{importer.paths.crate_name} and queued for waveform analysis.")

    print(f"\n📈 Session completed in {time.time() - start_time:.1f}s")

    if batch_result.successful > 0:
        return 0

    _print_error("Import failed - no files processed successfully")
    return 1


if __name__ == '__main__':
    sys.exit(main())
