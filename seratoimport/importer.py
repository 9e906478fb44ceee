"""
Serato Import - Application

Main application class that orchestrates one import run:

1. Discovery of recently changed audio files
2. Reconciliation of every candidate against the Serato database
3. Retention sweep of the archive
4. Relaunch of Serato DJ Pro

Collaborators (bitrate prober, metadata tagger, lifecycle controller) can be
injected; otherwise they are built from the ImportOptions.
"""

import os
from dataclasses import asdict
from datetime import date
from typing import Optional

from tqdm import tqdm

from .core.engine import ReconciliationEngine
from .core.exceptions import LifecycleError
from .core.models import BatchImportResult, ImportOptions, ImportResult, SessionPaths
from .services.database import CrateFile, SeratoDatabase
from .services.discovery import discover_candidates
from .services.file_operations import FileOperationsService
from .services.lifecycle import LifecycleController, MacOSLifecycleController, relaunch_application
from .services.probing import BitrateProber, create_prober
from .services.retention import ArchiveRetentionService
from .services.tagging import MetadataTagger, create_tagger
from .utils.logging_config import AuditLog, get_app_logger, get_logger


class SeratoImporter:
    """
    Serato Import application

    Provides:
    - Discovery of new audio files by change time
    - Bitrate based deduplication against the Serato database
    - Archiving of superseded files and metadata tagging of equal copies
    - Crate creation and analysis markers for new tracks
    - Archive retention and application relaunch
    - Dry-run mode in which every action is only described
    """

    def __init__(self, options: Optional[ImportOptions] = None,
                 prober: Optional[BitrateProber] = None,
                 tagger: Optional[MetadataTagger] = None,
                 lifecycle: Optional[LifecycleController] = None,
                 today: Optional[date] = None,
                 show_progress: bool = False):
        """
        Initialize the importer

        Args:
            options: Import options (defaults apply when omitted)
            prober: Bitrate prober, built from options.prober when omitted
            tagger: Metadata tagger, built from options.tagger when omitted
            lifecycle: Application controller, macOS implementation when omitted
            today: Run date used for crate and log names
            show_progress: Show a tqdm progress bar over candidates
        """
        self.options = options or ImportOptions()
        self.paths = SessionPaths.from_options(self.options, today)
        self.prober = prober or create_prober(self.options.prober, self.options.command_timeout)
        self.tagger = tagger or create_tagger(self.options.tagger, self.options.command_timeout)
        self.lifecycle = lifecycle or MacOSLifecycleController(self.options.command_timeout)
        self.show_progress = show_progress
        self.logger = get_logger('main')

        self.database = SeratoDatabase(self.paths.database)
        self.crate = CrateFile(self.paths.crate_file, self.paths.crate_name)
        self.file_ops = FileOperationsService(self.paths)

    def run(self, root: str, cutoff: date) -> BatchImportResult:
        """
        Import every candidate under root changed on or after cutoff

        Args:
            root: Directory tree to scan
            cutoff: First day of the discovery window

        Returns:
            BatchImportResult; an empty result means nothing was found and
            nothing was changed

        Raises:
            ArgumentError: If root is not a directory
            MissingResourceError: If the Serato database does not exist
        """
        batch_result = BatchImportResult(dry_run=self.options.dry_run)

        self.database.require()
        candidates = discover_candidates(root, cutoff, self.options.extensions)

        first = next(candidates, None)
        if first is None:
            self.logger.info("No new audio files found.")
            batch_result.finalize()
            return batch_result

        app_logger = get_app_logger()
        if app_logger:
            app_logger.log_batch_start(root, cutoff.isoformat(), asdict(self.options))

        self.logger.info(f"Dry-Run Mode: {self.options.dry_run}")
        self.logger.info(f"Adding files to Serato database and playlist: {self.paths.crate_name}")
        self.logger.info(f"Processing log saved at {self.paths.import_log}")

        self._prepare_session()

        import_log = AuditLog(self.paths.import_log, 'import')
        archive_log = AuditLog(self.paths.archive_log, 'archive_cleanup')
        try:
            engine = ReconciliationEngine(
                self.options, self.database, self.crate, self.file_ops,
                self.prober, self.tagger, import_log
            )
            self._process_candidates(engine, self._chain(first, candidates), batch_result)

            retention = ArchiveRetentionService(
                self.paths.archive_dir, self.options.retention_days, archive_log
            )
            batch_result.retention = retention.sweep(
                enabled=self.options.delete_old_archived,
                dry_run=self.options.dry_run
            )
        finally:
            import_log.close()
            archive_log.close()

        self.logger.debug(f"File operations: {self.file_ops.get_service_stats()}")
        self._relaunch(batch_result)

        batch_result.finalize()
        if app_logger:
            app_logger.log_batch_complete(
                root, batch_result.total_files, batch_result.successful,
                batch_result.failed, batch_result.total_time
            )
        return batch_result

    @staticmethod
    def _chain(first, rest):
        yield first
        yield from rest

    def _prepare_session(self):
        """Directory setup, backups and the day's crate (skipped in dry run)"""
        if self.options.dry_run:
            self.logger.info("[Dry-Run] Would back up the Serato database and create crate "
                             f"{self.paths.crate_name}")
            return

        self.file_ops.prepare_directories()

        if self.options.backup_database:
            self.database.backup()
            self.file_ops.backup_overview_builder()

        if self.crate.ensure_created():
            self.logger.info(f"Created crate: {self.paths.crate_file}")

    def _process_candidates(self, engine: ReconciliationEngine, candidates,
                            batch_result: BatchImportResult):
        """Process candidates sequentially"""
        progress = tqdm(candidates, desc="Importing", unit="file", disable=not self.show_progress)
        for candidate in progress:
            try:
                result = engine.process_candidate(candidate)
            except Exception as e:
                self.logger.error(f"Unexpected error importing {candidate.path}: {e}", exc_info=True)
                result = ImportResult(filepath=candidate.path)
                result.success = False
                result.add_error(str(e))
            batch_result.add_result(result)

    def _relaunch(self, batch_result: BatchImportResult):
        if not self.options.relaunch_app:
            self.logger.info(f"Relaunch disabled; restart {self.options.app_name} manually.")
            return

        if self.options.dry_run:
            self.logger.info(f"[Dry-Run] Would restart {self.options.app_name}.")
            return

        try:
            relaunch_application(self.lifecycle, self.options.app_name, self.options.relaunch_delay)
            batch_result.relaunched = True
        except LifecycleError as e:
            batch_result.relaunch_error = str(e)
            self.logger.warning(f"Could not restart {self.options.app_name}: {e}")


def summarize(batch_result: BatchImportResult) -> str:
    """Human readable one-line-per-item summary of a batch"""
    lines = [
        f"Total files: {batch_result.total_files}",
        f"Added: {batch_result.added}",
        f"Replaced: {batch_result.replaced}",
        f"Tagged: {batch_result.tagged}",
        f"Skipped: {batch_result.skipped}",
        f"Failed: {batch_result.failed}",
    ]
    retention = batch_result.retention
    if retention is not None and retention.enabled:
        if retention.dry_run:
            lines.append(f"Archived files past retention: {len(retention.would_delete)} (not deleted)")
        else:
            lines.append(f"Archived files deleted: {len(retention.deleted)}")
    for result in batch_result.results:
        if not result.success:
            lines.append(f"Error: {os.path.basename(result.filepath)}: {'; '.join(result.errors)}")
    return "\n".join(lines)


__all__ = [
    'SeratoImporter',
    'summarize'
]
