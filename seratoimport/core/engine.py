"""
Serato Import - Reconciliation Engine

This module contains the per-candidate decision logic: lookup of an existing
database entry, bitrate comparison and the resulting mutation (add, replace,
tag-only or skip). Collaborators are injected so that the engine can run
against test doubles.
"""

import time
from typing import Optional

from .exceptions import BitrateProbeError, SeratoImportError
from .models import CandidateFile, DatabaseEntry, Decision, ImportOptions, ImportResult
from ..services.database import CrateFile, SeratoDatabase
from ..services.file_operations import FileOperationsService
from ..services.probing import BitrateProber
from ..services.tagging import MetadataTagger
from ..utils.logging_config import AuditLog, get_logger


DRY_RUN_PREFIX = "[Dry-Run]"


def _require_bitrate(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise BitrateProbeError(f"Invalid {label} bitrate", details=repr(value))
    return value


def decide(new_bitrate: int, existing_bitrate: int) -> Decision:
    """
    Compare a candidate against the existing library copy

    Args:
        new_bitrate: Candidate bitrate in kbps
        existing_bitrate: Bitrate of the file already in the library, in kbps

    Returns:
        REPLACE when the candidate is better, TAG_ONLY when equal, SKIP when worse

    Raises:
        BitrateProbeError: If either bitrate is not a positive integer
    """
    new_bitrate = _require_bitrate(new_bitrate, 'new')
    existing_bitrate = _require_bitrate(existing_bitrate, 'existing')

    if new_bitrate > existing_bitrate:
        return Decision.REPLACE
    if new_bitrate == existing_bitrate:
        return Decision.TAG_ONLY
    return Decision.SKIP


def format_import_log_line(path: str, bitrate: Optional[int], tags) -> str:
    """Audit line for an added track"""
    shown = bitrate if bitrate is not None else 'unknown'
    return f"{path} ({shown} kbps) - Tags: {' '.join(tags)}"


class ReconciliationEngine:
    """
    Reconciles discovered candidates against the Serato database

    One candidate is processed completely before the next. Service failures
    are caught per candidate and recorded on its ImportResult, so a single
    bad file never aborts the batch.
    """

    def __init__(self, options: ImportOptions, database: SeratoDatabase,
                 crate: CrateFile, file_ops: FileOperationsService,
                 prober: BitrateProber, tagger: MetadataTagger,
                 import_log: Optional[AuditLog] = None):
        self.options = options
        self.database = database
        self.crate = crate
        self.file_ops = file_ops
        self.prober = prober
        self.tagger = tagger
        self.import_log = import_log
        self.logger = get_logger('engine')

    @property
    def dry_run(self) -> bool:
        return self.options.dry_run

    def process_candidate(self, candidate: CandidateFile) -> ImportResult:
        """
        Run one candidate through lookup, decision and mutation

        Args:
            candidate: File found by discovery

        Returns:
            ImportResult describing the decision and every operation
        """
        start_time = time.time()
        result = ImportResult(filepath=candidate.path)

        try:
            entry = self.database.lookup(candidate.filename, self.options.lookup_policy)
            result.decision = self._reconcile(candidate, entry, result)

            if result.decision == Decision.REPLACE:
                self._archive_existing(entry, result)
                self._add_candidate(candidate, result)
            elif result.decision == Decision.ADD:
                self._add_candidate(candidate, result)
            elif result.decision == Decision.TAG_ONLY:
                self._tag_existing(entry, result)
            else:
                self.logger.info(f"Skipping {candidate.filename} (existing file is same or higher quality).")

            result.success = True

        except SeratoImportError as e:
            result.success = False
            result.add_error(str(e))
            self.logger.error(f"Failed to import {candidate.path}: {e}")

        finally:
            result.processing_time = time.time() - start_time

        return result

    def _reconcile(self, candidate: CandidateFile, entry: Optional[DatabaseEntry],
                   result: ImportResult) -> Decision:
        if entry is None:
            self._probe_candidate_for_log(candidate, result)
            return Decision.ADD

        result.existing_path = entry.path
        self.logger.info(f"Existing file found: {entry.path}")

        if entry.path == candidate.path:
            result.add_warning("Candidate is already in the Serato database")
            return Decision.SKIP

        result.existing_bitrate = self.prober.probe(entry.path)
        result.new_bitrate = self.prober.probe(candidate.path)
        candidate.bitrate = result.new_bitrate

        return decide(result.new_bitrate, result.existing_bitrate)

    def _probe_candidate_for_log(self, candidate: CandidateFile, result: ImportResult):
        # The bitrate is informational on a plain add, so a failed probe never blocks it
        try:
            candidate.bitrate = self.prober.probe(candidate.path)
            result.new_bitrate = candidate.bitrate
        except BitrateProbeError as e:
            result.add_warning(f"Bitrate unavailable: {e}")
            self.logger.warning(f"Could not probe bitrate of {candidate.path}: {e}")

    def _archive_existing(self, entry: DatabaseEntry, result: ImportResult):
        self.logger.info(
            f"Replacing with higher bitrate: {result.new_bitrate} kbps > {result.existing_bitrate} kbps"
        )
        target = self.file_ops.archive_path_for(entry.path)

        if self.dry_run:
            result.archive_path = target
            result.add_operation(f"{DRY_RUN_PREFIX} Would archive: {entry.path} → {target}")
            self.logger.info(f"{DRY_RUN_PREFIX} Would archive: {entry.path} → {target}")
            return

        result.archive_path = self.file_ops.archive_file(entry.path)
        result.add_operation(f"Archived: {entry.path} → {result.archive_path}")

    def _tag_existing(self, entry: DatabaseEntry, result: ImportResult):
        tags = list(self.options.tags)
        self.logger.info("Bitrate is the same. Keeping existing file but tagging metadata.")

        if self.dry_run:
            result.add_operation(f"{DRY_RUN_PREFIX} Would tag metadata: {entry.path} ({', '.join(tags)})")
        else:
            for tag in tags:
                self.tagger.add_tag(entry.path, tag)
                result.tags_applied.append(tag)
                result.add_operation(f"Tagged: {entry.path} ({tag})")

        self._write_import_log(
            f"{entry.path} ({result.existing_bitrate} kbps) - Tagged: {' '.join(tags)}"
        )

    def _add_candidate(self, candidate: CandidateFile, result: ImportResult):
        self.logger.info(f"Adding: {candidate.filename}")

        if self.dry_run:
            self.database.stage(candidate.path)
            result.add_operation(
                f"{DRY_RUN_PREFIX} Would add: {candidate.filename} to Serato database and crate."
            )
        else:
            self.database.append_track(candidate.path)
            result.add_operation(f"Database: {candidate.path}")
            self.crate.append_track(candidate.path)
            result.add_operation(f"Crate {self.crate.name}: {candidate.path}")
            marker = self.file_ops.create_analysis_marker(candidate.path)
            result.add_operation(f"Analysis marker: {marker}")

        self._write_import_log(
            format_import_log_line(candidate.path, candidate.bitrate, self.options.tags)
        )

    def _write_import_log(self, line: str):
        if self.import_log is None:
            return
        if self.dry_run:
            line = line if line.startswith(DRY_RUN_PREFIX) else f"{DRY_RUN_PREFIX} {line}"
        self.import_log.write(line)
