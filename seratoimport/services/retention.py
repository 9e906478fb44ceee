"""
Archive Retention Service

Deletes archived tracks whose modification time is older than the retention
window. Deletions are independent, so an interrupted sweep is completed by
simply running it again.
"""

import os
import time
from typing import Callable, Optional

from ..core.models import RetentionResult
from ..utils.filesystem import iter_files
from ..utils.logging_config import AuditLog, get_logger


SECONDS_PER_DAY = 24 * 60 * 60


class ArchiveRetentionService:
    """Prunes the archive root"""

    def __init__(self, archive_dir: str, retention_days: int = 30,
                 audit_log: Optional[AuditLog] = None,
                 clock: Callable[[], float] = time.time):
        self.archive_dir = archive_dir
        self.retention_days = retention_days
        self.audit_log = audit_log
        self.clock = clock
        self.logger = get_logger('retention')

    def is_expired(self, filepath: str, now: float) -> bool:
        """True when the file is strictly older than the retention window"""
        age = now - os.stat(filepath).st_mtime
        return age > self.retention_days * SECONDS_PER_DAY

    def sweep(self, enabled: bool = True, dry_run: bool = False) -> RetentionResult:
        """
        Delete (or, in dry run, list) expired archived files

        Args:
            enabled: When False nothing is examined
            dry_run: Describe deletions without performing them

        Returns:
            RetentionResult with deleted, would-be-deleted and failed paths
        """
        result = RetentionResult(enabled=enabled, dry_run=dry_run)

        if not enabled:
            self.logger.info("Manual override enabled. Old archived files will not be deleted.")
            return result

        if not os.path.isdir(self.archive_dir):
            self.logger.debug(f"Archive directory does not exist: {self.archive_dir}")
            return result

        if dry_run:
            self.logger.info(f"[Dry-Run] Would remove archived files older than {self.retention_days} days")
        else:
            self.logger.info(f"Removing archived files older than {self.retention_days} days...")

        now = self.clock()
        for filepath in iter_files(self.archive_dir):
            try:
                if not self.is_expired(filepath, now):
                    continue
            except FileNotFoundError:
                continue
            except OSError as e:
                result.errors.append(f"{filepath}: {e}")
                self.logger.error(f"Failed to check archived file {filepath}: {e}")
                continue

            if dry_run:
                result.would_delete.append(filepath)
                self.logger.info(f"[Dry-Run] Would delete: {filepath}")
                continue

            try:
                os.remove(filepath)
            except FileNotFoundError:
                continue
            except OSError as e:
                result.errors.append(f"{filepath}: {e}")
                self.logger.error(f"Failed to delete archived file {filepath}: {e}")
                continue

            result.deleted.append(filepath)
            self.logger.info(f"Deleted: {filepath}")
            if self.audit_log is not None:
                self.audit_log.write(f"Deleted: {filepath}")

        return result
