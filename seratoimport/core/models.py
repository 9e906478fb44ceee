"""
Data models for Serato Import

This module defines all data structures used throughout the application
for configuration, candidates, decisions and import results.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Any, Tuple
import os
import time


DEFAULT_SERATO_DIR = os.path.join("~", "Music", "_Serato_")
DEFAULT_ARCHIVE_DIR = os.path.join("~", "Library", "CloudStorage", "audio", "archived-lowres-audio")
DEFAULT_TAGS = ("serato-cues", "rekordbox-cues")
DEFAULT_APP_NAME = "Serato DJ Pro"

LOOKUP_POLICIES = ("latest", "first")


@dataclass
class ImportOptions:
    """Configuration options for an import run"""

    # Core behaviour
    dry_run: bool = False
    delete_old_archived: bool = True
    retention_days: int = 30
    extensions: Tuple[str, ...] = (".m4a",)
    tags: Tuple[str, ...] = DEFAULT_TAGS
    lookup_policy: str = "latest"  # latest, first

    # Locations
    serato_dir: str = DEFAULT_SERATO_DIR
    archive_dir: str = DEFAULT_ARCHIVE_DIR
    log_dir: str = "~"

    # Collaborators
    prober: str = "ffprobe"   # ffprobe, mutagen
    tagger: str = "exiftool"  # exiftool, mutagen
    command_timeout: int = 60

    # Consuming application
    app_name: str = DEFAULT_APP_NAME
    relaunch_app: bool = True
    relaunch_delay: float = 2.0

    # Safety
    backup_database: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImportOptions':
        """Create from dictionary"""
        # Filter only valid field names
        valid_fields = {field.name for field in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields}
        for key in ('extensions', 'tags'):
            if key in filtered_data and not isinstance(filtered_data[key], tuple):
                filtered_data[key] = tuple(filtered_data[key])
        return cls(**filtered_data)


@dataclass
class SessionPaths:
    """Every path touched by one import run"""

    serato_dir: str
    database: str
    overview_builder: str
    crates_dir: str
    crate_name: str
    crate_file: str
    archive_dir: str
    import_log: str
    archive_log: str

    @classmethod
    def from_options(cls, options: ImportOptions, today: Optional[date] = None) -> 'SessionPaths':
        """Resolve session paths from options and the run date"""
        today = today or date.today()
        stamp = today.strftime("%y%m%d")

        serato_dir = os.path.expanduser(options.serato_dir)
        crates_dir = os.path.join(serato_dir, "Subcrates")
        crate_name = f"new-{stamp}"
        log_dir = os.path.expanduser(options.log_dir)

        return cls(
            serato_dir=serato_dir,
            database=os.path.join(serato_dir, "Database V2"),
            overview_builder=os.path.join(serato_dir, "OverviewBuilder"),
            crates_dir=crates_dir,
            crate_name=crate_name,
            crate_file=os.path.join(crates_dir, f"{crate_name}.crate"),
            archive_dir=os.path.expanduser(options.archive_dir),
            import_log=os.path.join(log_dir, f"serato_import_log_{stamp}.txt"),
            archive_log=os.path.join(log_dir, "serato_archive_cleanup_log.txt"),
        )


@dataclass
class CandidateFile:
    """A recently changed audio file found by discovery"""

    path: str
    filename: str
    created_time: float
    bitrate: Optional[int] = None

    @classmethod
    def from_path(cls, path: str, created_time: float) -> 'CandidateFile':
        path = os.path.abspath(path)
        return cls(path=path, filename=os.path.basename(path), created_time=created_time)


@dataclass
class DatabaseEntry:
    """One line of the Serato database that carries a quoted track path"""

    line_number: int
    path: str

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


class Decision(Enum):
    """Outcome of reconciling one candidate against the database"""

    ADD = "add"
    REPLACE = "replace"
    TAG_ONLY = "tag_only"
    SKIP = "skip"

    @property
    def adds_entry(self) -> bool:
        return self in (Decision.ADD, Decision.REPLACE)


@dataclass
class ImportResult:
    """Result of reconciling a single candidate"""

    # Processing info
    filepath: str = ""
    success: bool = False
    processing_time: float = 0.0
    timestamp: float = field(default_factory=time.time)

    # Reconciliation
    decision: Optional[Decision] = None
    existing_path: str = ""
    new_bitrate: Optional[int] = None
    existing_bitrate: Optional[int] = None
    archive_path: str = ""
    tags_applied: List[str] = field(default_factory=list)

    # Processing details
    operations_performed: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        result = {}
        for field in self.__dataclass_fields__.values():
            value = getattr(self, field.name)
            if isinstance(value, Decision):
                result[field.name] = value.value
            else:
                result[field.name] = value
        return result

    def add_operation(self, operation: str):
        """Add an operation to the list"""
        if operation not in self.operations_performed:
            self.operations_performed.append(operation)

    def add_warning(self, warning: str):
        """Add a warning message"""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def add_error(self, error: str):
        """Add an error message"""
        if error not in self.errors:
            self.errors.append(error)


@dataclass
class RetentionResult:
    """Result of an archive retention sweep"""

    enabled: bool = True
    dry_run: bool = False
    deleted: List[str] = field(default_factory=list)
    would_delete: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            field.name: getattr(self, field.name)
            for field in self.__dataclass_fields__.values()
        }


@dataclass
class BatchImportResult:
    """Result of a whole import run"""

    # Overall stats
    total_files: int = 0
    successful: int = 0
    failed: int = 0
    added: int = 0
    replaced: int = 0
    tagged: int = 0
    skipped: int = 0

    # Timing
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    total_time: float = 0.0

    # Results
    results: List[ImportResult] = field(default_factory=list)
    retention: Optional[RetentionResult] = None
    relaunched: bool = False
    relaunch_error: str = ""
    dry_run: bool = False

    def add_result(self, result: ImportResult):
        """Add an import result to the batch"""
        self.results.append(result)

        if not result.success:
            self.failed += 1
            return

        self.successful += 1
        if result.decision == Decision.ADD:
            self.added += 1
        elif result.decision == Decision.REPLACE:
            self.replaced += 1
        elif result.decision == Decision.TAG_ONLY:
            self.tagged += 1
        elif result.decision == Decision.SKIP:
            self.skipped += 1

    @property
    def is_empty(self) -> bool:
        return not self.results

    def finalize(self):
        """Finalize the batch and calculate summary stats"""
        self.end_time = time.time()
        self.total_time = self.end_time - self.start_time
        self.total_files = len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'total_files': self.total_files,
            'successful': self.successful,
            'failed': self.failed,
            'added': self.added,
            'replaced': self.replaced,
            'tagged': self.tagged,
            'skipped': self.skipped,
            'total_time': self.total_time,
            'dry_run': self.dry_run,
            'relaunched': self.relaunched,
            'relaunch_error': self.relaunch_error,
            'retention': self.retention.to_dict() if self.retention else None,
            'results': [r.to_dict() for r in self.results]
        }
