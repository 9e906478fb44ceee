"""
Service Layer for Serato Import

Each service owns one external concern: the Serato database and crates,
bitrate probing, metadata tagging, file operations, archive retention and
the application lifecycle.
"""

from .database import SeratoDatabase, CrateFile
from .file_operations import FileOperationsService
from .probing import create_prober
from .retention import ArchiveRetentionService
from .tagging import create_tagger

__all__ = [
    'SeratoDatabase',
    'CrateFile',
    'FileOperationsService',
    'create_prober',
    'ArchiveRetentionService',
    'create_tagger'
]
