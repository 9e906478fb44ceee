"""
File Operations Service

Handles every filesystem side effect of an import run: directory setup,
backups, archiving superseded tracks and creating analysis markers.
"""

import os
from typing import Dict, Any, List

from ..core.models import SessionPaths
from ..utils.filesystem import (
    ensure_directory, safe_move_file, safe_copy_tree, touch_file
)
from ..utils.logging_config import get_logger


ANALYZE_MARKER_SUFFIX = '.analyze'


class FileOperationsService:
    """
    File operations for one import session

    Features:
    - Directory preparation (crates, overview builder, archive)
    - Overview builder backup
    - Archiving of superseded tracks with collision-safe names
    - Zero-byte analysis markers for Serato's overview builder
    """

    def __init__(self, paths: SessionPaths):
        self.paths = paths
        self.logger = get_logger('file_ops')

        self.stats = {
            'files_archived': 0,
            'markers_created': 0,
            'directories_prepared': 0,
            'backups_created': 0,
        }

    def prepare_directories(self) -> List[str]:
        """Create the crates, overview builder and archive directories"""
        directories = [
            self.paths.crates_dir,
            self.paths.overview_builder,
            self.paths.archive_dir,
        ]
        for directory in directories:
            ensure_directory(directory)
        self.stats['directories_prepared'] += len(directories)
        return directories

    def backup_overview_builder(self) -> str:
        """Copy the overview builder directory to '<dir>.bak'"""
        backup_path = f"{self.paths.overview_builder}.bak"
        safe_copy_tree(self.paths.overview_builder, backup_path)
        self.stats['backups_created'] += 1
        self.logger.info(f"Overview builder backed up to {backup_path}")
        return backup_path

    def archive_path_for(self, filepath: str) -> str:
        """Destination of a superseded file inside the archive root"""
        return os.path.join(self.paths.archive_dir, os.path.basename(filepath))

    def archive_file(self, filepath: str) -> str:
        """
        Move a superseded track into the archive root

        Returns:
            Final archive path (a numeric suffix is added on collision)

        Raises:
            FileOperationError: If the move fails
        """
        _, final_path = safe_move_file(filepath, self.archive_path_for(filepath))
        self.stats['files_archived'] += 1
        self.logger.info(f"Archived: {os.path.basename(filepath)} -> {final_path}")
        return final_path

    def marker_path_for(self, filepath: str) -> str:
        return os.path.join(
            self.paths.overview_builder,
            f"{os.path.basename(filepath)}{ANALYZE_MARKER_SUFFIX}"
        )

    def create_analysis_marker(self, filepath: str) -> str:
        """
        Create the zero-byte '<filename>.analyze' marker

        Raises:
            FileOperationError: If the marker cannot be created
        """
        marker = touch_file(self.marker_path_for(filepath))
        self.stats['markers_created'] += 1
        self.logger.debug(f"Analysis marker: {marker}")
        return marker

    def get_service_stats(self) -> Dict[str, Any]:
        """Get file operations statistics"""
        return self.stats.copy()
