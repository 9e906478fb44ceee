"""
Serato Import Utilities Package

This package contains utility functions used throughout the application.
"""

from .audio import normalize_extensions, parse_bitrate
from .filesystem import ensure_directory, safe_move_file, iter_files

__all__ = [
    'normalize_extensions',
    'parse_bitrate',
    'ensure_directory',
    'safe_move_file',
    'iter_files'
]
