"""
Filesystem utilities for Serato Import

This module provides safe file operations and path handling utilities.
"""

import os
import shutil
from pathlib import Path
from typing import Iterator, Tuple
import time

from ..core.exceptions import FileOperationError


def ensure_directory(path: str, create: bool = True) -> bool:
    """
    Ensure a directory exists, optionally creating it

    Args:
        path: Directory path to check/create
        create: Whether to create the directory if it doesn't exist

    Returns:
        True if directory exists or was created successfully

    Raises:
        FileOperationError: If directory creation fails
    """
    path_obj = Path(path)

    if path_obj.exists():
        if path_obj.is_dir():
            return True
        raise FileOperationError(
            f"Path exists but is not a directory: {path}",
            filepath=path
        )

    if not create:
        return False

    try:
        path_obj.mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        raise FileOperationError(
            f"Failed to ensure directory: {str(e)}",
            details=str(e),
            filepath=path
        )


def safe_move_file(src_path: str, dst_path: str, overwrite: bool = False) -> Tuple[bool, str]:
    """
    Safely move a file with conflict resolution

    Args:
        src_path: Source file path
        dst_path: Destination file path
        overwrite: Allow overwriting existing files, otherwise a unique
            name is chosen next to the requested destination

    Returns:
        Tuple of (success, final_destination_path)

    Raises:
        FileOperationError: If move operation fails
    """
    src = Path(src_path)
    dst = Path(dst_path)

    if not src.exists():
        raise FileOperationError(
            f"Source file does not exist: {src_path}",
            filepath=src_path
        )

    if not src.is_file():
        raise FileOperationError(
            f"Source is not a file: {src_path}",
            filepath=src_path
        )

    try:
        ensure_directory(str(dst.parent))

        if dst.exists():
            if overwrite:
                dst.unlink()
            else:
                dst = find_unique_path(dst)

        shutil.move(str(src), str(dst))
        return True, str(dst)

    except (OSError, shutil.Error) as e:
        raise FileOperationError(
            f"Failed to move file: {str(e)}",
            details=f"From: {src_path}, To: {dst_path}",
            filepath=src_path
        )


def safe_copy_file(src_path: str, dst_path: str, preserve_metadata: bool = True) -> bool:
    """
    Safely copy a file with metadata preservation

    Args:
        src_path: Source file path
        dst_path: Destination file path
        preserve_metadata: Whether to preserve file metadata

    Returns:
        True if copy was successful

    Raises:
        FileOperationError: If copy operation fails
    """
    src = Path(src_path)
    dst = Path(dst_path)

    if not src.exists() or not src.is_file():
        raise FileOperationError(
            f"Source file does not exist or is not a file: {src_path}",
            filepath=src_path
        )

    try:
        ensure_directory(str(dst.parent))

        if preserve_metadata:
            shutil.copy2(str(src), str(dst))
        else:
            shutil.copy(str(src), str(dst))

        return True

    except OSError as e:
        raise FileOperationError(
            f"Failed to copy file: {str(e)}",
            details=f"From: {src_path}, To: {dst_path}",
            filepath=src_path
        )


def safe_copy_tree(src_dir: str, dst_dir: str) -> bool:
    """
    Recursively copy a directory, merging into an existing destination

    Raises:
        FileOperationError: If the copy fails
    """
    if not os.path.isdir(src_dir):
        raise FileOperationError(
            f"Source directory does not exist: {src_dir}",
            filepath=src_dir
        )

    try:
        shutil.copytree(src_dir, dst_dir, dirs_exist_ok=True)
        return True
    except (OSError, shutil.Error) as e:
        raise FileOperationError(
            f"Failed to copy directory: {str(e)}",
            details=f"From: {src_dir}, To: {dst_dir}",
            filepath=src_dir
        )


def touch_file(path: str) -> str:
    """
    Create an empty file (or update the timestamp of an existing one)

    Raises:
        FileOperationError: If the file cannot be created
    """
    try:
        ensure_directory(os.path.dirname(path) or '.')
        Path(path).touch(exist_ok=True)
        return path
    except OSError as e:
        raise FileOperationError(
            f"Failed to create file: {str(e)}",
            details=str(e),
            filepath=path
        )


def iter_files(directory: str) -> Iterator[str]:
    """
    Lazily yield every regular file below a directory

    Directories and file names are visited in sorted order so that
    repeated runs see files in the same sequence.
    """
    for current_dir, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for filename in sorted(filenames):
            filepath = os.path.join(current_dir, filename)
            if os.path.isfile(filepath):
                yield filepath


def find_unique_path(path: Path) -> Path:
    """Find a unique file path by appending numbers"""
    if not path.exists():
        return path

    counter = 1
    while True:
        new_name = f"{path.stem}_{counter:03d}{path.suffix}"
        new_path = path.parent / new_name
        if not new_path.exists():
            return new_path
        counter += 1

        # Safety limit
        if counter > 999:
            timestamp = int(time.time())
            new_name = f"{path.stem}_{timestamp}{path.suffix}"
            return path.parent / new_name


# Export functions
__all__ = [
    'ensure_directory',
    'safe_move_file',
    'safe_copy_file',
    'safe_copy_tree',
    'touch_file',
    'iter_files',
    'find_unique_path'
]
