"""
Candidate Discovery Service

Finds audio files under a root directory whose filesystem change time falls
on or after a cutoff date.
"""

import os
from datetime import date, datetime, time as dt_time
from typing import Iterable, Iterator, Tuple

from ..core.exceptions import ArgumentError
from ..core.models import CandidateFile
from ..utils.audio import has_extension, normalize_extensions
from ..utils.filesystem import iter_files
from ..utils.logging_config import get_logger


def cutoff_timestamp(cutoff: date) -> float:
    """Local midnight at the start of the cutoff date as a POSIX timestamp"""
    return datetime.combine(cutoff, dt_time.min).timestamp()


def discover_candidates(root: str, cutoff: date,
                        extensions: Iterable[str] = (".m4a",)) -> Iterator[CandidateFile]:
    """
    Lazily yield candidate files changed on or after the cutoff date

    Args:
        root: Directory tree to scan
        cutoff: First day (inclusive) of the discovery window
        extensions: File extensions to accept (case-insensitive)

    Yields:
        CandidateFile for each matching regular file, in sorted walk order.
        The root is validated eagerly, the walk itself is lazy.

    Raises:
        ArgumentError: If root is not a directory
    """
    if not os.path.isdir(root):
        raise ArgumentError(f"Root directory not found: {root}", filepath=root)

    accepted = normalize_extensions(extensions)
    get_logger('discovery').info(
        f"Searching for {', '.join(accepted)} files in {root} "
        f"created on or after {cutoff.isoformat()}"
    )
    return _walk_candidates(root, cutoff_timestamp(cutoff), accepted)


def _walk_candidates(root: str, threshold: float, accepted: Tuple[str, ...]) -> Iterator[CandidateFile]:
    logger = get_logger('discovery')

    for filepath in iter_files(root):
        if not has_extension(filepath, accepted):
            continue

        try:
            changed = os.stat(filepath).st_ctime
        except FileNotFoundError:
            continue

        if changed >= threshold:
            logger.debug(f"Candidate: {filepath}")
            yield CandidateFile.from_path(filepath, changed)


def parse_cutoff_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD cutoff date

    Raises:
        ArgumentError: If the value is not a valid date in that format
    """
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ArgumentError(
            "Invalid date format. Use YYYY-MM-DD.",
            details=repr(value)
        )

