"""
Serato Database and Crate Services

The Serato database is treated as flat text: every line that carries a track
location holds the absolute path between its first and last double quote.
This module only reads (lookup) and appends; the file itself is owned by
Serato DJ Pro.
"""

import os
from typing import List, Optional

from ..core.exceptions import DatabaseError, MissingResourceError
from ..core.models import DatabaseEntry, LOOKUP_POLICIES
from ..utils.filesystem import ensure_directory, safe_copy_file
from ..utils.logging_config import get_logger


DATABASE_LINE_PREFIX = 'Song File Path='


def format_database_line(path: str) -> str:
    """Database line for a track path"""
    return f'{DATABASE_LINE_PREFIX}"{path}"'


def extract_quoted_path(line: str) -> Optional[str]:
    """
    Return the text between the first and the last double quote, if any

    Paths are written unescaped, so quotes inside a filename stay part
    of the path.

    >>> extract_quoted_path('Song File Path="/music/My "Live" Song.m4a"')
    '/music/My "Live" Song.m4a'
    """
    start = line.find('"')
    end = line.rfind('"')
    if start == -1 or end - start < 2:
        return None
    return line[start + 1:end]


class SeratoDatabase:
    """
    Read/append access to the Serato database file

    The file is read once on first use. Entries appended through this object,
    or staged during a dry run, are visible to later lookups in the same run.
    """

    def __init__(self, path: str, encoding: str = 'utf-8'):
        self.path = path
        self.encoding = encoding
        self.logger = get_logger('database')
        self._entries: Optional[List[DatabaseEntry]] = None
        self._line_count = 0

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def require(self):
        """
        Raises:
            MissingResourceError: If the database file does not exist
        """
        if not self.exists():
            raise MissingResourceError(
                f"Serato database not found at {self.path}.",
                filepath=self.path
            )

    @property
    def entries(self) -> List[DatabaseEntry]:
        if self._entries is None:
            self._entries = self._load()
        return self._entries

    def _load(self) -> List[DatabaseEntry]:
        self.require()
        entries = []
        try:
            with open(self.path, 'r', encoding=self.encoding, errors='replace') as f:
                for line_number, line in enumerate(f, start=1):
                    path = extract_quoted_path(line.rstrip('\r\n'))
                    if path:
                        entries.append(DatabaseEntry(line_number=line_number, path=path))
                    self._line_count = line_number
        except OSError as e:
            raise DatabaseError(
                f"Failed to read database: {str(e)}",
                details=str(e),
                filepath=self.path
            )

        self.logger.debug(f"Loaded {len(entries)} track entries from {self.path}")
        return entries

    def lookup(self, filename: str, policy: str = 'latest') -> Optional[DatabaseEntry]:
        """
        Find the current entry for a base filename

        Only entries whose path basename equals the filename exactly match.
        With several matches, 'latest' returns the most recently appended
        entry and 'first' the earliest one.

        Args:
            filename: Candidate base filename
            policy: 'latest' or 'first'

        Returns:
            The matching DatabaseEntry, or None
        """
        if policy not in LOOKUP_POLICIES:
            raise ValueError(f"Unknown lookup policy: {policy}")

        matches = [entry for entry in self.entries if entry.filename == filename]
        if not matches:
            return None

        if len(matches) > 1:
            self.logger.warning(
                f"{len(matches)} database entries for {filename}; using the {policy} one"
            )

        return matches[-1] if policy == 'latest' else matches[0]

    def stage(self, path: str) -> DatabaseEntry:
        """Record an entry in memory only (dry run)"""
        self._line_count += 1
        entry = DatabaseEntry(line_number=self._line_count, path=path)
        self.entries.append(entry)
        return entry

    def append_track(self, path: str) -> DatabaseEntry:
        """
        Append a track line to the database file

        Raises:
            DatabaseError: If the file cannot be written
        """
        entries = self.entries
        try:
            with open(self.path, 'a', encoding=self.encoding) as f:
                f.write(format_database_line(path) + '\n')
        except OSError as e:
            raise DatabaseError(
                f"Failed to append to database: {str(e)}",
                details=str(e),
                filepath=path
            )

        self._line_count += 1
        entry = DatabaseEntry(line_number=self._line_count, path=path)
        entries.append(entry)
        return entry

    def backup(self) -> str:
        """Copy the database next to itself with a .bak suffix"""
        self.require()
        backup_path = f"{self.path}.bak"
        safe_copy_file(self.path, backup_path)
        self.logger.info(f"Database backed up to {backup_path}")
        return backup_path


class CrateFile:
    """A Serato crate listing one absolute track path per line"""

    def __init__(self, path: str, name: str, encoding: str = 'utf-8'):
        self.path = path
        self.name = name
        self.encoding = encoding

    def ensure_created(self) -> bool:
        """
        Create the crate with its header line if it does not exist yet

        Returns:
            True if the file was created by this call
        """
        if os.path.exists(self.path):
            return False
        ensure_directory(os.path.dirname(self.path))
        self._write(f"Crate: {self.name}\n", mode='w')
        return True

    def append_track(self, path: str):
        self.ensure_created()
        self._write(f"{path}\n", mode='a')

    def tracks(self) -> List[str]:
        """Track paths currently listed in the crate"""
        if not os.path.exists(self.path):
            return []
        with open(self.path, 'r', encoding=self.encoding) as f:
            lines = [line.rstrip('\r\n') for line in f]
        return [line for line in lines if line and not line.startswith('Crate: ')]

    def _write(self, text: str, mode: str):
        try:
            with open(self.path, mode, encoding=self.encoding) as f:
                f.write(text)
        except OSError as e:
            raise DatabaseError(
                f"Failed to write crate: {str(e)}",
                details=str(e),
                filepath=self.path
            )
