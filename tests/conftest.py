import os
from types import SimpleNamespace

import pytest

from seratoimport.core.exceptions import BitrateProbeError, LifecycleError
from seratoimport.core.models import ImportOptions
from seratoimport.services.database import format_database_line


class FakeProber:
    """Bitrates keyed by absolute path; missing paths fail like an unreadable file"""

    def __init__(self, bitrates=None):
        self.bitrates = dict(bitrates or {})
        self.calls = []

    def probe(self, filepath):
        self.calls.append(filepath)
        value = self.bitrates.get(filepath)
        if value is None:
            raise BitrateProbeError("No bitrate reported", filepath=filepath)
        return value


class FakeTagger:
    def __init__(self):
        self.calls = []

    def add_tag(self, filepath, tag):
        self.calls.append((filepath, tag))


class FakeLifecycle:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def quit(self, app_name):
        self.calls.append(('quit', app_name))

    def launch(self, app_name):
        if self.fail:
            raise LifecycleError(f"Could not launch {app_name}")
        self.calls.append(('launch', app_name))


def write_audio(path, content=b"audio"):
    """Create a fake audio file, including parent directories"""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'wb') as f:
        f.write(content)
    return str(path)


def add_database_entry(database_path, track_path):
    with open(database_path, 'a', encoding='utf-8') as f:
        f.write(format_database_line(track_path) + '\n')


def read_lines(path):
    with open(path, 'r', encoding='utf-8') as f:
        return [line.rstrip('\n') for line in f]


@pytest.fixture
def serato_env(tmp_path):
    """A Serato folder with an empty database, a library and a downloads folder"""
    serato_dir = tmp_path / "_Serato_"
    serato_dir.mkdir()
    database = serato_dir / "Database V2"
    database.write_text("", encoding='utf-8')
    (serato_dir / "OverviewBuilder").mkdir()

    library = tmp_path / "library"
    library.mkdir()
    downloads = tmp_path / "downloads"
    downloads.mkdir()
    archive = tmp_path / "archive"
    logs = tmp_path / "logs"

    options = ImportOptions(
        serato_dir=str(serato_dir),
        archive_dir=str(archive),
        log_dir=str(logs),
        relaunch_delay=0,
    )

    return SimpleNamespace(
        root=tmp_path,
        serato_dir=serato_dir,
        database=database,
        overview_builder=serato_dir / "OverviewBuilder",
        library=library,
        downloads=downloads,
        archive=archive,
        logs=logs,
        options=options,
    )


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Keep the user's config file, .env and SERATO_IMPORT_* variables out of the test"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    for name in list(os.environ):
        if name.startswith("SERATO_IMPORT_"):
            monkeypatch.delenv(name)
    return home
