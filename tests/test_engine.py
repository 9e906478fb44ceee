"""
Reconciliation scenarios for a single candidate: add, replace, tag-only,
skip, dry run and failure isolation.
"""

import os
import time
from dataclasses import replace
from datetime import date

import pytest

from conftest import FakeProber, FakeTagger, add_database_entry, read_lines, write_audio
from seratoimport.core.engine import ReconciliationEngine
from seratoimport.core.models import CandidateFile, Decision, SessionPaths
from seratoimport.services.database import CrateFile, SeratoDatabase
from seratoimport.services.file_operations import FileOperationsService
from seratoimport.utils.logging_config import AuditLog


TODAY = date(2024, 5, 1)


@pytest.fixture
def make_engine(serato_env):
    """Factory building an engine against the temporary Serato folder"""
    audit_logs = []

    def factory(prober, tagger=None, dry_run=False):
        options = replace(serato_env.options, dry_run=dry_run)
        paths = SessionPaths.from_options(options, TODAY)
        import_log = AuditLog(paths.import_log, 'import')
        audit_logs.append(import_log)
        engine = ReconciliationEngine(
            options,
            SeratoDatabase(paths.database),
            CrateFile(paths.crate_file, paths.crate_name),
            FileOperationsService(paths),
            prober,
            tagger or FakeTagger(),
            import_log,
        )
        return engine, paths

    yield factory

    for audit_log in audit_logs:
        audit_log.close()


def candidate_for(path):
    return CandidateFile.from_path(path, time.time())


def test_add_new_track(serato_env, make_engine):
    new = write_audio(os.path.join(serato_env.downloads, "New Song.m4a"))
    engine, paths = make_engine(FakeProber({new: 256}))

    result = engine.process_candidate(candidate_for(new))
    engine.import_log.close()

    assert result.success
    assert result.decision == Decision.ADD
    assert result.new_bitrate == 256
    assert read_lines(paths.database) == [f'Song File Path="{new}"']
    assert engine.crate.tracks() == [new]
    assert os.path.isfile(os.path.join(paths.overview_builder, "New Song.m4a.analyze"))
    assert os.path.getsize(os.path.join(paths.overview_builder, "New Song.m4a.analyze")) == 0
    assert read_lines(paths.import_log) == [f"{new} (256 kbps) - Tags: serato-cues rekordbox-cues"]


def test_add_survives_failed_probe(serato_env, make_engine):
    new = write_audio(os.path.join(serato_env.downloads, "Unknown.m4a"))
    engine, paths = make_engine(FakeProber())

    result = engine.process_candidate(candidate_for(new))
    engine.import_log.close()

    assert result.success
    assert result.decision == Decision.ADD
    assert result.new_bitrate is None
    assert result.warnings
    assert read_lines(paths.database) == [f'Song File Path="{new}"']
    assert read_lines(paths.import_log) == [f"{new} (unknown kbps) - Tags: serato-cues rekordbox-cues"]


def test_replace_lower_bitrate_copy(serato_env, make_engine):
    existing = write_audio(os.path.join(serato_env.library, "Song.m4a"), b"old")
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"), b"new")
    add_database_entry(serato_env.database, existing)
    engine, paths = make_engine(FakeProber({existing: 128, new: 256}))

    result = engine.process_candidate(candidate_for(new))

    assert result.success
    assert result.decision == Decision.REPLACE
    assert (result.new_bitrate, result.existing_bitrate) == (256, 128)
    assert not os.path.exists(existing)
    assert result.archive_path == os.path.join(paths.archive_dir, "Song.m4a")
    with open(result.archive_path, 'rb') as f:
        assert f.read() == b"old"
    assert read_lines(paths.database) == [
        f'Song File Path="{existing}"',
        f'Song File Path="{new}"',
    ]
    assert engine.crate.tracks() == [new]


def test_replace_archive_collision_keeps_both(serato_env, make_engine):
    existing = write_audio(os.path.join(serato_env.library, "Song.m4a"))
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"))
    write_audio(os.path.join(serato_env.archive, "Song.m4a"), b"archived earlier")
    add_database_entry(serato_env.database, existing)
    engine, paths = make_engine(FakeProber({existing: 128, new: 256}))

    result = engine.process_candidate(candidate_for(new))

    assert result.archive_path == os.path.join(paths.archive_dir, "Song_001.m4a")
    assert os.path.isfile(os.path.join(paths.archive_dir, "Song.m4a"))


def test_equal_bitrate_tags_existing(serato_env, make_engine):
    existing = write_audio(os.path.join(serato_env.library, "Song.m4a"))
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"))
    add_database_entry(serato_env.database, existing)
    tagger = FakeTagger()
    engine, paths = make_engine(FakeProber({existing: 256, new: 256}), tagger)

    result = engine.process_candidate(candidate_for(new))

    assert result.success
    assert result.decision == Decision.TAG_ONLY
    assert tagger.calls == [(existing, "serato-cues"), (existing, "rekordbox-cues")]
    assert result.tags_applied == ["serato-cues", "rekordbox-cues"]
    assert read_lines(paths.database) == [f'Song File Path="{existing}"']
    assert os.path.exists(existing)
    assert not os.path.exists(paths.crate_file)


def test_lower_bitrate_is_skipped(serato_env, make_engine):
    existing = write_audio(os.path.join(serato_env.library, "Song.m4a"))
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"))
    add_database_entry(serato_env.database, existing)
    tagger = FakeTagger()
    engine, paths = make_engine(FakeProber({existing: 320, new: 192}), tagger)

    result = engine.process_candidate(candidate_for(new))

    assert result.success
    assert result.decision == Decision.SKIP
    assert tagger.calls == []
    assert read_lines(paths.database) == [f'Song File Path="{existing}"']
    assert os.path.exists(existing)
    assert not os.path.exists(paths.archive_dir)


def test_candidate_already_in_database_is_skipped_without_probing(serato_env, make_engine):
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"))
    add_database_entry(serato_env.database, new)
    prober = FakeProber({new: 256})
    engine, paths = make_engine(prober)

    result = engine.process_candidate(candidate_for(new))

    assert result.decision == Decision.SKIP
    assert prober.calls == []
    assert os.path.exists(new)


def test_failed_probe_of_existing_file_is_isolated(serato_env, make_engine):
    existing = write_audio(os.path.join(serato_env.library, "Song.m4a"))
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"))
    add_database_entry(serato_env.database, existing)
    engine, paths = make_engine(FakeProber({new: 256}))

    result = engine.process_candidate(candidate_for(new))

    assert not result.success
    assert result.decision is None
    assert "[BitrateProbe]" in result.errors[0]
    assert os.path.exists(existing)
    assert read_lines(paths.database) == [f'Song File Path="{existing}"']


def test_dry_run_changes_nothing(serato_env, make_engine):
    existing = write_audio(os.path.join(serato_env.library, "Song.m4a"))
    new = write_audio(os.path.join(serato_env.downloads, "Song.m4a"))
    add_database_entry(serato_env.database, existing)
    engine, paths = make_engine(FakeProber({existing: 128, new: 256}), dry_run=True)

    result = engine.process_candidate(candidate_for(new))
    engine.import_log.close()

    assert result.success
    assert result.decision == Decision.REPLACE
    assert os.path.exists(existing)
    assert not os.path.exists(paths.archive_dir)
    assert not os.path.exists(paths.crate_file)
    assert os.listdir(paths.overview_builder) == []
    assert read_lines(paths.database) == [f'Song File Path="{existing}"']
    assert any(op.startswith("[Dry-Run] Would archive") for op in result.operations_performed)
    assert read_lines(paths.import_log)[0].startswith("[Dry-Run] ")


def test_dry_run_staged_entry_is_visible_to_later_candidates(serato_env, make_engine):
    first = write_audio(os.path.join(serato_env.downloads, "a", "Song.m4a"))
    second = write_audio(os.path.join(serato_env.downloads, "b", "Song.m4a"))
    engine, paths = make_engine(FakeProber({first: 256, second: 256}), dry_run=True)

    assert engine.process_candidate(candidate_for(first)).decision == Decision.ADD
    result = engine.process_candidate(candidate_for(second))

    assert result.decision == Decision.TAG_ONLY
    assert result.existing_path == first
    assert read_lines(paths.database) == []


def test_rerun_with_quoted_filename_does_not_add_twice(serato_env, make_engine):
    new = write_audio(os.path.join(serato_env.downloads, 'My "Live" Song.m4a'))

    first_engine, paths = make_engine(FakeProber({new: 256}))
    first = first_engine.process_candidate(candidate_for(new))
    second_engine, _ = make_engine(FakeProber({new: 256}))
    second = second_engine.process_candidate(candidate_for(new))

    assert first.decision == Decision.ADD
    assert second.decision == Decision.SKIP
    assert read_lines(paths.database) == [f'Song File Path="{new}"']
