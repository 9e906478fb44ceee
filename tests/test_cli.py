import json
import os
from datetime import date, timedelta

import pytest

from conftest import FakeProber, FakeTagger, read_lines, write_audio
from seratoimport.cli import import_cli
from seratoimport.cli.config import CLIConfig
from seratoimport.cli.import_cli import create_import_options, create_parser, main


TODAY = date.today().isoformat()

pytestmark = pytest.mark.usefixtures("isolated_home")


@pytest.fixture
def cli_args(serato_env):
    """Options pointing every location into the temporary folder"""
    return [
        "--serato-dir", str(serato_env.serato_dir),
        "--archive-dir", str(serato_env.archive),
        "--log-dir", str(serato_env.logs),
        "--app-log-dir", str(serato_env.root / "app-logs"),
        "--no-console-log",
        "--no-progress",
        "--no-relaunch",
    ]


@pytest.fixture
def fake_collaborators(monkeypatch):
    prober = FakeProber()
    tagger = FakeTagger()
    monkeypatch.setattr("seratoimport.importer.create_prober", lambda name, timeout: prober)
    monkeypatch.setattr("seratoimport.importer.create_tagger", lambda name, timeout: tagger)
    return prober, tagger


@pytest.mark.parametrize("argv", [[], ["only-one-argument"], ["a", "b", "c"]])
def test_wrong_number_of_arguments(argv, capsys):
    assert main(argv) == 1
    assert "usage:" in capsys.readouterr().err


def test_invalid_date(serato_env, capsys):
    assert main([str(serato_env.downloads), "2024/05/01"]) == 1
    assert "Invalid date format. Use YYYY-MM-DD." in capsys.readouterr().err


def test_missing_root(serato_env, capsys):
    assert main([str(serato_env.root / "missing"), TODAY]) == 1
    assert "Directory not found" in capsys.readouterr().err


def test_missing_database(serato_env, cli_args, capsys):
    os.remove(serato_env.database)
    assert main([str(serato_env.downloads), TODAY] + cli_args) == 1
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "Serato database not found" in err


def test_nothing_to_import(serato_env, cli_args, capsys):
    future = (date.today() + timedelta(days=2)).isoformat()
    assert main([str(serato_env.downloads), future] + cli_args) == 0
    assert "No new .m4a files found." in capsys.readouterr().out


def test_import_run(serato_env, cli_args, fake_collaborators, capsys):
    prober, _ = fake_collaborators
    new = write_audio(os.path.join(serato_env.downloads, "new.m4a"))
    prober.bitrates[new] = 256

    assert main([str(serato_env.downloads), TODAY] + cli_args) == 0

    assert read_lines(serato_env.database) == [f'Song File Path="{new}"']
    out = capsys.readouterr().out
    assert "Added: 1" in out


def test_dry_run(serato_env, cli_args, fake_collaborators, capsys):
    prober, _ = fake_collaborators
    new = write_audio(os.path.join(serato_env.downloads, "new.m4a"))
    prober.bitrates[new] = 256

    assert main([str(serato_env.downloads), TODAY, "--dry-run"] + cli_args) == 0

    assert read_lines(serato_env.database) == []
    assert "[Dry-Run]" in capsys.readouterr().out


def test_all_candidates_failed(serato_env, cli_args, fake_collaborators):
    existing = write_audio(os.path.join(serato_env.library, "song.m4a"))
    write_audio(os.path.join(serato_env.downloads, "song.m4a"))
    with open(serato_env.database, 'w', encoding='utf-8') as f:
        f.write(f'Song File Path="{existing}"\n')

    assert main([str(serato_env.downloads), TODAY] + cli_args) == 1


def test_command_line_overrides_config(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "import": {"retention_days": 14, "extensions": ["mp3"]},
        "collaborators": {"prober": "mutagen"},
    }), encoding='utf-8')

    args = create_parser().parse_args([
        "/music", TODAY, "--config", str(config_path),
        "--ext", "M4A", "--ext", "flac", "--keep-archived",
    ])
    config = import_cli.CLIConfig(args.config)
    options = create_import_options(args, config.to_import_options())

    assert options.extensions == (".m4a", ".flac")
    assert options.retention_days == 14
    assert options.prober == "mutagen"
    assert options.delete_old_archived is False
    assert options.dry_run is False


def test_invalid_retention_days():
    args = create_parser().parse_args(["/music", TODAY, "--retention-days", "0"])
    with pytest.raises(import_cli.ArgumentError):
        create_import_options(args)


def test_missing_config_file(serato_env, capsys):
    argv = [str(serato_env.downloads), TODAY, "--config", str(serato_env.root / "nope.json")]
    assert main(argv) == 1
    assert "Configuration file not found" in capsys.readouterr().err


def test_bad_config_value_is_a_usage_error(serato_env, cli_args, capsys):
    config_path = serato_env.root / "config.json"
    config_path.write_text(json.dumps({"import": {"retention_days": "thirty"}}), encoding='utf-8')

    argv = [str(serato_env.downloads), TODAY, "--config", str(config_path)] + cli_args
    assert main(argv) == 1

    err = capsys.readouterr().err
    assert "usage:" in err
    assert "import.retention_days" in err


def test_bad_log_level_in_config_is_a_usage_error(serato_env, cli_args, capsys):
    config_path = serato_env.root / "config.json"
    config_path.write_text(json.dumps({"logging": {"console_level": "verbose"}}), encoding='utf-8')

    argv = [str(serato_env.downloads), TODAY, "--config", str(config_path)] + cli_args
    assert main(argv) == 1
    assert "usage:" in capsys.readouterr().err


def test_bad_log_level_in_environment_does_not_stop_the_run(serato_env, cli_args, monkeypatch):
    monkeypatch.setenv("SERATO_IMPORT_LOG_LEVEL", "verbose")
    future = (date.today() + timedelta(days=2)).isoformat()
    assert main([str(serato_env.downloads), future] + cli_args) == 0


def test_report_path(serato_env, cli_args, fake_collaborators):
    prober, _ = fake_collaborators
    new = write_audio(os.path.join(serato_env.downloads, "new.m4a"))
    prober.bitrates[new] = 256
    report_path = serato_env.root / "report.json"

    assert main([str(serato_env.downloads), TODAY, "--report-path", str(report_path)] + cli_args) == 0

    report = json.loads(report_path.read_text(encoding='utf-8'))
    assert report["total_files"] == 1
    assert report["added"] == 1
    assert report["dry_run"] is False
    assert report["results"][0]["filepath"] == new
    assert report["results"][0]["decision"] == "add"
    assert report["results"][0]["new_bitrate"] == 256
    assert report["retention"]["enabled"] is True


def test_user_config_in_home_is_used(serato_env, cli_args, capsys):
    config_path = CLIConfig()._get_default_config_path()
    os.makedirs(os.path.dirname(config_path))
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(json.dumps({"import": {"dry_run": True}}))
    future = (date.today() + timedelta(days=2)).isoformat()

    assert main([str(serato_env.downloads), future] + cli_args) == 0
    assert "Dry run: True" in capsys.readouterr().out
