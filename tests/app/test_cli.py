"""
Tests for the command-line front end.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.cli import ConsoleDatabasePrompt, build_parser, main
from extractors.asset_signatures import Category
from tests.fixtures.cache import HTTP_PREAMBLE, OGG_BYTES, PNG_BYTES


@pytest.fixture
def base_dir(tmp_path: Path, cache_dir, storage_db_factory) -> Path:
    """Project directory whose settings point at the fixture cache and database."""
    storage = storage_db_factory(rows=(("0a01", HTTP_PREAMBLE + PNG_BYTES),))
    root = tmp_path / "project"
    config_dir = root / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "config.yml").write_text(
        f"locale: en\ntemp_directory: {tmp_path / 'scratch'}\n", encoding="utf-8"
    )
    (config_dir / "settings.json").write_text(
        json.dumps({"cache_directory": str(cache_dir.root), "sql_database": str(storage.path)}),
        encoding="utf-8",
    )
    return root


class TestParser:
    """Tests for argument parsing."""

    def test_category_parsed(self):
        args = build_parser().parse_args(["list", "Images"])
        assert args.category is Category.IMAGES

    def test_unknown_category_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["list", "videos"])

    def test_swap_defaults_to_all(self):
        args = build_parser().parse_args(["swap", "a", "b"])
        assert args.category is Category.ALL
        assert (args.asset_a, args.asset_b) == ("a", "b")

    def test_version(self, capsys: pytest.CaptureFixture):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("CacheSifter ")

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out


class TestCommands:
    """Tests for running subcommands end to end."""

    def test_list_prints_ids(self, base_dir: Path, cache_dir, capsys: pytest.CaptureFixture):
        cache_dir.add("abc", PNG_BYTES)
        cache_dir.add("junk", b"nothing here")
        assert main(["--base-dir", str(base_dir), "list", "images"]) == 0
        out = capsys.readouterr().out.split()
        assert sorted(out) == ["0a01", "abc"]
        assert (base_dir / "logs" / "cachesifter.log").exists()

    def test_extract(self, base_dir: Path, cache_dir, tmp_path: Path):
        cache_dir.add("song", OGG_BYTES, folder="sounds")
        destination = tmp_path / "out"
        assert main(["--base-dir", str(base_dir), "extract", "music", str(destination)]) == 0
        assert (destination / "song.ogg").read_bytes() == OGG_BYTES

    def test_extract_all(self, base_dir: Path, cache_dir, tmp_path: Path):
        cache_dir.add("song", OGG_BYTES, folder="sounds")
        destination = tmp_path / "out"
        assert main(["--base-dir", str(base_dir), "extract-all", str(destination)]) == 0
        assert sorted(p.name for p in destination.iterdir()) == ["0a01.png", "song.ogg"]

    def test_swap_reports_failure(self, base_dir: Path, capsys: pytest.CaptureFixture):
        assert main(["--base-dir", str(base_dir), "swap", "missing-a", "missing-b"]) == 1
        assert capsys.readouterr().out.startswith("Failed to open file")

    def test_copy(self, base_dir: Path, cache_dir):
        cache_dir.add("a", b"first")
        target = cache_dir.add("b", b"second")
        assert main(["--base-dir", str(base_dir), "copy", "a", "b"]) == 0
        assert target.read_bytes() == b"first"


class TestConsoleDatabasePrompt:
    """Tests for the terminal database prompt."""

    def test_non_interactive_declines(self):
        prompt = ConsoleDatabasePrompt(interactive=False, input_fn=pytest.fail)
        assert prompt.confirm_custom_location() is False
        assert prompt.ask_for_location() is None

    def test_interactive_answers(self):
        answers = iter(["y", "  /data/rbx-storage.db  "])
        prompt = ConsoleDatabasePrompt(interactive=True, input_fn=lambda _: next(answers))
        assert prompt.confirm_custom_location() is True
        assert prompt.ask_for_location() == "/data/rbx-storage.db"

    def test_notification_goes_to_stderr(self, capsys: pytest.CaptureFixture):
        ConsoleDatabasePrompt(interactive=False).notify_detection_failed()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err
