"""
Unit tests for the gdrive-davfs command line entry point.

The Drive connection is replaced by the in-memory FakeStore, so these tests
exercise argument parsing, command dispatch and error reporting.
"""

from unittest.mock import patch

import pytest

from gdrive_davfs.__main__ import COMMANDS, main, parse_args
from gdrive_davfs.errors import TransientStoreError


@pytest.fixture
def cli_fs(fs):
    with patch("gdrive_davfs.__main__.open_filesystem", return_value=fs) as mock_open:
        yield mock_open


class TestParseArgs:
    def test_ls_defaults_to_root(self):
        args = parse_args(["ls"])

        assert args.command == "ls"
        assert args.path == "/"

    def test_common_options_after_command(self):
        args = parse_args(["stat", "/docs", "--root-folder", "abc", "--stall-timeout", "2.5"])

        assert args.root_folder == "abc"
        assert args.stall_timeout == 2.5
        assert args.verbose is False

    def test_rm_trash_flag(self):
        assert parse_args(["rm", "/docs", "--trash"]).trash is True


class TestCommands:
    def test_no_command_prints_usage(self, capsys):
        assert main([]) == 1
        assert "Usage: gdrive-davfs" in capsys.readouterr().out

    def test_ls(self, cli_fs, capsys):
        assert main(["ls", "/docs"]) == 0

        out = capsys.readouterr().out
        assert "a.txt" in out
        assert out.startswith("- ")

    def test_ls_root_shows_directories(self, cli_fs, capsys):
        assert main(["ls"]) == 0

        assert capsys.readouterr().out.startswith("d ")

    def test_stat(self, cli_fs, capsys):
        assert main(["stat", "/docs/a.txt"]) == 0

        out = capsys.readouterr().out
        assert "Name:     a.txt" in out
        assert "Size:     10" in out
        assert "Type:     file" in out

    def test_stat_root(self, cli_fs, capsys):
        assert main(["stat", "/"]) == 0

        out = capsys.readouterr().out
        assert "Name:     /" in out
        assert "Modified: unknown" in out

    def test_get_to_local_file(self, cli_fs, tmp_path, capsys):
        local = tmp_path / "a.txt"

        assert main(["get", "/docs/a.txt", str(local)]) == 0

        assert local.read_bytes() == b"0123456789"
        assert "[OK] Downloaded" in capsys.readouterr().out

    def test_put_creates_file(self, cli_fs, store, tmp_path):
        local = tmp_path / "upload.bin"
        local.write_bytes(b"payload")

        assert main(["put", str(local), "/docs/upload.bin"]) == 0

        created = [c for c in store.calls if c[0] == "create_object"]
        assert created == [("create_object", "D", "upload.bin", False, b"payload")]

    def test_mkdir(self, cli_fs, store, capsys):
        assert main(["mkdir", "/docs/archive"]) == 0

        assert any(o.name == "archive" and o.is_container for o in store.objects.values())
        assert "[OK] Created directory /docs/archive" in capsys.readouterr().out

    def test_rm(self, cli_fs, store):
        assert main(["rm", "/docs"]) == 0

        assert "D" not in store.objects
        assert "F" not in store.objects

    def test_missing_path_reports_error_kind(self, cli_fs, capsys):
        assert main(["stat", "/nope"]) == 1

        assert "[ERROR] not_found:" in capsys.readouterr().out

    def test_mkdir_existing_reports_error_kind(self, cli_fs, capsys):
        assert main(["mkdir", "/docs"]) == 1

        assert "[ERROR] already_exists:" in capsys.readouterr().out

    def test_configuration_error(self, capsys):
        with patch(
            "gdrive_davfs.__main__.open_filesystem",
            side_effect=ValueError("No saved Google Drive credentials"),
        ):
            assert main(["ls"]) == 1

        assert "[ERROR] Configuration error" in capsys.readouterr().out

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["ls", "--config", str(tmp_path / "missing.ini")]) == 1

        assert "Configuration file not found" in capsys.readouterr().out

    def test_store_failure_reports_transient_kind(self, cli_fs, store, capsys):
        store.fail_with = TransientStoreError("Unable to find the server", status=None)

        assert main(["ls", "/docs"]) == 1

        assert "[ERROR] transient_store:" in capsys.readouterr().out

    def test_missing_local_file_is_not_a_configuration_error(self, cli_fs, tmp_path, capsys):
        assert main(["put", str(tmp_path / "absent.bin"), "/docs/absent.bin"]) == 1

        out = capsys.readouterr().out
        assert out.startswith("[ERROR]")
        assert "Configuration error" not in out

    def test_command_value_error_is_not_a_configuration_error(self, cli_fs, capsys):
        def closed_handle(fs, args):
            raise ValueError("I/O operation on closed handle")

        with patch.dict(COMMANDS, {"ls": closed_handle}):
            with pytest.raises(ValueError, match="closed handle"):
                main(["ls"])

        assert "Configuration error" not in capsys.readouterr().out
