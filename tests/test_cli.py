"""Tests for the storage-uploader CLI."""

import subprocess
import sys
from pathlib import Path

import pytest

import storage_uploader.cli as cli
from storage_uploader.cli import main, parse_metadata

# Project paths
project_root = Path(__file__).parent.parent
scripts_dir = project_root / "scripts"


@pytest.fixture
def backend(fake_backend, monkeypatch):
    """Route every CLI backend construction to the in-memory fake."""
    created = []

    def _create_backend(**kwargs):
        created.append(kwargs)
        return fake_backend

    monkeypatch.setattr(cli, "create_backend", _create_backend)
    fake_backend.created = created
    return fake_backend


@pytest.fixture
def answer(monkeypatch):
    """Answer every confirmation prompt with the given text."""
    prompts = []

    def _set(text):
        def _input(question):
            prompts.append(question)
            return text

        monkeypatch.setattr("builtins.input", _input)
        return prompts

    return _set


class TestArgumentHandling:
    """Tests for validation and exit codes."""

    def test_no_arguments_is_an_error(self, backend, capsys):
        assert main([]) == 1
        assert "must specify an operation" in capsys.readouterr().err

    def test_missing_bucket_is_an_error(self, backend, capsys):
        assert main(["--list"]) == 1
        assert "--bucket option is required" in capsys.readouterr().err

    def test_bucket_from_environment(self, backend, monkeypatch):
        monkeypatch.setenv("STORAGE_BUCKET", "env-bucket")

        assert main(["--list"]) == 0
        assert backend.calls_of("list")[0][1] == "env-bucket"

    def test_unknown_option_exits_with_one(self, backend):
        with pytest.raises(SystemExit) as exc_info:
            main(["--bucket", "b", "--bogus"])
        assert exc_info.value.code == 1

    def test_help_exits_with_zero(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        assert "--no-overwrite" in capsys.readouterr().out

    def test_backend_settings_passed_through(self, backend):
        main(
            [
                "--bucket", "b", "--list",
                "--region", "eu-west-1", "--profile", "dev",
                "--endpoint-url", "http://minio:9000",
            ]
        )

        assert backend.created == [
            {
                "provider": "s3",
                "region": "eu-west-1",
                "profile": "dev",
                "endpoint_url": "http://minio:9000",
                "project": None,
            }
        ]

    def test_default_region(self, backend):
        main(["--bucket", "b", "--list"])

        assert backend.created[0]["region"] == "us-east-1"

    def test_invalid_env_config(self, backend, monkeypatch, capsys):
        monkeypatch.setenv("STORAGE_PROVIDER", "ftp")

        assert main(["--bucket", "b", "--list"]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_storage_error_exits_with_one(self, backend, capsys):
        backend.fail_list = PermissionError("AccessDenied")

        assert main(["--bucket", "b", "--list"]) == 1
        assert "AccessDenied" in capsys.readouterr().err


class TestListCommand:
    """Tests for --list."""

    def test_list_with_prefix(self, backend, capsys):
        backend.objects[("b", "uploads/a.txt")] = {}
        backend.objects[("b", "other.txt")] = {}

        assert main(["--bucket", "b", "--list", "uploads/"]) == 0

        out = capsys.readouterr().out
        assert "Found 1 objects:" in out
        assert "- uploads/a.txt" in out
        assert "other.txt" not in out

    def test_list_without_prefix_lists_everything(self, backend, capsys):
        backend.objects[("b", "a.txt")] = {}

        assert main(["--bucket", "b", "--list"]) == 0
        assert backend.calls_of("list")[0][2] == ""
        assert "- a.txt" in capsys.readouterr().out

    def test_list_empty(self, backend, capsys):
        assert main(["--bucket", "b", "--list", "x/"]) == 0
        assert "No objects found." in capsys.readouterr().out


class TestDeleteCommands:
    """Tests for --delete and --delete-all."""

    def test_delete_confirmed(self, backend, answer):
        backend.objects[("b", "k.txt")] = {}
        prompts = answer("y")

        assert main(["--bucket", "b", "--delete", "k.txt"]) == 0
        assert ("b", "k.txt") not in backend.objects
        assert len(prompts) == 1

    def test_delete_declined(self, backend, answer, capsys):
        backend.objects[("b", "k.txt")] = {}
        answer("n")

        assert main(["--bucket", "b", "--delete", "k.txt"]) == 0
        assert ("b", "k.txt") in backend.objects
        assert "Operation cancelled." in capsys.readouterr().out

    def test_delete_all_requires_confirmation(self, backend, answer, capsys):
        backend.objects[("b", "old/1")] = {}
        backend.objects[("b", "old/2")] = {}
        prompts = answer("no")

        assert main(["--bucket", "b", "--delete-all", "old/"]) == 0
        assert backend.calls_of("delete_many") == []
        assert "delete these 2 objects" in prompts[0]
        assert "Operation cancelled." in capsys.readouterr().out

    def test_delete_all_confirmed(self, backend, answer, capsys):
        backend.objects[("b", "old/1")] = {}
        backend.objects[("b", "old/2")] = {}
        backend.objects[("b", "keep")] = {}
        answer("YES")

        assert main(["--bucket", "b", "--delete-all", "old/"]) == 0
        assert list(backend.objects) == [("b", "keep")]
        assert "Successfully deleted 2 objects." in capsys.readouterr().out

    def test_delete_all_non_interactive_mode(self, backend, monkeypatch):
        monkeypatch.setenv("STORAGE_UPLOADER_NON_INTERACTIVE", "true")
        monkeypatch.setattr("builtins.input", lambda _: pytest.fail("prompted"))
        backend.objects[("b", "old/1")] = {}

        assert main(["--bucket", "b", "--delete-all", "old/"]) == 0
        assert backend.objects == {}

    def test_delete_all_nothing_to_delete(self, backend, capsys):
        assert main(["--bucket", "b", "--delete-all", "old/"]) == 0
        assert "No objects found to delete." in capsys.readouterr().out

    def test_eof_on_prompt_counts_as_no(self, backend, monkeypatch):
        def _eof(_):
            raise EOFError

        monkeypatch.setattr("builtins.input", _eof)
        backend.objects[("b", "k")] = {}

        assert main(["--bucket", "b", "--delete", "k"]) == 0
        assert ("b", "k") in backend.objects


class TestUploadCommands:
    """Tests for --file and --dir."""

    def test_upload_file(self, backend, tmp_path, capsys):
        file_path = tmp_path / "a.txt"
        file_path.write_text("hello")

        assert main(["--bucket", "b", "--file", str(file_path), "--yes"]) == 0
        assert ("b", "a.txt") in backend.objects
        assert "Successfully uploaded: a.txt" in capsys.readouterr().out

    def test_upload_file_with_prefix_and_metadata(self, backend, tmp_path):
        file_path = tmp_path / "a.txt"
        file_path.write_text("hello")

        main(
            [
                "--bucket", "b", "--file", str(file_path), "--prefix", "docs",
                "-m", "team=data", "-m", "owner = ops", "--content-type", "text/markdown",
                "--yes",
            ]
        )

        stored = backend.objects[("b", "docs/a.txt")]
        assert stored["metadata"] == {"team": "data", "owner": "ops"}
        assert stored["content_type"] == "text/markdown"

    def test_upload_file_overwrite_prompt_declined(self, backend, tmp_path, answer):
        file_path = tmp_path / "a.txt"
        file_path.write_text("hello")
        prompts = answer("n")

        assert main(["--bucket", "b", "--file", str(file_path)]) == 0
        assert backend.objects == {}
        assert "overwrite" in prompts[0]

    def test_upload_file_no_overwrite_skips_prompt(self, backend, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda _: pytest.fail("prompted"))
        file_path = tmp_path / "a.txt"
        file_path.write_text("hello")
        backend.objects[("b", "a.txt")] = {"data": b"old"}

        assert main(["--bucket", "b", "--file", str(file_path), "--no-overwrite"]) == 0
        assert "Skipped (already exists): a.txt" in capsys.readouterr().out
        assert backend.calls_of("put") == []

    def test_upload_missing_file(self, backend, tmp_path, capsys):
        assert main(["--bucket", "b", "--file", str(tmp_path / "nope.txt"), "--yes"]) == 1
        assert "File not found" in capsys.readouterr().err
        assert backend.calls == []

    def test_upload_directory(self, backend, tmp_path, capsys):
        root = tmp_path / "d"
        (root / "sub").mkdir(parents=True)
        (root / "x.txt").write_text("x")
        (root / "sub" / "y.txt").write_text("y")

        assert main(["--bucket", "b", "--dir", str(root), "--prefix", "up", "--yes"]) == 0
        assert {k for (_, k) in backend.objects} == {"up/x.txt", "up/sub/y.txt"}
        assert "2 files uploaded, 0 files skipped" in capsys.readouterr().out

    def test_upload_directory_partial_failure(self, backend, tmp_path, capsys):
        root = tmp_path / "d"
        root.mkdir()
        (root / "x.txt").write_text("x")
        (root / "y.txt").write_text("y")
        backend.fail_put_keys.add("y.txt")

        assert main(["--bucket", "b", "--dir", str(root), "--yes"]) == 1
        out = capsys.readouterr().out
        assert "1 files uploaded" in out
        assert "1 files failed" in out

    def test_upload_missing_directory(self, backend, tmp_path, capsys):
        assert main(["--bucket", "b", "--dir", str(tmp_path / "nope"), "--yes"]) == 1
        assert "Directory not found" in capsys.readouterr().err


class TestManifestCommand:
    """Tests for --manifest."""

    def test_manifest_runs_uploads(self, backend, tmp_path, capsys):
        (tmp_path / "site" / "css").mkdir(parents=True)
        (tmp_path / "site" / "index.html").write_text("<html></html>")
        (tmp_path / "site" / "css" / "app.css").write_text("body {}")
        (tmp_path / "report.pdf").write_bytes(b"%PDF")
        manifest = tmp_path / "uploads.yaml"
        manifest.write_text(
            "version: '1.0'\n"
            "bucket: manifest-bucket\n"
            "uploads:\n"
            "  - file: report.pdf\n"
            "    key: reports/q3.pdf\n"
            "    metadata: {team: finance}\n"
            "  - dir: site\n"
            "    prefix: www\n"
        )

        assert main(["--manifest", str(manifest), "--yes"]) == 0

        keys = {k for (b, k) in backend.objects if b == "manifest-bucket"}
        assert keys == {"reports/q3.pdf", "www/index.html", "www/css/app.css"}
        assert backend.objects[("manifest-bucket", "reports/q3.pdf")]["metadata"] == {
            "team": "finance"
        }

    def test_cli_bucket_overrides_manifest(self, backend, tmp_path):
        (tmp_path / "a.txt").write_text("a")
        manifest = tmp_path / "uploads.yaml"
        manifest.write_text("version: '1.0'\nbucket: m\nuploads:\n  - file: a.txt\n")

        assert main(["--bucket", "cli", "--manifest", str(manifest), "--yes"]) == 0
        assert ("cli", "a.txt") in backend.objects

    def test_invalid_manifest(self, backend, tmp_path, capsys):
        manifest = tmp_path / "uploads.yaml"
        manifest.write_text("version: '1.0'\nbucket: m\nuploads: []\n")

        assert main(["--manifest", str(manifest), "--yes"]) == 1
        assert "Invalid manifest" in capsys.readouterr().err

    def test_missing_manifest(self, backend, tmp_path, capsys):
        assert main(["--bucket", "b", "--manifest", str(tmp_path / "nope.yaml")]) == 1
        assert "Could not load manifest" in capsys.readouterr().err


class TestParseMetadata:
    """Tests for metadata argument parsing."""

    def test_pairs(self):
        assert parse_metadata(["a=1", "b = two", "url=http://x?y=z"]) == {
            "a": "1",
            "b": "two",
            "url": "http://x?y=z",
        }

    def test_invalid_items_skipped(self):
        assert parse_metadata(["novalue", "k=v"]) == {"k": "v"}

    def test_empty(self):
        assert parse_metadata(None) == {}


class TestUploadScript:
    """Tests for scripts/upload.py wrapper."""

    def test_help_message(self):
        """Test that --help works."""
        result = subprocess.run(
            [sys.executable, str(scripts_dir / "upload.py"), "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "object-storage bucket" in result.stdout
        assert "--bucket" in result.stdout
        assert "--delete-all" in result.stdout

    def test_missing_operation_exits_with_one(self):
        result = subprocess.run(
            [sys.executable, str(scripts_dir / "upload.py"), "--bucket", "b"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 1
        assert "must specify an operation" in result.stderr

    def test_script_has_shebang_and_docstring(self):
        lines = (scripts_dir / "upload.py").read_text().splitlines()

        assert lines[0] == "#!/usr/bin/env python3"
        assert lines[1].startswith('"""')
