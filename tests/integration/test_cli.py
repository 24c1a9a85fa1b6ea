"""Integration tests for the CLI interface (ds_pipeline/cli.py)."""

import json
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List

import pytest

REPO_ROOT = Path(__file__).parent.parent.parent


def _run(args: List[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "ds_pipeline.cli", *args],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
    )


@pytest.mark.integration
class TestCLIExecution:
    """Tests for basic CLI execution."""

    def test_cli_writes_corpus(self, temp_config_file, temp_documents_file, temp_output_dir):
        result = _run(
            [
                "--config",
                temp_config_file,
                "--input",
                temp_documents_file,
                "--output-dir",
                temp_output_dir,
            ]
        )
        assert result.returncode == 0, f"CLI failed: {result.stderr}"
        rows = (Path(temp_output_dir) / "training.inst").read_text(encoding="utf-8").splitlines()
        assert len(rows) == 5
        assert rows[0].split("\t")[-1] == "founded"

    def test_cli_accepts_input_directory(self, temp_config_file, temp_documents_file, temp_output_dir):
        result = _run(
            [
                "--config",
                temp_config_file,
                "--input",
                os.path.dirname(temp_documents_file),
                "--output-dir",
                temp_output_dir,
            ]
        )
        assert result.returncode == 0, f"CLI failed: {result.stderr}"
        assert (Path(temp_output_dir) / "SENTTEXTINFORMATION").read_text(encoding="utf-8")

    def test_cli_saves_documents(self, temp_config_file, temp_documents_file, temp_output_dir):
        with tempfile.TemporaryDirectory() as documents_dir:
            result = _run(
                [
                    "--config",
                    temp_config_file,
                    "--input",
                    temp_documents_file,
                    "--output-dir",
                    temp_output_dir,
                    "--documents-dir",
                    documents_dir,
                ]
            )
            assert result.returncode == 0, f"CLI failed: {result.stderr}"
            assert (Path(documents_dir) / "documents.jsonl.gz").exists()

    def test_cli_debug_logging(self, temp_config_file, temp_documents_file, temp_output_dir):
        result = _run(
            [
                "--config",
                temp_config_file,
                "--input",
                temp_documents_file,
                "--output-dir",
                temp_output_dir,
                "--log",
                "DEBUG",
            ]
        )
        assert result.returncode == 0, f"CLI failed: {result.stderr}"
        assert "hits found" in result.stderr


@pytest.mark.integration
class TestCLIErrors:
    """Tests for CLI failure modes."""

    def test_missing_required_args(self):
        result = _run([])
        assert result.returncode != 0
        assert "--config" in result.stderr

    def test_missing_output_dir(self, temp_config_file, temp_documents_file):
        result = _run(["--config", temp_config_file, "--input", temp_documents_file])
        assert result.returncode != 0

    def test_unusable_output_dir_exits_1(self, temp_config_file, temp_documents_file):
        result = _run(
            [
                "--config",
                temp_config_file,
                "--input",
                temp_documents_file,
                "--output-dir",
                temp_config_file,
            ]
        )
        assert result.returncode == 1
        assert "Unable to create directory" in result.stderr

    def test_invalid_config_json(self, temp_documents_file, temp_output_dir):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write("{not json")
            path = f.name
        try:
            result = _run(
                ["--config", path, "--input", temp_documents_file, "--output-dir", temp_output_dir]
            )
            assert result.returncode != 0
        finally:
            os.unlink(path)

    def test_unknown_component(self, temp_documents_file, temp_output_dir):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({"loader": {"name": "nonexistent"}}, f)
            path = f.name
        try:
            result = _run(
                ["--config", path, "--input", temp_documents_file, "--output-dir", temp_output_dir]
            )
            assert result.returncode != 0
            assert "nonexistent" in result.stderr
        finally:
            os.unlink(path)
