"""Tests for the nusgen command line interface."""

import logging
from pathlib import Path

import pytest

from nusgen import __version__
from nusgen.cli import main

CONFIG_DIR = Path(__file__).parents[2] / "configs"

INLINE = ["--method", "rejection", "--sizes", "8", "--density", "0.5", "--equation", "1"]


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo the root logger changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParser:
    """Test top-level argument handling."""

    def test_command_required(self):
        """Test that a subcommand must be given."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_version(self, capsys):
        """Test the version flag."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert f"nusgen v{__version__}" in capsys.readouterr().out


class TestPresetsCommand:
    """Test listing preset gap laws."""

    def test_list(self, capsys):
        """Test that every preset is listed."""
        assert main(["presets"]) == 0
        out = capsys.readouterr().out
        assert "PRESET GAP LAWS" in out
        for name in ("sinegap", "poissongap", "sineburst", "poisrnd"):
            assert name in out

    def test_verbose(self, capsys):
        """Test that verbose mode prints the expressions."""
        assert main(["presets", "--verbose"]) == 0
        assert "sin(" in capsys.readouterr().out


class TestGenerateCommand:
    """Test schedule generation from the command line."""

    def test_inline_to_stdout(self, capsys):
        """Test that stdout carries only the schedule."""
        assert main(["generate"] + INLINE) == 0
        assert capsys.readouterr().out == "1\n2\n4\n5\n"

    def test_inline_2d_indices(self, capsys):
        """Test inline jitter generation in index format."""
        argv = [
            "generate", "--method", "jitter", "--sizes", "4", "4",
            "--density", "0.25", "--equation", "1", "--format", "indices",
        ]
        assert main(argv) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 4
        assert all(0 <= int(v) < 16 for v in lines)

    def test_missing_inline_options(self, capsys):
        """Test that inline generation needs every schedule option."""
        assert main(["generate", "--method", "gap", "--sizes", "16"]) == 1
        err = capsys.readouterr().err
        assert "--density" in err
        assert "--equation" in err

    def test_invalid_inline_equation(self, capsys):
        """Test that a bad equation is reported before generating."""
        argv = ["generate", "--method", "rejection", "--sizes", "8",
                "--density", "0.5", "--equation", "L * x[0]"]
        assert main(argv) == 1
        assert "unknown name 'L'" in capsys.readouterr().err

    def test_output_file(self, tmp_path, capsys):
        """Test writing to --output."""
        path = tmp_path / "schedule.txt"
        assert main(["generate"] + INLINE + ["--output", str(path)]) == 0

        assert path.read_text() == "1\n2\n4\n5\n"
        assert f"✓ Wrote 4 points to {path}" in capsys.readouterr().out

    def test_config_with_param(self, tmp_path, capsys):
        """Test a config file with a runtime parameter and overrides."""
        path = tmp_path / "out.txt"
        argv = [
            "generate", "--config", str(CONFIG_DIR / "rejection_1d.yaml"),
            "--param", "density=0.125", "--output", str(path),
        ]
        assert main(argv) == 0
        assert len(path.read_text().splitlines()) == 32

    def test_config_override(self, tmp_path):
        """Test that inline options override config values."""
        path = tmp_path / "out.txt"
        argv = [
            "generate", "--config", str(CONFIG_DIR / "gap_2d.yaml"),
            "--sizes", "8", "8", "--output", str(path), "--format", "indices",
        ]
        assert main(argv) == 0
        values = [int(v) for v in path.read_text().split()]
        assert values == sorted(values)
        assert all(0 <= v < 64 for v in values)

    def test_dry_run(self, capsys):
        """Test that dry-run validates without generating."""
        argv = ["generate", "--config", str(CONFIG_DIR / "jitter_3d.yaml"), "--dry-run"]
        assert main(argv) == 0
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "dry-run" in captured.err

    def test_missing_config(self, tmp_path, capsys):
        """Test that a missing config file is an error."""
        assert main(["generate", "--config", str(tmp_path / "nope.yaml")]) == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_unresolved_param(self, capsys, monkeypatch):
        """Test that a config placeholder without a value is an error."""
        monkeypatch.delenv("density", raising=False)
        argv = ["generate", "--config", str(CONFIG_DIR / "rejection_1d.yaml")]
        assert main(argv) == 1
        assert "Missing parameter: density" in capsys.readouterr().err

    def test_bad_param(self, capsys):
        """Test that --param must be KEY=VALUE."""
        assert main(["generate"] + INLINE + ["--param", "density"]) == 1
        assert "KEY=VALUE" in capsys.readouterr().err

    def test_param_without_config(self, capsys):
        """Test that --param is rejected for inline generation."""
        assert main(["generate"] + INLINE + ["--param", "density=0.25"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "--param" in captured.err
        assert "--config" in captured.err

    def test_generation_failure(self, capsys):
        """Test that sampler failures are reported with exit code 1."""
        argv = ["generate", "--method", "rejection", "--sizes", "8",
                "--density", "0.5", "--equation", "0"]
        assert main(argv) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "zero everywhere" in captured.err


class TestValidateCommand:
    """Test schedule file validation."""

    def test_valid(self, tmp_path, capsys):
        """Test a valid schedule with count and conformance checks."""
        path = tmp_path / "schedule.txt"
        path.write_text("0\n2\n4\n6\n")

        argv = ["validate", "--schedule", str(path), "--sizes", "8",
                "--density", "0.5", "--equation", "1"]
        assert main(argv) == 0
        out = capsys.readouterr().out
        assert "VALIDATING SCHEDULE: schedule.txt" in out
        assert "✓ SCHEDULE VALID" in out

    def test_invalid(self, tmp_path, capsys):
        """Test that duplicates fail validation."""
        path = tmp_path / "schedule.txt"
        path.write_text("1 1\n1 1\n")

        assert main(["validate", "--schedule", str(path), "--sizes", "4", "4"]) == 1
        assert "✗ SCHEDULE INVALID" in capsys.readouterr().out

    def test_count_mismatch(self, tmp_path, capsys):
        """Test the count check with and without tolerance."""
        path = tmp_path / "schedule.txt"
        path.write_text("0\n3\n5\n")
        base = ["validate", "--schedule", str(path), "--sizes", "8", "--density", "0.5"]

        assert main(base) == 1
        assert main(base + ["--tolerance", "1"]) == 0

    def test_missing_file(self, tmp_path, capsys):
        """Test that a missing schedule file is an error."""
        argv = ["validate", "--schedule", str(tmp_path / "nope.txt"), "--sizes", "8"]
        assert main(argv) == 1
        assert "Schedule not found" in capsys.readouterr().err

    def test_malformed_file(self, tmp_path, capsys):
        """Test that a malformed schedule is reported."""
        path = tmp_path / "schedule.txt"
        path.write_text("0 0 0\n")

        assert main(["validate", "--schedule", str(path), "--sizes", "4", "4"]) == 1
        assert "Validation failed" in capsys.readouterr().err
