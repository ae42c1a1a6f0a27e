"""Tests for the curvemath CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
import pytest
from typer.testing import CliRunner

from curvemath.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command away from any curvemath.toml in the checkout."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# curvemath eval
# ---------------------------------------------------------------------------


class TestEval:
    def test_single_point(self) -> None:
        result = runner.invoke(app, ["eval", "x^2", "3"])
        assert result.exit_code == 0
        assert result.output.strip() == "3.0\t9.0"

    def test_several_points(self) -> None:
        result = runner.invoke(app, ["eval", "2x", "1", "2.5"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["1.0\t2.0", "2.5\t5.0"]

    def test_negative_points_after_separator(self) -> None:
        result = runner.invoke(app, ["eval", "x^2", "--", "-2"])
        assert result.exit_code == 0
        assert "-2.0\t4.0" in result.output

    def test_non_finite_results(self) -> None:
        result = runner.invoke(app, ["eval", "1/x", "0"])
        assert result.exit_code == 0
        assert "0.0\tinf" in result.output

    def test_named_policy(self) -> None:
        args = ["eval", "--policy", "absolute-sqrt", "sqrt(x)", "--", "-4"]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "-4.0\t2.0" in result.output

    def test_strict_default(self) -> None:
        result = runner.invoke(app, ["eval", "sqrt(x)", "--", "-4"])
        assert "-4.0\tnan" in result.output

    def test_unknown_policy(self) -> None:
        result = runner.invoke(app, ["eval", "--policy", "lenient", "x", "1"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# curvemath sample
# ---------------------------------------------------------------------------


class TestSample:
    def test_json(self) -> None:
        args = ["sample", "x", "--min", "0", "--max", "2", "--resolution", "2", "--json"]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["expression"] == "x"
        assert payload["samples"] == [[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]]

    def test_json_undefined_samples_are_null(self) -> None:
        args = ["sample", "ln(x)", "--min", "-1", "--max", "1", "--resolution", "2", "--json"]
        result = runner.invoke(app, args)
        payload = json.loads(result.output)
        assert [y for _, y in payload["samples"]] == [None, None, 0.0]

    def test_table(self) -> None:
        result = runner.invoke(app, ["sample", "x", "--resolution", "4"])
        assert result.exit_code == 0
        assert "f(x)" in result.output

    def test_bad_resolution(self) -> None:
        result = runner.invoke(app, ["sample", "x", "--resolution", "0"])
        assert result.exit_code == 1
        assert "Resolution" in result.output


# ---------------------------------------------------------------------------
# curvemath segments
# ---------------------------------------------------------------------------


class TestSegments:
    def test_json_splits_at_pole(self) -> None:
        result = runner.invoke(
            app, ["segments", "1/x", "--min", "-2", "--max", "2", "-r", "4", "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["expression"] == "1/x"
        left, right = payload["segments"]
        assert all(x < 0 for x, _ in left)
        assert all(x > 0 for x, _ in right)

    def test_continuous_curve_is_one_segment(self) -> None:
        result = runner.invoke(
            app, ["segments", "x", "--min", "-2", "--max", "2", "-r", "4", "--json"]
        )
        segments = json.loads(result.output)["segments"]
        assert len(segments) == 1
        assert segments[0][0] == [-2.0, -2.0]
        assert segments[0][-1] == [2.0, 2.0]

    def test_lengths_from_config(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "curvemath.toml").write_text(
            "[sampling]\nmax_segment_length = 0.1\nmax_draw_segment_length = 0.5\n"
        )
        result = runner.invoke(
            app, ["segments", "x", "--min", "-2", "--max", "2", "-r", "4", "--json"]
        )
        segments = json.loads(result.output)["segments"]
        assert len(segments) == 7
        assert all(len(segment) == 1 for segment in segments)

    def test_options_override_config(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "curvemath.toml").write_text("[sampling]\nmax_draw_segment_length = 0.5\n")
        result = runner.invoke(
            app,
            [
                "segments", "x", "--min", "-2", "--max", "2", "-r", "4",
                "--max-draw-segment-length", "10", "--json",
            ],
        )
        assert len(json.loads(result.output)["segments"]) == 1

    def test_table(self) -> None:
        result = runner.invoke(app, ["segments", "1/x", "--min", "-2", "--max", "2", "-r", "4"])
        assert result.exit_code == 0
        assert "points" in result.output

    def test_bad_length(self) -> None:
        result = runner.invoke(app, ["segments", "x", "--max-segment-length", "0"])
        assert result.exit_code == 1
        assert "positive" in result.output


# ---------------------------------------------------------------------------
# curvemath lut
# ---------------------------------------------------------------------------


class TestLut:
    def test_writes_npy(self, isolated_cwd: Path) -> None:
        output = isolated_cwd / "lut.npy"
        args = ["lut", "x", str(output), "--size", "5", "--range", "4"]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "Wrote 5 texels" in " ".join(result.output.split())
        lut = np.load(output)
        assert lut.dtype == np.float32
        assert lut.tolist() == [-2.0, -1.0, 0.0, 1.0, 2.0]

    def test_bad_size(self, isolated_cwd: Path) -> None:
        result = runner.invoke(app, ["lut", "x", str(isolated_cwd / "lut.npy"), "--size", "1"])
        assert result.exit_code == 1
        assert not (isolated_cwd / "lut.npy").exists()


# ---------------------------------------------------------------------------
# curvemath check
# ---------------------------------------------------------------------------


class TestCheck:
    def test_clean(self) -> None:
        result = runner.invoke(app, ["check", "3sin(x) + x^2"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "3sin(x)+x^2" in result.output

    def test_diagnostics(self) -> None:
        result = runner.invoke(app, ["check", "sin("])
        assert result.exit_code == 1
        assert "unexpected_end" in result.output
        assert "unclosed_paren" in result.output

    def test_invalid_expression(self) -> None:
        result = runner.invoke(app, ["check", "1.2.3"])
        assert result.exit_code == 1
        assert "malformed_number" in result.output
        assert "invalid" in result.output

    def test_points_at_first_diagnostic(self) -> None:
        result = runner.invoke(app, ["check", "2*)"])
        assert result.exit_code == 1
        lines = result.output.splitlines()
        assert lines[0] == "2*)"
        assert lines[1] == "  ^"


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "curvemath version" in result.output

    def test_config_file(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "custom.toml"
        config.write_text('[evaluator]\nsqrt_domain = "absolute"\n')
        result = runner.invoke(app, ["--config", str(config), "eval", "sqrt(x)", "--", "-9"])
        assert result.exit_code == 0
        assert "-9.0\t3.0" in result.output

    def test_config_in_cwd(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "curvemath.toml").write_text("[sampling]\nresolution = 2\n")
        result = runner.invoke(app, ["sample", "x", "--min", "0", "--max", "1", "--json"])
        assert len(json.loads(result.output)["samples"]) == 3

    def test_bad_config(self, isolated_cwd: Path) -> None:
        config = isolated_cwd / "broken.toml"
        config.write_text("[evaluator\n")
        result = runner.invoke(app, ["--config", str(config), "check", "x"])
        assert result.exit_code == 1
        assert "Invalid TOML" in " ".join(result.output.split())

    def test_verbose_enables_debug_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, Any]] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        result = runner.invoke(app, ["--verbose", "check", "x"])
        assert result.exit_code == 0
        assert calls[0]["level"] == logging.DEBUG
