"""Tests for curvemath.toml loading."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from curvemath.config import CONFIG_FILENAME, CurvemathConfig, load_config
from curvemath.core.errors import ConfigError
from curvemath.core.expression_lang import SqrtDomain, compile


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.toml")
        assert isinstance(config, CurvemathConfig)
        assert config.evaluator.sqrt_domain == SqrtDomain.STRICT
        assert config.sampling.resolution == 100
        assert config.lut.size == 8192

    def test_reads_sections(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text(
            "[evaluator]\n"
            'sqrt_domain = "absolute"\n'
            "max_depth = 20\n"
            "\n"
            "[sampling]\n"
            "x_min = -5.0\n"
            "resolution = 50\n"
            "\n"
            "[lut]\n"
            "size = 1024\n"
            "domain = 10.0\n"
            "fill = -1.0\n"
        )
        config = load_config(path)
        assert config.evaluator.sqrt_domain == SqrtDomain.ABSOLUTE
        assert config.evaluator.max_depth == 20
        assert config.sampling.x_min == -5.0
        assert config.sampling.x_max == 10.0
        assert config.sampling.resolution == 50
        assert config.lut.size == 1024
        assert config.lut.fill == -1.0

    def test_default_path_is_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[sampling]\nresolution = 7\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().sampling.resolution == 7

    def test_invalid_value_forms(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text('[evaluator]\ninvalid_value = "0"\n')
        assert load_config(path).evaluator.invalid_value == 0.0
        path.write_text("[evaluator]\ninvalid_value = nan\n")
        assert math.isnan(load_config(path).evaluator.invalid_value)

    def test_policy_from_config(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text('[evaluator]\nsqrt_domain = "absolute"\ninvalid_value = 0.0\n')
        policy = load_config(path).policy()
        assert policy.name == "configured"
        assert compile("sqrt(x)").evaluate(-9.0, policy) == 3.0
        assert compile("1.2.3").evaluate(1.0, policy) == 0.0

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[evaluator\n")
        with pytest.raises(ConfigError, match="Invalid TOML") as exc_info:
            load_config(path)
        assert exc_info.value.path == path
        assert str(path) in str(exc_info.value)

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[evaluator]\nprecision = 3\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_out_of_range_value(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[sampling]\nresolution = 0\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_unknown_sqrt_domain(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text('[evaluator]\nsqrt_domain = "complex"\n')
        with pytest.raises(ConfigError):
            load_config(path)

    def test_segmentation_settings(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text(
            "[sampling]\n"
            "max_segment_length = 0.5\n"
            "max_draw_segment_length = 4.0\n"
            "max_subdivisions = 8\n"
        )
        sampling = load_config(path).sampling
        assert sampling.max_segment_length == 0.5
        assert sampling.max_draw_segment_length == 4.0
        assert sampling.max_subdivisions == 8

    def test_zero_subdivisions_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[sampling]\nmax_subdivisions = 0\n")
        with pytest.raises(ConfigError):
            load_config(path)
