"""Tests for configuration loading and merging."""

import pytest

from site_insight.config import AnalysisConfig, ScoringConfig, load_config
from site_insight.exceptions import InvalidConfigError


class TestDefaults:
    def test_defaults(self, isolated_config):
        config = load_config()
        assert config == AnalysisConfig()
        assert config.target_version == "10"
        assert config.verbosity == "normal"
        assert config.scoring == ScoringConfig()

    def test_max_file_size_bytes(self):
        assert AnalysisConfig(max_file_size_mb=1.0).max_file_size_bytes == 1024 * 1024

    def test_effective_workers(self):
        assert AnalysisConfig(workers=3).effective_workers == 3
        assert 1 <= AnalysisConfig().effective_workers <= 8

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"workers": 0},
            {"unit_timeout_seconds": 0},
            {"domain_timeout_seconds": -1},
            {"cache_ttl_hours": -1},
            {"max_file_size_mb": 0},
            {"max_files_per_unit": 0},
            {"target_version": "  "},
            {"verbosity": "loud"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            AnalysisConfig(**kwargs)

    def test_invalid_scoring(self):
        with pytest.raises(ValueError):
            ScoringConfig(style_penalty=-1)
        with pytest.raises(ValueError):
            ScoringConfig(test_coverage_target=120)


class TestFiles:
    def test_project_file(self, isolated_config):
        (isolated_config / "site-insight.toml").write_text(
            'target_version = "11"\nworkers = 2\n\n[scoring]\nbase_hours = 3.5\n',
            encoding="utf-8",
        )
        config = load_config()
        assert config.target_version == "11"
        assert config.workers == 2
        assert config.scoring.base_hours == 3.5
        assert config.scoring.style_penalty == 0.5

    def test_global_then_project(self, isolated_config):
        (isolated_config / "home" / ".site-insight.toml").write_text(
            "workers = 6\ncache_enabled = false\n", encoding="utf-8"
        )
        (isolated_config / "site-insight.toml").write_text("workers = 2\n", encoding="utf-8")
        config = load_config()
        assert config.workers == 2
        assert config.cache_enabled is False

    def test_explicit_file(self, isolated_config):
        path = isolated_config / "custom.toml"
        path.write_text("unit_timeout_seconds = 5.0\n", encoding="utf-8")
        assert load_config(config_file=path).unit_timeout_seconds == 5.0

    def test_missing_explicit_file(self, isolated_config):
        with pytest.raises(InvalidConfigError):
            load_config(config_file=isolated_config / "missing.toml")

    @pytest.mark.parametrize(
        "body",
        [
            "workers = [unclosed",
            "workers = 0\n",
            "unknown_setting = 1\n",
            "scoring = 3\n",
            "[scoring]\nno_such_penalty = 1\n",
        ],
    )
    def test_invalid_files(self, isolated_config, body):
        path = isolated_config / "bad.toml"
        path.write_text(body, encoding="utf-8")
        with pytest.raises(InvalidConfigError):
            load_config(config_file=path)


class TestEnvironment:
    def test_env_vars(self, isolated_config, monkeypatch):
        monkeypatch.setenv("SITE_INSIGHT_WORKERS", "3")
        monkeypatch.setenv("SITE_INSIGHT_CACHE_ENABLED", "off")
        monkeypatch.setenv("SITE_INSIGHT_TARGET_VERSION", "11")
        config = load_config()
        assert config.workers == 3
        assert config.cache_enabled is False
        assert config.target_version == "11"

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        (isolated_config / "site-insight.toml").write_text("workers = 2\n", encoding="utf-8")
        monkeypatch.setenv("SITE_INSIGHT_WORKERS", "5")
        assert load_config().workers == 5

    def test_bad_env_value(self, isolated_config, monkeypatch):
        monkeypatch.setenv("SITE_INSIGHT_CACHE_ENABLED", "maybe")
        with pytest.raises(InvalidConfigError):
            load_config()


class TestOverrides:
    def test_cli_overrides_win(self, isolated_config, monkeypatch):
        monkeypatch.setenv("SITE_INSIGHT_WORKERS", "5")
        assert load_config(workers=7).workers == 7

    def test_none_overrides_ignored(self, isolated_config):
        assert load_config(workers=None, target_version=None).target_version == "10"

    def test_verbose_and_quiet(self, isolated_config):
        assert load_config(verbose=True, quiet=False).verbosity == "verbose"
        assert load_config(verbose=False, quiet=True).verbosity == "quiet"
        assert load_config(verbose=False, quiet=False).verbosity == "normal"

    def test_scoring_override(self, isolated_config):
        scoring = ScoringConfig(base_hours=1.0)
        assert load_config(scoring=scoring).scoring is scoring
