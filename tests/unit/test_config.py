"""
Unit tests for configuration loading.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest

from lumenclew.config import AppConfig, ScanModeConfig, load_config
from lumenclew.errors import ConfigError


class TestAppConfig:
    """Test suite for configuration defaults"""

    def test_fast_mode_defaults(self):
        """Test fast mode ceilings and timeouts"""
        mode = AppConfig().mode("fast")

        assert mode.max_files == 300
        assert mode.eslint_timeout == 20
        assert mode.npm_audit_timeout == 15
        assert mode.secrets_timeout == 10
        assert mode.a11y_timeout == 20
        assert mode.translation_timeout == 45

    def test_full_mode_defaults(self):
        """Test full mode is effectively unbounded with longer timeouts"""
        mode = AppConfig().mode("full")

        assert mode.max_files >= 999999
        assert mode.eslint_timeout == 45
        assert mode.npm_audit_timeout == 30

    def test_mode_fields_are_the_stage_budgets(self):
        """Test a scan mode only carries the file ceiling and per-stage timeouts"""
        assert set(ScanModeConfig.model_fields) == {
            "max_files",
            "eslint_timeout",
            "npm_audit_timeout",
            "secrets_timeout",
            "a11y_timeout",
            "translation_timeout",
        }

    def test_limits(self):
        """Test quota, cap and translation defaults"""
        config = AppConfig()

        assert config.max_scans_per_day == 10
        assert config.max_findings_per_panel == 25
        assert config.max_file_size_bytes == 1024 * 1024
        assert config.translation.batch_size == 8
        assert config.translation.model == "claude-3-5-haiku-20241022"


class TestLoadConfig:
    """Test suite for load_config"""

    def test_defaults_without_file(self):
        """Test an empty environment gives defaults"""
        config = load_config(environ={})

        assert config.max_scans_per_day == 10
        assert config.translation.api_key is None

    def test_yaml_overrides(self, tmp_path):
        """Test YAML values override defaults"""
        path = tmp_path / "lumenclew.yaml"
        path.write_text(
            "max_scans_per_day: 20\n"
            "fast_scan:\n"
            "  max_files: 150\n"
            "translation:\n"
            "  batch_size: 5\n"
        )

        config = load_config(str(path), environ={})

        assert config.max_scans_per_day == 20
        assert config.fast_scan.max_files == 150
        assert config.fast_scan.eslint_timeout == 20
        assert config.translation.batch_size == 5

    def test_environment_overrides(self, tmp_path):
        """Test environment variables win over the file"""
        path = tmp_path / "lumenclew.yaml"
        path.write_text("max_scans_per_day: 20\n")

        config = load_config(
            environ={
                "LUMENCLEW_CONFIG": str(path),
                "LUMENCLEW_MAX_SCANS_PER_DAY": "3",
                "ANTHROPIC_API_KEY": "sk-test",
            },
        )

        assert config.max_scans_per_day == 3
        assert config.translation.api_key == "sk-test"

    def test_api_key_hidden_from_repr(self):
        """Test the credential never shows up in repr"""
        config = load_config(environ={"ANTHROPIC_API_KEY": "sk-secret"})

        assert "sk-secret" not in repr(config)

    def test_invalid_values_raise(self, tmp_path):
        """Test validation errors become ConfigError"""
        path = tmp_path / "bad.yaml"
        path.write_text("translation:\n  batch_size: 0\n")

        with pytest.raises(ConfigError):
            load_config(str(path), environ={})

    def test_non_mapping_file_raises(self, tmp_path):
        """Test a YAML list is rejected"""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            load_config(str(path), environ={})

    def test_missing_file_raises(self, tmp_path):
        """Test an unreadable file is a ConfigError"""
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "missing.yaml"), environ={})

    def test_bad_env_integer_raises(self):
        """Test a non-integer quota override is rejected"""
        with pytest.raises(ConfigError):
            load_config(environ={"LUMENCLEW_MAX_SCANS_PER_DAY": "lots"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
