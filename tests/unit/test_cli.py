"""
Unit tests for the command line interface.

Run with: pytest tests/unit/test_cli.py -v
"""

import json

import pytest
from click.testing import CliRunner

from main import cli


class TestCli:
    """Test suite for the click commands"""

    def test_version(self):
        """Test version lists the analyzers"""
        result = CliRunner().invoke(cli, ["version"])

        assert result.exit_code == 0
        assert "LUMEN CLEW v1.0.0" in result.output
        assert "npm audit" in result.output

    def test_scan_rejects_invalid_url(self, tmp_path, monkeypatch):
        """Test an invalid URL exits non-zero and still writes the result"""
        monkeypatch.delenv("LUMENCLEW_CONFIG", raising=False)
        output = tmp_path / "out" / "report.json"

        result = CliRunner().invoke(
            cli,
            ["scan", "--repo", "https://example.com/octo/app", "--output", str(output)],
        )

        assert result.exit_code == 1
        assert "INVALID_URL" in result.output
        data = json.loads(output.read_text())
        assert data["status"] == "error"
        assert data["error"]["code"] == "INVALID_URL"

    def test_scan_rejects_unknown_mode(self):
        """Test click validates the scan mode"""
        result = CliRunner().invoke(cli, ["scan", "--repo", "https://github.com/a/b", "--mode", "turbo"])

        assert result.exit_code == 2

    def test_bad_config_file(self, tmp_path):
        """Test a broken config file exits with a configuration error"""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("translation:\n  batch_size: 0\n")

        result = CliRunner().invoke(
            cli,
            ["--config", str(config_path), "scan", "--repo", "https://github.com/a/b"],
        )

        assert result.exit_code == 2
        assert "Configuration error" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
