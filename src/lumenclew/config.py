"""
Configuration - Scan modes, translation settings and repository limits.

Defaults reproduce the production constants. A YAML file can override any
field, and a handful of environment variables override the file:

    ANTHROPIC_API_KEY            translation service credential
    LUMENCLEW_MAX_SCANS_PER_DAY  daily quota per client
    LUMENCLEW_CONFIG             path to a YAML config file

Example YAML:

    max_scans_per_day: 20
    fast_scan:
      max_files: 150
    translation:
      batch_size: 5
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


SCAN_MODES = ("fast", "full")

DEFAULT_IGNORED_DIRECTORIES = [
    "node_modules/",
    "dist/",
    "build/",
    ".next/",
    "coverage/",
    ".git/",
    ".venv/",
    "__pycache__/",
    "vendor/",
    "target/",
]


class ScanModeConfig(BaseModel):
    """File ceilings and per-stage timeouts (seconds) for one scan mode"""
    max_files: int = 300
    eslint_timeout: float = 20.0
    npm_audit_timeout: float = 15.0
    secrets_timeout: float = 10.0
    a11y_timeout: float = 20.0
    translation_timeout: float = 45.0


class TranslationConfig(BaseModel):
    """Settings for the remote translation service"""
    api_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"
    api_key: Optional[str] = Field(default=None, repr=False)
    model: str = "claude-3-5-haiku-20241022"
    max_tokens: int = 4000
    temperature: float = 0.7
    # Eight translations stay well under max_tokens of output
    batch_size: int = Field(default=8, ge=1)
    max_text_length: int = 500
    max_common_approaches: int = 5


class AppConfig(BaseModel):
    """Top-level configuration"""
    fast_scan: ScanModeConfig = Field(default_factory=ScanModeConfig)
    full_scan: ScanModeConfig = Field(
        default_factory=lambda: ScanModeConfig(
            max_files=999999,
            eslint_timeout=45.0,
            npm_audit_timeout=30.0,
            secrets_timeout=30.0,
            a11y_timeout=45.0,
            translation_timeout=45.0,
        )
    )
    translation: TranslationConfig = Field(default_factory=TranslationConfig)

    # Repository limits
    max_file_size_mb: float = 1.0
    allowed_file_types: List[str] = Field(
        default_factory=lambda: [".js", ".jsx", ".ts", ".tsx"]
    )
    ignored_directories: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_DIRECTORIES)
    )
    github_api_url: str = "https://api.github.com"
    github_raw_url: str = "https://raw.githubusercontent.com"
    download_concurrency: int = 8

    # Rate limiting (resets at midnight UTC)
    max_scans_per_day: int = 10

    # Findings limits (capped by severity before translation)
    max_findings_per_panel: int = 25

    def mode(self, scan_mode: str) -> ScanModeConfig:
        """Return the ceilings for a scan mode ('fast' or 'full')"""
        if scan_mode == "full":
            return self.full_scan
        return self.fast_scan

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


def _env_overrides(environ: Dict[str, str]) -> Dict[str, object]:
    overrides: Dict[str, object] = {}

    max_scans = environ.get("LUMENCLEW_MAX_SCANS_PER_DAY")
    if max_scans:
        try:
            overrides["max_scans_per_day"] = int(max_scans)
        except ValueError:
            raise ConfigError(
                f"LUMENCLEW_MAX_SCANS_PER_DAY must be an integer, got {max_scans!r}"
            )

    return overrides


def load_config(
    path: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None,
) -> AppConfig:
    """
    Load configuration from an optional YAML file plus environment.

    Args:
        path: YAML file path (falls back to $LUMENCLEW_CONFIG)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated AppConfig

    Raises:
        ConfigError: If the file is unreadable or fails validation
    """
    environ = dict(os.environ) if environ is None else environ
    path = path or environ.get("LUMENCLEW_CONFIG")

    data: Dict[str, object] = {}
    if path:
        config_path = Path(path)
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        data.update(loaded)

    data.update(_env_overrides(environ))

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")

    api_key = environ.get("ANTHROPIC_API_KEY")
    if api_key:
        config.translation.api_key = api_key

    return config
