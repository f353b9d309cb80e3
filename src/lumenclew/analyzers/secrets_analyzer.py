"""
Secrets Analyzer - Regex scan for credentials committed to source.

Best-effort pattern matching: false positives (test fixtures, example
values) are expected and severity is lowered for files that look like
examples or tests.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ..config import DEFAULT_IGNORED_DIRECTORIES
from .base_analyzer import (
    AnalyzerResult,
    BaseAnalyzer,
    Finding,
    Panel,
    Severity,
    Tool,
)


@dataclass(frozen=True)
class SecretPattern:
    """A named credential pattern"""
    id: str
    name: str
    regex: re.Pattern
    base_severity: Severity


SECRET_PATTERNS = [
    SecretPattern(
        "private_key", "Private Key",
        re.compile(r"-----BEGIN (RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY-----"),
        Severity.CRITICAL,
    ),
    SecretPattern(
        "aws_key", "AWS Access Key",
        re.compile(r"AKIA[0-9A-Z]{16}"),
        Severity.CRITICAL,
    ),
    SecretPattern(
        "db_connection_mongo", "MongoDB Connection String",
        re.compile(r"mongodb(\+srv)?://[^:]+:[^@]+@"),
        Severity.HIGH,
    ),
    SecretPattern(
        "db_connection_postgres", "PostgreSQL Connection String",
        re.compile(r"postgres(ql)?://[^:]+:[^@]+@"),
        Severity.HIGH,
    ),
    SecretPattern(
        "db_connection_mysql", "MySQL Connection String",
        re.compile(r"mysql://[^:]+:[^@]+@"),
        Severity.HIGH,
    ),
    SecretPattern(
        "api_key_generic", "Generic API Key",
        re.compile(r"""['"]?api[_-]?key['"]?\s*[:=]\s*['"][a-zA-Z0-9_\-]{20,}['"]""", re.IGNORECASE),
        Severity.HIGH,
    ),
    SecretPattern(
        "bearer_token", "Bearer Token",
        re.compile(r"""['"]?Bearer\s+[a-zA-Z0-9_\-\.]{20,}['"]?"""),
        Severity.HIGH,
    ),
    SecretPattern(
        "token_generic", "Generic Token",
        re.compile(r"""['"]?token['"]?\s*[:=]\s*['"][a-zA-Z0-9_\-]{20,}['"]""", re.IGNORECASE),
        Severity.MEDIUM,
    ),
]


class SecretsAnalyzer(BaseAnalyzer):
    """
    Regex-based secrets scanner.

    Example:
        >>> analyzer = SecretsAnalyzer()
        >>> result = await analyzer.run("/tmp/lumen-x", timeout=10)
        >>> [f.metadata["patternId"] for f in result.findings]
        ['aws_key']
    """

    panel = Panel.SECRET
    tool = Tool.SECRETS_REGEX

    def __init__(
        self,
        allowed_extensions: Optional[Iterable[str]] = None,
        ignored_directories: Optional[Iterable[str]] = None,
        max_file_size_bytes: int = 1024 * 1024,
        enabled: bool = True,
    ):
        super().__init__(analyzer_name="Secrets Scanner", enabled=enabled)
        self.allowed_extensions = set(
            allowed_extensions or [".js", ".jsx", ".ts", ".tsx"]
        )
        self.ignored_directories = {
            d.rstrip("/") for d in (ignored_directories or DEFAULT_IGNORED_DIRECTORIES)
        }
        self.max_file_size_bytes = max_file_size_bytes

    async def analyze(self, path: Path, timeout: float) -> AnalyzerResult:
        if not path.is_dir():
            return AnalyzerResult.failed("Scan directory does not exist")

        # Pattern matching is CPU bound; keep it off the event loop
        return await asyncio.to_thread(self._scan_tree, path, timeout)

    def _scan_tree(self, root: Path, timeout: float) -> AnalyzerResult:
        deadline = time.monotonic() + timeout
        findings: List[Finding] = []
        files_scanned = 0

        for file_path in self._iter_files(root):
            if time.monotonic() > deadline:
                # Partial results are still useful, but the panel is degraded
                self.logger.warning("secrets_scan_timeout", files_scanned=files_scanned)
                return AnalyzerResult(
                    success=False,
                    findings=findings,
                    error=f"Secrets scan timeout after {timeout:g}s",
                    stats={"files_scanned": files_scanned},
                )

            files_scanned += 1
            findings.extend(self.scan_file(file_path, root))

        return AnalyzerResult(
            success=True,
            findings=findings,
            stats={"files_scanned": files_scanned},
        )

    def _iter_files(self, root: Path):
        for file_path in sorted(root.rglob("*")):
            if not file_path.is_file():
                continue
            relative_parts = file_path.relative_to(root).parts
            if any(part in self.ignored_directories for part in relative_parts[:-1]):
                continue
            if self._should_scan(file_path):
                yield file_path

    def _should_scan(self, file_path: Path) -> bool:
        if file_path.name.startswith(".env"):
            return True
        suffix = file_path.suffix.lower()
        return not suffix or suffix in self.allowed_extensions

    def scan_file(self, file_path: Path, root: Path) -> List[Finding]:
        """
        Match every secret pattern against every line of one file.

        Args:
            file_path: Absolute file path
            root: Repository root

        Returns:
            Findings for this file (empty if unreadable or too large)
        """
        relative = self.relative_path(file_path, root)

        try:
            if file_path.stat().st_size > self.max_file_size_bytes:
                self.logger.debug("skipping_large_file", file=relative)
                return []
            content = file_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            self.logger.debug("file_read_error", file=relative, error=str(e))
            return []

        findings = []
        for line_number, line in enumerate(content.splitlines(), start=1):
            for pattern in SECRET_PATTERNS:
                if not pattern.regex.search(line):
                    continue

                severity = self.contextual_severity(pattern, relative)
                findings.append(Finding.create(
                    panel=self.panel,
                    tool=self.tool,
                    rule_id=pattern.id,
                    severity=severity,
                    message=f"Possible {pattern.name} detected",
                    file=relative,
                    line=line_number,
                    column=0,
                    metadata={
                        "patternId": pattern.id,
                        "patternName": pattern.name,
                        "baseSeverity": pattern.base_severity.value,
                        "contextSeverity": severity.value,
                    },
                ))

        return findings

    @staticmethod
    def contextual_severity(pattern: SecretPattern, relative_path: str) -> Severity:
        """Adjust a pattern's severity for the kind of file it was found in"""
        file_name = relative_path.rsplit("/", 1)[-1].lower()

        if any(marker in file_name for marker in (".example", ".sample", ".template")):
            return Severity.LOW
        if file_name == ".env" or file_name.startswith(".env."):
            return Severity.CRITICAL
        if any(marker in relative_path for marker in ("test", "spec", "__tests__")):
            return Severity.MEDIUM
        return pattern.base_severity
