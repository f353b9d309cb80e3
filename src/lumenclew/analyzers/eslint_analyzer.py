"""
ESLint Analyzer - Code quality findings from ESLint's JSON formatter.

Runs `npx eslint <path> --format=json` against the fetched repository.
ESLint exits with status 1 when it reports problems, so the exit code is
not treated as a failure as long as stdout holds valid JSON.
"""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List

from .base_analyzer import (
    AnalyzerResult,
    BaseAnalyzer,
    Finding,
    Panel,
    Severity,
    Tool,
)


class ESLintAnalyzer(BaseAnalyzer):
    """
    Code quality analyzer backed by ESLint.

    Example:
        >>> analyzer = ESLintAnalyzer()
        >>> result = await analyzer.run("/tmp/lumen-x", timeout=20)
    """

    panel = Panel.QUALITY
    tool = Tool.ESLINT

    def __init__(self, npx_path: str = "npx", enabled: bool = True):
        """
        Initialize ESLint analyzer.

        Args:
            npx_path: Path to the npx binary (default: "npx" in PATH)
            enabled: Whether analyzer is enabled
        """
        super().__init__(analyzer_name="ESLint", enabled=enabled)
        self.npx_path = npx_path

    def is_available(self) -> bool:
        if shutil.which(self.npx_path) is None:
            self.logger.warning(
                "npx_not_found",
                path=self.npx_path,
                message="Install Node.js to enable ESLint analysis"
            )
            return False
        return True

    def _build_command(self, path: Path) -> List[str]:
        return [
            self.npx_path,
            "--yes",
            "eslint",
            str(path),
            "--format=json",
            "--no-ignore",
        ]

    async def analyze(self, path: Path, timeout: float) -> AnalyzerResult:
        returncode, stdout, stderr = await self._run_command(
            self._build_command(path), cwd=path, timeout=timeout
        )

        if not stdout.strip():
            self.logger.error(
                "eslint_no_output",
                returncode=returncode,
                stderr=stderr[:200]
            )
            return AnalyzerResult.failed(
                f"ESLint produced no output (exit {returncode})"
            )

        try:
            results = json.loads(stdout)
        except json.JSONDecodeError:
            self.logger.error("eslint_json_parse_error", output=stdout[:200])
            return AnalyzerResult.failed("Failed to parse ESLint JSON output")

        findings = self.parse_results(results, path)
        return AnalyzerResult(
            success=True,
            findings=findings,
            stats={"issue_count": len(findings)},
        )

    def parse_results(
        self,
        results: List[Dict[str, Any]],
        root: Path,
    ) -> List[Finding]:
        """
        Convert ESLint's per-file results into findings.

        Args:
            results: Parsed ESLint JSON (list of file results)
            root: Repository root used to relativize file paths

        Returns:
            List of Finding objects
        """
        findings = []

        for file_result in results:
            relative = self.relative_path(Path(file_result.get("filePath", "")), root)

            for message in file_result.get("messages", []):
                rule_id = message.get("ruleId") or "unknown"
                findings.append(Finding.create(
                    panel=self.panel,
                    tool=self.tool,
                    rule_id=rule_id,
                    severity=self._map_severity(message.get("severity")),
                    message=message.get("message", ""),
                    file=relative,
                    line=message.get("line"),
                    column=message.get("column"),
                    metadata={"ruleId": rule_id},
                ))

        return findings

    @staticmethod
    def _map_severity(eslint_severity) -> Severity:
        # ESLint: 2 = error, 1 = warning
        return Severity.HIGH if eslint_severity == 2 else Severity.LOW
