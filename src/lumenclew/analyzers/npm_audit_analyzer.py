"""
npm audit Analyzer - Dependency vulnerabilities from `npm audit --json`.

Repositories without a package.json have no npm dependencies to audit; the
analyzer reports success with no findings in that case.
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


_NPM_SEVERITY = {
    "critical": Severity.CRITICAL,
    "high": Severity.HIGH,
    "moderate": Severity.MEDIUM,
    "low": Severity.LOW,
    "info": Severity.LOW,
}


class NpmAuditAnalyzer(BaseAnalyzer):
    """Dependency vulnerability analyzer backed by npm audit"""

    panel = Panel.DEPENDENCY
    tool = Tool.NPM_AUDIT

    def __init__(self, npm_path: str = "npm", enabled: bool = True):
        super().__init__(analyzer_name="npm audit", enabled=enabled)
        self.npm_path = npm_path

    def is_available(self) -> bool:
        if shutil.which(self.npm_path) is None:
            self.logger.warning("npm_not_found", path=self.npm_path)
            return False
        return True

    async def analyze(self, path: Path, timeout: float) -> AnalyzerResult:
        if not (path / "package.json").exists():
            self.logger.info("npm_audit_no_package_json")
            return AnalyzerResult(success=True, stats={"vulnerability_count": 0})

        # Exit code is non-zero whenever vulnerabilities exist
        returncode, stdout, stderr = await self._run_command(
            [self.npm_path, "audit", "--json"], cwd=path, timeout=timeout
        )

        try:
            audit = json.loads(stdout)
        except json.JSONDecodeError:
            self.logger.error(
                "npm_audit_json_parse_error",
                returncode=returncode,
                stderr=stderr[:200]
            )
            return AnalyzerResult.failed("Failed to parse npm audit output")

        if "error" in audit and "vulnerabilities" not in audit:
            error = audit["error"]
            summary = error.get("summary") if isinstance(error, dict) else str(error)
            return AnalyzerResult.failed(f"npm audit failed: {summary}")

        findings = self.parse_vulnerabilities(audit.get("vulnerabilities") or {})
        return AnalyzerResult(
            success=True,
            findings=findings,
            stats={"vulnerability_count": len(findings)},
        )

    def parse_vulnerabilities(self, vulnerabilities: Dict[str, Any]) -> List[Finding]:
        """
        Convert the `vulnerabilities` map of npm audit v2 output.

        Args:
            vulnerabilities: Package name -> advisory summary

        Returns:
            One Finding per vulnerable package
        """
        findings = []

        for package_name, vuln in vulnerabilities.items():
            via = self._describe_via(vuln.get("via"))
            npm_severity = str(vuln.get("severity") or "low")

            findings.append(Finding.create(
                panel=self.panel,
                tool=self.tool,
                rule_id=f"{package_name}:{npm_severity}:{via}",
                severity=_NPM_SEVERITY.get(npm_severity.lower(), Severity.LOW),
                message=f"{package_name}: {via}",
                file="package.json",
                line=1,
                column=0,
                metadata={
                    "packageName": package_name,
                    "vulnerability": via,
                    "npmSeverity": npm_severity,
                    "range": vuln.get("range") or "*",
                    "fixAvailable": vuln.get("fixAvailable") or False,
                },
            ))

        return findings

    @staticmethod
    def _describe_via(via) -> str:
        if isinstance(via, list):
            parts = []
            for entry in via:
                if isinstance(entry, str):
                    parts.append(entry)
                elif isinstance(entry, dict):
                    parts.append(entry.get("title") or entry.get("name") or "unknown")
            return ", ".join(parts) or "unknown"
        return str(via or "unknown")
