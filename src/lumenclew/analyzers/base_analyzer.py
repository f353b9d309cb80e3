"""
Base Analyzer - Abstract base class and finding schema for all analyzers.

Every analyzer (ESLint, npm audit, secrets, accessibility) turns its tool's
raw output into Finding records through make_finding_id() so that the same
detection on the same input always yields the same id. That id is the only
join key used when translations come back from the translation service.

Design Pattern: Strategy Pattern
"""

import asyncio
import hashlib
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ..errors import AnalyzerTimeoutError


class Panel(Enum):
    """Report panels, one per analyzer"""
    QUALITY = "code_quality"
    DEPENDENCY = "dependencies"
    SECRET = "secrets"
    ACCESSIBILITY = "accessibility"


class Tool(Enum):
    """Tools that produce findings"""
    ESLINT = "eslint"
    NPM_AUDIT = "npm_audit"
    SECRETS_REGEX = "secrets_regex"
    A11Y_ANALYZER = "a11y_analyzer"


class Severity(Enum):
    """Ordered severity scale used for capping and display"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """0 for critical up to 3 for low (sort key, most severe first)"""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


def make_finding_id(
    panel: Panel,
    tool: Tool,
    rule_id: str,
    file: Optional[str],
    line: Optional[int],
) -> str:
    """
    Build the content-derived fingerprint of a detection.

    Args:
        panel: Panel the finding belongs to
        tool: Tool that produced it
        rule_id: Rule or pattern identifier
        file: Repository-relative file path
        line: 1-based line number

    Returns:
        16 hex characters of SHA-256 over panel:tool:rule:file:line
    """
    key = f"{panel.value}:{tool.value}:{rule_id}:{file or ''}:{line or 0}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class Finding:
    """
    A single normalized detection.

    Created once by an analyzer and read-only afterwards.
    """
    id: str
    panel: Panel
    tool: Tool
    severity: Severity
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def create(
        cls,
        panel: Panel,
        tool: Tool,
        rule_id: str,
        severity: Severity,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "Finding":
        """Normalize a raw detection into a Finding with a deterministic id"""
        return cls(
            id=make_finding_id(panel, tool, rule_id, file, line),
            panel=panel,
            tool=tool,
            severity=severity,
            message=message,
            file=file,
            line=line,
            column=column,
            metadata=metadata or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "panel": self.panel.value,
            "tool": self.tool.value,
            "severity": self.severity.value,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "metadata": self.metadata,
        }


@dataclass
class AnalyzerResult:
    """Outcome of one analyzer run"""
    success: bool
    findings: List[Finding] = field(default_factory=list)
    error: Optional[str] = None
    skipped: bool = False
    stats: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, error: str) -> "AnalyzerResult":
        return cls(success=False, findings=[], error=error)


class BaseAnalyzer(ABC):
    """
    Abstract base class for all analyzers.

    Subclasses implement analyze(); run() wraps it so that no exception
    ever leaves the analyzer boundary.

    Example:
        >>> class SecretsAnalyzer(BaseAnalyzer):
        ...     async def analyze(self, path, timeout):
        ...         return AnalyzerResult(success=True, findings=[...])

        >>> result = await SecretsAnalyzer().run("/tmp/lumen-x", timeout=10)
    """

    panel: Panel
    tool: Tool

    def __init__(self, analyzer_name: str, enabled: bool = True):
        """
        Initialize the base analyzer.

        Args:
            analyzer_name: Human-readable name used in logs and errors
            enabled: Whether this analyzer is enabled
        """
        self.analyzer_name = analyzer_name
        self.enabled = enabled

        self.run_count = 0
        self.finding_count = 0

        self.logger = structlog.get_logger(
            __name__,
            analyzer=self.analyzer_name
        )

    def is_available(self) -> bool:
        """Whether the underlying tool can run on this host"""
        return True

    @abstractmethod
    async def analyze(self, path: Path, timeout: float) -> AnalyzerResult:
        """
        Analyze a checked-out repository.

        Args:
            path: Directory holding the repository files
            timeout: Time budget in seconds

        Returns:
            AnalyzerResult with normalized findings
        """
        pass

    async def run(self, path, timeout: float) -> AnalyzerResult:
        """
        Run the analyzer without ever raising.

        Args:
            path: Directory holding the repository files
            timeout: Time budget in seconds

        Returns:
            AnalyzerResult; success=False carries the error message
        """
        if not self.enabled or not self.is_available():
            self.logger.info("analyzer_skipped", enabled=self.enabled)
            return AnalyzerResult(success=True, skipped=True)

        start = time.monotonic()
        try:
            result = await self.analyze(Path(path), timeout)
        except AnalyzerTimeoutError as e:
            self.logger.error("analyzer_timeout", timeout=timeout)
            return AnalyzerResult.failed(str(e))
        except Exception as e:
            self.logger.error(
                "analyzer_failed",
                error=str(e),
                exc_info=True
            )
            return AnalyzerResult.failed(f"{self.analyzer_name} crashed: {e}")

        self.run_count += 1
        self.finding_count += len(result.findings)

        self.logger.info(
            "analyzer_complete",
            success=result.success,
            findings=len(result.findings),
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return result

    async def _run_command(
        self,
        cmd: List[str],
        cwd: Optional[Path],
        timeout: float,
    ) -> Tuple[int, str, str]:
        """
        Execute an external tool and collect its output.

        The child is killed on any exit before it finishes, including
        cancellation from the caller.

        Raises:
            AnalyzerTimeoutError: If the process outlives the time budget
        """
        self.logger.debug("executing_command", command=" ".join(cmd))

        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            raise AnalyzerTimeoutError(
                f"{self.analyzer_name} timeout after {timeout:g}s"
            )
        finally:
            if process.returncode is None:
                self.logger.warning("killing_command", command=cmd[0], pid=process.pid)
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await asyncio.shield(process.wait())

        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    @staticmethod
    def relative_path(path: Path, root: Path) -> str:
        """Repository-relative POSIX path of a file"""
        try:
            return path.relative_to(root).as_posix()
        except ValueError:
            return path.as_posix()

    def get_statistics(self) -> Dict[str, int]:
        """
        Get analyzer statistics.

        Returns:
            Dictionary with run count and finding count
        """
        return {
            "runs": self.run_count,
            "findings": self.finding_count,
        }

    def __repr__(self) -> str:
        """String representation"""
        return (
            f"{self.analyzer_name}("
            f"enabled={self.enabled}, "
            f"runs={self.run_count}, "
            f"found={self.finding_count})"
        )
