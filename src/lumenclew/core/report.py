"""
Report data structures produced by the scan coordinator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..analyzers.base_analyzer import Panel
from ..errors import ErrorCode
from ..translation.models import TranslatedFinding
from .rate_limiter import RateLimitStatus


ORIENTATION_NOTE = (
    "This scan provides awareness of potential areas to explore. "
    "Static analysis has limitations - use these findings as starting points "
    "for reflection, not definitive judgments."
)

PANEL_ORDER = (Panel.QUALITY, Panel.DEPENDENCY, Panel.SECRET, Panel.ACCESSIBILITY)

_REPORT_KEYS = {
    Panel.QUALITY: "codeQuality",
    Panel.DEPENDENCY: "dependencies",
    Panel.SECRET: "secrets",
    Panel.ACCESSIBILITY: "accessibility",
}


class PanelStatus(Enum):
    """Status of one report panel"""
    SUCCESS = "success"
    PARTIAL = "partial"
    SKIPPED = "skipped"


class ScanStatus(Enum):
    """Overall scan status"""
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass
class PanelResult:
    """Findings and status of one panel"""
    panel: Panel
    status: PanelStatus
    finding_count: int = 0
    findings: List[TranslatedFinding] = field(default_factory=list)
    status_reason: Optional[str] = None
    error_message: Optional[str] = None
    truncated: bool = False
    original_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "panel": self.panel.value,
            "status": self.status.value,
            "findingCount": self.finding_count,
            "findings": [finding.to_dict() for finding in self.findings],
        }
        if self.status_reason:
            data["statusReason"] = self.status_reason
        if self.error_message:
            data["errorMessage"] = self.error_message
        if self.truncated:
            data["truncated"] = True
            data["originalCount"] = self.original_count
        return data


def overall_status(panels: List[PanelResult]) -> ScanStatus:
    """error if every panel was skipped, partial if any panel is degraded"""
    statuses = [panel.status for panel in panels]

    if all(status is PanelStatus.SKIPPED for status in statuses):
        return ScanStatus.ERROR
    if any(status in (PanelStatus.PARTIAL, PanelStatus.SKIPPED) for status in statuses):
        return ScanStatus.PARTIAL
    return ScanStatus.SUCCESS


@dataclass
class ScanScope:
    """Ceilings applied to the fetched repository"""
    max_files_allowed: int
    max_file_size_mb: float
    ignored_directories: List[str]
    files_counted: int = 0
    files_scanned: int = 0
    files_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxFilesAllowed": self.max_files_allowed,
            "maxFileSizeMb": self.max_file_size_mb,
            "ignoredDirectories": self.ignored_directories,
            "filesCounted": self.files_counted,
            "filesScanned": self.files_scanned,
            "filesSkipped": self.files_skipped,
        }


@dataclass
class ScanReport:
    """The assembled report of one scan"""
    id: str
    repo_url: str
    scan_mode: str
    status: ScanStatus
    scan_scope: ScanScope
    panels: Dict[Panel, PanelResult]
    cloned_at: str
    scan_duration: int  # milliseconds
    partial_reasons: List[str] = field(default_factory=list)
    orientation_note: str = ORIENTATION_NOTE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "repoUrl": self.repo_url,
            "scanMode": self.scan_mode,
            "status": self.status.value,
            "scanScope": self.scan_scope.to_dict(),
            "panels": {
                _REPORT_KEYS[panel]: self.panels[panel].to_dict()
                for panel in PANEL_ORDER
                if panel in self.panels
            },
            "orientationNote": self.orientation_note,
            "clonedAt": self.cloned_at,
            "scanDuration": self.scan_duration,
        }
        if self.partial_reasons:
            data["partialReasons"] = self.partial_reasons
        return data


@dataclass
class ScanError:
    code: ErrorCode
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code.value, "message": self.message}


@dataclass
class ScanResult:
    """What the request handler receives from a scan"""
    status: ScanStatus
    rate_limit: Optional[RateLimitStatus] = None
    report: Optional[ScanReport] = None
    error: Optional[ScanError] = None

    @classmethod
    def failure(
        cls,
        code: ErrorCode,
        message: str,
        rate_limit: Optional[RateLimitStatus] = None,
    ) -> "ScanResult":
        return cls(
            status=ScanStatus.ERROR,
            rate_limit=rate_limit,
            error=ScanError(code, message),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status.value,
            "rateLimit": self.rate_limit.to_dict() if self.rate_limit else None,
        }
        if self.report is not None:
            data["report"] = self.report.to_dict()
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data
