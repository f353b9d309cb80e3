"""
Accessibility Analyzer - Static markup patterns in JSX/TSX/HTML.

Automated tools catch only a fraction of accessibility issues; these
patterns flag likely problems (missing alt text, non-semantic buttons,
heading level skips) as starting points for a manual review.
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
class A11yPattern:
    """A markup pattern with a fixed message"""
    id: str
    name: str
    regex: re.Pattern
    severity: Severity
    message: str


A11Y_PATTERNS = [
    A11yPattern(
        "missing_alt", "Missing Alt Text",
        re.compile(r"<img(?![^>]*\balt\s*=)[^>]*>", re.IGNORECASE),
        Severity.HIGH,
        "Image missing alt attribute for screen readers",
    ),
    A11yPattern(
        "non_semantic_button_div", "Non-semantic Button (div)",
        re.compile(r"<div[^>]*\bonClick\s*=", re.IGNORECASE),
        Severity.HIGH,
        "Div with onClick should be a button element for keyboard accessibility",
    ),
    A11yPattern(
        "non_semantic_button_role", "Non-semantic Button (role)",
        re.compile(r"""<(?!button)[a-z]+[^>]*role\s*=\s*["']button["'][^>]*>""", re.IGNORECASE),
        Severity.HIGH,
        'Element with role="button" should be a native button element',
    ),
    A11yPattern(
        "missing_aria_label", "Missing ARIA Label",
        re.compile(r"<(button|a|input)[^>]*>(\s*<[^>]+>\s*)*</(button|a)>", re.IGNORECASE),
        Severity.MEDIUM,
        "Interactive element may need aria-label for screen reader context",
    ),
    A11yPattern(
        "link_without_href", "Link Without Href",
        re.compile(r"<a(?![^>]*\bhref\s*=)[^>]*>", re.IGNORECASE),
        Severity.MEDIUM,
        "Anchor tag missing href attribute - not keyboard navigable",
    ),
    A11yPattern(
        "input_without_label", "Input Without Label",
        re.compile(r"<input(?![^>]*\b(id|aria-label|aria-labelledby)\s*=)[^>]*>", re.IGNORECASE),
        Severity.MEDIUM,
        "Input element missing associated label or aria-label",
    ),
    A11yPattern(
        "empty_heading", "Empty Heading",
        re.compile(r"<h[1-6][^>]*>\s*</h[1-6]>", re.IGNORECASE),
        Severity.LOW,
        "Empty heading element - provides no content for screen readers",
    ),
]

_HEADING_RE = re.compile(r"<h([1-6])[^>]*>", re.IGNORECASE)

A11Y_EXTENSIONS = (".jsx", ".tsx", ".html", ".htm")


class A11yAnalyzer(BaseAnalyzer):
    """Regex-based accessibility analyzer"""

    panel = Panel.ACCESSIBILITY
    tool = Tool.A11Y_ANALYZER

    def __init__(
        self,
        ignored_directories: Optional[Iterable[str]] = None,
        max_file_size_bytes: int = 1024 * 1024,
        enabled: bool = True,
    ):
        super().__init__(analyzer_name="A11y Analyzer", enabled=enabled)
        self.ignored_directories = {
            d.rstrip("/") for d in (ignored_directories or DEFAULT_IGNORED_DIRECTORIES)
        }
        self.max_file_size_bytes = max_file_size_bytes

    async def analyze(self, path: Path, timeout: float) -> AnalyzerResult:
        if not path.is_dir():
            return AnalyzerResult.failed("Scan directory does not exist")

        return await asyncio.to_thread(self._scan_tree, path, timeout)

    def _scan_tree(self, root: Path, timeout: float) -> AnalyzerResult:
        deadline = time.monotonic() + timeout
        findings: List[Finding] = []
        files_analyzed = 0

        for file_path in sorted(root.rglob("*")):
            if time.monotonic() > deadline:
                self.logger.warning("a11y_scan_timeout", files_analyzed=files_analyzed)
                return AnalyzerResult(
                    success=False,
                    findings=findings,
                    error=f"A11y scan timeout after {timeout:g}s",
                    stats={"files_analyzed": files_analyzed},
                )

            if not self._should_analyze(file_path, root):
                continue

            try:
                if file_path.stat().st_size > self.max_file_size_bytes:
                    continue
                content = file_path.read_text(encoding="utf-8", errors="ignore")
            except OSError as e:
                self.logger.debug("file_read_error", file=str(file_path), error=str(e))
                continue

            files_analyzed += 1
            findings.extend(
                self.scan_content(content, self.relative_path(file_path, root))
            )

        return AnalyzerResult(
            success=True,
            findings=findings,
            stats={"files_analyzed": files_analyzed},
        )

    def _should_analyze(self, file_path: Path, root: Path) -> bool:
        if not file_path.is_file() or file_path.suffix.lower() not in A11Y_EXTENSIONS:
            return False
        parts = file_path.relative_to(root).parts[:-1]
        return not any(part in self.ignored_directories for part in parts)

    def scan_content(self, content: str, relative_path: str) -> List[Finding]:
        """
        Run every markup pattern and the heading hierarchy check.

        Args:
            content: File text
            relative_path: Repository-relative path for the findings

        Returns:
            Findings in pattern order, then heading skips
        """
        findings = []

        for pattern in A11Y_PATTERNS:
            for match in pattern.regex.finditer(content):
                line = _line_number(content, match.start())
                findings.append(Finding.create(
                    panel=self.panel,
                    tool=self.tool,
                    rule_id=pattern.id,
                    severity=pattern.severity,
                    message=pattern.message,
                    file=relative_path,
                    line=line,
                    metadata={
                        "patternId": pattern.id,
                        "patternName": pattern.name,
                        "matchedText": match.group(0)[:100],
                    },
                ))

        findings.extend(self._heading_hierarchy(content, relative_path))
        return findings

    def _heading_hierarchy(self, content: str, relative_path: str) -> List[Finding]:
        findings = []
        previous_level = None

        for match in _HEADING_RE.finditer(content):
            level = int(match.group(1))
            if previous_level is not None and level > previous_level + 1:
                line = _line_number(content, match.start())
                findings.append(Finding.create(
                    panel=self.panel,
                    tool=self.tool,
                    rule_id="heading_hierarchy",
                    severity=Severity.MEDIUM,
                    message=(
                        f"Heading hierarchy skip: h{previous_level} followed by "
                        f"h{level} (missing h{previous_level + 1})"
                    ),
                    file=relative_path,
                    line=line,
                    metadata={
                        "patternId": "heading_hierarchy",
                        "previousLevel": previous_level,
                        "currentLevel": level,
                        "skippedLevel": previous_level + 1,
                    },
                ))
            previous_level = level

        return findings


def _line_number(content: str, index: int) -> int:
    return content.count("\n", 0, index) + 1
