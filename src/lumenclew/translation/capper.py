"""
Severity capper - bounds how many findings of a panel get translated.
"""

from dataclasses import dataclass
from typing import List

from ..analyzers.base_analyzer import Finding


@dataclass
class CapResult:
    capped: List[Finding]
    truncated: bool
    original_count: int


def cap_findings(findings: List[Finding], max_count: int) -> CapResult:
    """
    Keep at most max_count findings, most severe first.

    The input is returned unchanged when it already fits. Otherwise a
    stable sort by severity (critical, high, medium, low) keeps the
    relative order of equally severe findings.
    """
    original_count = len(findings)
    if original_count <= max_count:
        return CapResult(capped=list(findings), truncated=False, original_count=original_count)

    ordered = sorted(findings, key=lambda finding: finding.severity.rank)
    return CapResult(
        capped=ordered[:max_count],
        truncated=True,
        original_count=original_count,
    )
