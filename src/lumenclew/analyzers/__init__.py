"""
Analyzers module.

Each analyzer inherits from BaseAnalyzer, wraps one external tool or pattern
engine, and normalizes its output into Finding records.

Available analyzers:
- ESLintAnalyzer: Code quality (ESLint)
- NpmAuditAnalyzer: Dependency vulnerabilities (npm audit)
- SecretsAnalyzer: Committed credentials (regex)
- A11yAnalyzer: Accessibility markup patterns (regex)
"""

from .base_analyzer import (
    AnalyzerResult,
    BaseAnalyzer,
    Finding,
    Panel,
    Severity,
    Tool,
    make_finding_id,
)

from .eslint_analyzer import ESLintAnalyzer
from .npm_audit_analyzer import NpmAuditAnalyzer
from .secrets_analyzer import SecretsAnalyzer
from .a11y_analyzer import A11yAnalyzer


__all__ = [
    # Base classes
    "BaseAnalyzer",
    "AnalyzerResult",
    "Finding",
    "Panel",
    "Severity",
    "Tool",
    "make_finding_id",
    # Analyzers
    "ESLintAnalyzer",
    "NpmAuditAnalyzer",
    "SecretsAnalyzer",
    "A11yAnalyzer",
]
