"""
Translation module - Plain-language rewriting of findings.

- cap_findings: Severity-ordered cap applied before translation
- TranslationBatcher: Batched, concurrent translation with id reconciliation
- TranslationClient: HTTP client for the translation service
- parse_translation_response: Tiered JSON recovery from free-text replies
"""

from .capper import CapResult, cap_findings
from .client import TranslationClient
from .models import (
    Importance,
    TranslatedFinding,
    TranslationPayload,
    TranslationResult,
    TranslationStatus,
    importance_for,
)
from .parser import ParseOutcome, ParseTier, parse_translation_response
from .batcher import TranslationBatcher


__all__ = [
    "CapResult",
    "cap_findings",
    "TranslationClient",
    "Importance",
    "TranslatedFinding",
    "TranslationPayload",
    "TranslationResult",
    "TranslationStatus",
    "importance_for",
    "ParseOutcome",
    "ParseTier",
    "parse_translation_response",
    "TranslationBatcher",
]
