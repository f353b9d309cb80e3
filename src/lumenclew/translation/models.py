"""
Translation data structures.

TranslationPayload validates one object returned by the translation
service. TranslatedFinding is what ends up in the report: its id always
equals the originating Finding's id and its importance is always derived
from the Finding's own severity.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..analyzers.base_analyzer import Panel, Severity


class Importance(Enum):
    """Display importance shown to developers"""
    FYI = "fyi"
    NOTE = "note"
    EXPLORE = "explore"
    IMPORTANT = "important"


_IMPORTANCE_BY_SEVERITY = {
    Severity.CRITICAL: Importance.IMPORTANT,
    Severity.HIGH: Importance.EXPLORE,
    Severity.MEDIUM: Importance.NOTE,
    Severity.LOW: Importance.FYI,
}


def importance_for(severity) -> Importance:
    """
    Map a severity to its display importance.

    Accepts a Severity or its string value; anything unknown maps to NOTE.
    """
    if not isinstance(severity, Severity):
        try:
            severity = Severity(severity)
        except ValueError:
            return Importance.NOTE
    return _IMPORTANCE_BY_SEVERITY.get(severity, Importance.NOTE)


class TranslationStatus(Enum):
    """Aggregate translation outcome for a panel or batch"""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class TranslatedFinding:
    """A finding rewritten in plain language (or its local fallback)"""
    id: str
    panel: Panel
    plain_language: str
    context: str
    importance: Importance
    reflection: str
    common_approaches: Optional[List[str]] = None
    static_analysis_note: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data: Dict[str, Any] = {
            "id": self.id,
            "panel": self.panel.value,
            "plainLanguage": self.plain_language,
            "context": self.context,
            "importance": self.importance.value,
            "reflection": self.reflection,
        }
        if self.common_approaches is not None:
            data["commonApproaches"] = self.common_approaches
        if self.static_analysis_note is not None:
            data["staticAnalysisNote"] = self.static_analysis_note
        for key in ("file", "line", "column"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class TranslationResult:
    """Translation outcome for one panel"""
    panel: Panel
    findings: List[TranslatedFinding] = field(default_factory=list)
    status: TranslationStatus = TranslationStatus.SUCCESS
    status_reason: Optional[str] = None
    truncated: bool = False
    original_count: int = 0
    translated_count: int = 0


class TranslationPayload(BaseModel):
    """
    Shape check for one translated object from the service.

    Only the three prose fields are required. The service's importance and
    panel are accepted but never trusted.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Any = None
    plain_language: str = Field(alias="plainLanguage")
    context: str
    reflection: str
    importance: Any = None
    panel: Any = None
    common_approaches: Optional[List[str]] = Field(default=None, alias="commonApproaches")
    static_analysis_note: Optional[str] = Field(default=None, alias="staticAnalysisNote")

    @field_validator("plain_language", "context", "reflection")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    @field_validator("common_approaches", mode="before")
    @classmethod
    def _strings_only(cls, value):
        if not isinstance(value, list):
            return None
        return [item.strip() for item in value if isinstance(item, str)]

    @field_validator("static_analysis_note", mode="before")
    @classmethod
    def _optional_text(cls, value):
        if not isinstance(value, str):
            return None
        return value.strip()
