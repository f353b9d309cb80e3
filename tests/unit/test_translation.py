"""
Unit tests for the translation building blocks: capper, parser, payload
validation and importance mapping.

Run with: pytest tests/unit/test_translation.py -v
"""

import json

import pytest
from pydantic import ValidationError

from conftest import make_finding
from lumenclew.analyzers import Severity
from lumenclew.translation import (
    Importance,
    ParseTier,
    TranslationPayload,
    cap_findings,
    importance_for,
    parse_translation_response,
)


class TestSeverityCapper:
    """Test suite for cap_findings"""

    def test_under_limit_is_unchanged(self):
        """Test input that fits is returned in original order"""
        findings = [
            make_finding("a", Severity.LOW),
            make_finding("b", Severity.CRITICAL),
        ]

        result = cap_findings(findings, 25)

        assert result.capped == findings
        assert result.truncated is False
        assert result.original_count == 2

    def test_over_limit_keeps_most_severe(self):
        """Test 30 findings capped to 25 drop only the lowest severities"""
        findings = (
            [make_finding(f"low{i}", Severity.LOW, line=i) for i in range(10)]
            + [make_finding(f"crit{i}", Severity.CRITICAL, line=i) for i in range(5)]
            + [make_finding(f"med{i}", Severity.MEDIUM, line=i) for i in range(15)]
        )

        result = cap_findings(findings, 25)

        assert result.truncated is True
        assert result.original_count == 30
        assert len(result.capped) == 25
        severities = [finding.severity for finding in result.capped]
        assert severities.count(Severity.CRITICAL) == 5
        assert severities.count(Severity.MEDIUM) == 15
        assert severities.count(Severity.LOW) == 5

    def test_never_drops_higher_for_lower(self):
        """Test every kept finding is at least as severe as every dropped one"""
        severities = [Severity.LOW, Severity.HIGH, Severity.MEDIUM, Severity.CRITICAL] * 5
        findings = [make_finding(f"r{i}", sev, line=i) for i, sev in enumerate(severities)]

        result = cap_findings(findings, 7)

        kept_ids = {finding.id for finding in result.capped}
        dropped = [finding for finding in findings if finding.id not in kept_ids]
        worst_kept = max(finding.severity.rank for finding in result.capped)
        best_dropped = min(finding.severity.rank for finding in dropped)
        assert worst_kept <= best_dropped

    def test_sort_is_stable(self):
        """Test equally severe findings keep their relative order"""
        findings = [make_finding(f"h{i}", Severity.HIGH, line=i) for i in range(4)]
        findings.insert(2, make_finding("low", Severity.LOW))

        result = cap_findings(findings, 4)

        assert result.capped == [f for f in findings if f.severity is Severity.HIGH]


class TestResponseParser:
    """Test suite for the tiered response parser"""

    def test_plain_array(self):
        """Test a bare JSON array parses as the whole payload"""
        outcome = parse_translation_response('[{"id": "a"}, {"id": "b"}]')

        assert outcome.tier is ParseTier.WHOLE_PAYLOAD
        assert [item["id"] for item in outcome.items] == ["a", "b"]

    @pytest.mark.parametrize("key", ["findings", "translations", "results"])
    def test_wrapper_object(self, key):
        """Test wrapper objects are unwrapped"""
        outcome = parse_translation_response(json.dumps({key: [{"id": "a"}]}))

        assert outcome.tier is ParseTier.WHOLE_PAYLOAD
        assert outcome.items == [{"id": "a"}]

    def test_single_object(self):
        """Test a single object is treated as a one-item list"""
        outcome = parse_translation_response('{"id": "a", "plainLanguage": "x"}')

        assert outcome.items == [{"id": "a", "plainLanguage": "x"}]

    def test_array_inside_prose(self):
        """Test an array wrapped in prose and code fences is recovered"""
        text = 'Here you go:\n```json\n[{"id": "a"}]\n```\nHope this helps.'

        outcome = parse_translation_response(text)

        assert outcome.tier is ParseTier.ARRAY_SUBSTRING
        assert outcome.items == [{"id": "a"}]

    def test_individual_object_recovery(self):
        """Test objects are salvaged from a broken array"""
        text = '[{"id": "a", "meta": {"k": 1}}, {"id": "b"}, {"id": "c", "plainLang'

        outcome = parse_translation_response(text)

        assert outcome.tier is ParseTier.OBJECT_RECOVERY
        assert [item["id"] for item in outcome.items] == ["a", "b"]

    def test_nothing_recoverable(self):
        """Test plain prose yields no items"""
        outcome = parse_translation_response("Sorry, I cannot help with that.")

        assert outcome.tier is ParseTier.NONE
        assert outcome.ok is False

    def test_empty_text(self):
        """Test empty text yields no items"""
        assert parse_translation_response("   ").tier is ParseTier.NONE


class TestTranslationPayload:
    """Test suite for payload validation"""

    def test_valid_payload(self):
        """Test aliases are accepted and text is stripped"""
        payload = TranslationPayload.model_validate({
            "id": "a1",
            "plainLanguage": "  Hello ",
            "context": "ctx",
            "reflection": "why?",
            "commonApproaches": ["one", 2, "three"],
        })

        assert payload.plain_language == "Hello"
        assert payload.common_approaches == ["one", "three"]

    def test_empty_text_rejected(self):
        """Test whitespace-only prose fields are invalid"""
        with pytest.raises(ValidationError):
            TranslationPayload.model_validate({
                "plainLanguage": "   ",
                "context": "ctx",
                "reflection": "why?",
            })

    def test_missing_field_rejected(self):
        """Test a missing reflection is invalid"""
        with pytest.raises(ValidationError):
            TranslationPayload.model_validate({"plainLanguage": "x", "context": "y"})

    def test_non_string_field_rejected(self):
        """Test a numeric plainLanguage is invalid"""
        with pytest.raises(ValidationError):
            TranslationPayload.model_validate({
                "plainLanguage": 42,
                "context": "ctx",
                "reflection": "why?",
            })


class TestImportanceMapping:
    """Test suite for importance_for"""

    def test_mapping(self):
        """Test every severity maps to its importance"""
        assert importance_for(Severity.CRITICAL) is Importance.IMPORTANT
        assert importance_for(Severity.HIGH) is Importance.EXPLORE
        assert importance_for(Severity.MEDIUM) is Importance.NOTE
        assert importance_for(Severity.LOW) is Importance.FYI

    def test_unknown_defaults_to_note(self):
        """Test unknown severities fall back to note"""
        assert importance_for("catastrophic") is Importance.NOTE
        assert importance_for(None) is Importance.NOTE

    def test_string_values(self):
        """Test severity strings are accepted"""
        assert importance_for("critical") is Importance.IMPORTANT


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
