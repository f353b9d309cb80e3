"""
Unit tests for TranslationBatcher module.

Run with: pytest tests/unit/test_batcher.py -v
"""

import asyncio
import json
import time

import pytest

from conftest import FakeTranslationClient, make_finding, prompt_findings, translation_for
from lumenclew.analyzers import Finding, Panel, Severity, Tool
from lumenclew.errors import TranslationServiceError
from lumenclew.translation import Importance, TranslationBatcher, TranslationStatus
from lumenclew.translation.batcher import PARTIAL_NOTE


def make_findings(count: int, severity: Severity = Severity.MEDIUM):
    return [make_finding(f"rule{i}", severity, line=i + 1) for i in range(count)]


class TestTranslationBatcher:
    """Test suite for TranslationBatcher class"""

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self):
        """Test an empty panel succeeds without touching the client"""
        client = FakeTranslationClient()
        batcher = TranslationBatcher(client)

        result = await batcher.translate(Panel.QUALITY, [])

        assert result.status is TranslationStatus.SUCCESS
        assert result.findings == []
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_missing_credential_falls_back(self):
        """Test a missing API key yields fallbacks built from the findings"""
        finding = Finding(
            id="a1",
            panel=Panel.SECRET,
            tool=Tool.SECRETS_REGEX,
            severity=Severity.CRITICAL,
            message="X",
            file="config.js",
            line=3,
        )
        client = FakeTranslationClient(has_credentials=False)
        batcher = TranslationBatcher(client)

        result = await batcher.translate(Panel.SECRET, [finding])

        assert len(result.findings) == 1
        translated = result.findings[0]
        assert translated.id == "a1"
        assert translated.importance is Importance.IMPORTANT
        assert translated.plain_language == "X"
        assert "unavailable" in translated.static_analysis_note
        assert translated.file == "config.js"
        assert translated.line == 3
        assert result.status is TranslationStatus.FAILED
        assert result.status_reason == "MISSING_API_KEY"
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_output_length_matches_input(self):
        """Test every input finding yields exactly one output, in order"""
        findings = make_findings(19)
        batcher = TranslationBatcher(FakeTranslationClient())

        result = await batcher.translate(Panel.QUALITY, findings)

        assert len(result.findings) == len(findings)
        assert [t.id for t in result.findings] == [f.id for f in findings]
        assert result.status is TranslationStatus.SUCCESS
        assert result.translated_count == 19

    @pytest.mark.asyncio
    async def test_batches_of_eight(self):
        """Test 25 findings are sent as batches of 8, 8, 8 and 1"""
        client = FakeTranslationClient()
        batcher = TranslationBatcher(client)

        await batcher.translate(Panel.QUALITY, make_findings(25))

        sizes = sorted(len(prompt_findings(prompt)) for prompt in client.prompts)
        assert sizes == [1, 8, 8, 8]

    @pytest.mark.asyncio
    async def test_reversed_response_reconciles_by_id(self):
        """Test translations are matched by id, not position"""
        findings = make_findings(5)

        def respond(prompt):
            items = prompt_findings(prompt)
            return json.dumps([
                {
                    "id": item["id"],
                    "plainLanguage": f"About {item['message']}",
                    "context": "ctx",
                    "reflection": "hmm?",
                }
                for item in reversed(items)
            ])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, findings)

        for original, translated in zip(findings, result.findings):
            assert translated.id == original.id
            assert translated.plain_language == f"About {original.message}"

    @pytest.mark.asyncio
    async def test_ids_match_case_insensitively_last_wins(self):
        """Test upper-case ids match and duplicates keep the last object"""
        finding = make_finding("r", Severity.HIGH)

        def respond(prompt):
            first = translation_for(finding, "First")
            second = translation_for(finding, "Second")
            second["id"] = finding.id.upper()
            return json.dumps([first, second])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, [finding])

        assert result.findings[0].plain_language == "Second"
        assert result.findings[0].id == finding.id

    @pytest.mark.asyncio
    async def test_later_valid_duplicate_replaces_invalid_one(self):
        """Test a blank first copy does not hide a valid repeat of the same id"""
        finding = make_finding("r", Severity.HIGH)

        def respond(prompt):
            blank = translation_for(finding)
            blank["plainLanguage"] = ""
            return json.dumps([blank, translation_for(finding, "Recovered")])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, [finding])

        assert result.status is TranslationStatus.SUCCESS
        assert result.findings[0].plain_language == "Recovered"

    @pytest.mark.asyncio
    async def test_importance_and_panel_are_not_trusted(self):
        """Test importance comes from severity and panel from the caller"""
        finding = make_finding("r", Severity.CRITICAL, panel=Panel.SECRET)

        def respond(prompt):
            item = translation_for(finding)
            item["importance"] = "fyi"
            item["panel"] = "accessibility"
            return json.dumps([item])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.SECRET, [finding])

        assert result.findings[0].importance is Importance.IMPORTANT
        assert result.findings[0].panel is Panel.SECRET

    @pytest.mark.asyncio
    async def test_unmatched_entries_fall_back(self):
        """Test findings without a translation keep their original text"""
        findings = make_findings(4)

        def respond(prompt):
            return json.dumps([translation_for(findings[0]), translation_for(findings[2])])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, findings)

        assert result.status is TranslationStatus.PARTIAL
        assert result.status_reason == "partial_parse"
        assert result.translated_count == 2
        assert result.findings[1].plain_language == findings[1].message
        assert result.findings[1].static_analysis_note == PARTIAL_NOTE
        assert result.findings[0].static_analysis_note is None

    @pytest.mark.asyncio
    async def test_invalid_translation_falls_back(self):
        """Test objects failing validation are treated as unmatched"""
        finding = make_finding("r")

        def respond(prompt):
            item = translation_for(finding)
            item["plainLanguage"] = ""
            return json.dumps([item])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, [finding])

        assert result.status is TranslationStatus.FAILED
        assert result.findings[0].plain_language == finding.message

    @pytest.mark.asyncio
    async def test_batch_timeout_is_isolated(self):
        """Test a slow batch falls back while other batches translate"""
        findings = make_findings(10)
        slow_id = findings[0].id

        async def respond(prompt):
            items = prompt_findings(prompt)
            if any(item["id"] == slow_id for item in items):
                await asyncio.sleep(5)
            return json.dumps([
                {"id": item["id"], "plainLanguage": "ok", "context": "c", "reflection": "r"}
                for item in items
            ])

        batcher = TranslationBatcher(FakeTranslationClient(respond), timeout=0.05)

        result = await batcher.translate(Panel.QUALITY, findings)

        assert len(result.findings) == 10
        assert result.status is TranslationStatus.PARTIAL
        assert result.status_reason == "TRANSLATION_TIMEOUT"
        assert result.translated_count == 2
        assert all("TRANSLATION_TIMEOUT" in t.static_analysis_note for t in result.findings[:8])
        assert all(t.plain_language == "ok" for t in result.findings[8:])

    @pytest.mark.asyncio
    async def test_batches_run_concurrently(self):
        """Test three slow batches overlap instead of running back to back"""
        client = FakeTranslationClient()
        echo = client.send

        async def slow_send(user_prompt, system_prompt):
            await asyncio.sleep(0.2)
            return await echo(user_prompt, system_prompt)

        client.send = slow_send
        batcher = TranslationBatcher(client)

        started = time.monotonic()
        result = await batcher.translate(Panel.QUALITY, make_findings(20))
        elapsed = time.monotonic() - started

        assert len(client.prompts) == 3
        assert result.status is TranslationStatus.SUCCESS
        assert elapsed < 0.45

    @pytest.mark.asyncio
    async def test_service_error_falls_back_whole_batch(self):
        """Test an HTTP error from the service becomes an API error fallback"""
        def respond(prompt):
            raise TranslationServiceError("overloaded", status=529)

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.DEPENDENCY, make_findings(3))

        assert result.status is TranslationStatus.FAILED
        assert result.status_reason == "TRANSLATION_API_ERROR"
        assert all("unavailable" in t.static_analysis_note for t in result.findings)

    @pytest.mark.asyncio
    async def test_empty_response(self):
        """Test a blank response body falls back"""
        batcher = TranslationBatcher(FakeTranslationClient(lambda prompt: "  "))

        result = await batcher.translate(Panel.QUALITY, make_findings(2))

        assert result.status_reason == "EMPTY_RESPONSE"
        assert len(result.findings) == 2

    @pytest.mark.asyncio
    async def test_unexpected_error(self):
        """Test any other exception is contained in its batch"""
        def respond(prompt):
            raise RuntimeError("boom")

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, make_findings(2))

        assert result.status_reason == "UNEXPECTED_ERROR"

    @pytest.mark.asyncio
    async def test_long_text_is_truncated(self):
        """Test prose over 500 characters is cut with an ellipsis"""
        finding = make_finding("r")

        def respond(prompt):
            item = translation_for(finding, "x" * 600)
            item["commonApproaches"] = [f"way {i}" for i in range(8)]
            return json.dumps([item])

        batcher = TranslationBatcher(FakeTranslationClient(respond))

        result = await batcher.translate(Panel.QUALITY, [finding])

        translated = result.findings[0]
        assert translated.plain_language == "x" * 500 + "..."
        assert len(translated.common_approaches) == 5

    @pytest.mark.asyncio
    async def test_panel_is_capped_before_translation(self):
        """Test only the 25 most severe findings are translated"""
        findings = make_findings(28, Severity.LOW) + [
            make_finding(f"crit{i}", Severity.CRITICAL, line=100 + i) for i in range(2)
        ]
        batcher = TranslationBatcher(FakeTranslationClient())

        result = await batcher.translate(Panel.QUALITY, findings)

        assert len(result.findings) == 25
        assert result.truncated is True
        assert result.original_count == 30
        assert result.findings[0].importance is Importance.IMPORTANT
        assert result.findings[1].importance is Importance.IMPORTANT

    @pytest.mark.asyncio
    async def test_translate_all_runs_every_panel(self):
        """Test translate_all returns one result per panel"""
        batcher = TranslationBatcher(FakeTranslationClient())

        results = await batcher.translate_all({
            Panel.QUALITY: make_findings(3),
            Panel.SECRET: [],
        })

        assert set(results) == {Panel.QUALITY, Panel.SECRET}
        assert len(results[Panel.QUALITY].findings) == 3
        assert results[Panel.SECRET].findings == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
