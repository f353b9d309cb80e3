"""
Translation Batcher - Plain-language rewriting of findings, batch by batch.

Pipeline for one panel:
1. Cap findings by severity
2. Split the capped list into fixed-size batches
3. Translate every batch concurrently, each under its own deadline
4. Parse each response with the tiered parser
5. Reconcile parsed objects to the batch's findings by id (never by
   position), falling back to the original finding text when no valid
   translation matches

Every input finding yields exactly one TranslatedFinding, in input order.
A failing batch only affects its own findings.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

import aiohttp
import structlog
from pydantic import ValidationError

from ..analyzers.base_analyzer import Finding, Panel
from ..config import TranslationConfig
from ..errors import TranslationServiceError
from .capper import cap_findings
from .models import (
    TranslatedFinding,
    TranslationPayload,
    TranslationResult,
    TranslationStatus,
    importance_for,
)
from .parser import parse_translation_response
from .prompts import build_user_prompt, system_prompt_for


PARTIAL_NOTE = "Partial translation - showing original finding."
FALLBACK_REFLECTION = "Consider reviewing this in the context of your specific project needs."

TRUNCATION_MARKER = "..."


def unavailable_note(reason: str) -> str:
    return f"Translation unavailable ({reason}). Showing original finding."


@dataclass
class BatchOutcome:
    findings: List[TranslatedFinding]
    matched: int
    reason: Optional[str] = None


class TranslationBatcher:
    """
    Translates the findings of each panel through the translation service.

    Example:
        >>> batcher = TranslationBatcher(client, config.translation)
        >>> result = await batcher.translate(Panel.SECRET, findings)
        >>> result.status
        <TranslationStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        client,
        config: Optional[TranslationConfig] = None,
        max_findings: int = 25,
        timeout: float = 45.0,
    ):
        """
        Initialize the batcher.

        Args:
            client: Object with `has_credentials` and `async send(user, system)`
            config: Translation settings (batch size, text limits)
            max_findings: Per-panel cap applied before batching
            timeout: Per-batch deadline in seconds
        """
        self.client = client
        self.config = config or TranslationConfig()
        self.max_findings = max_findings
        self.timeout = timeout

        self.logger = structlog.get_logger(__name__)

    async def translate_all(
        self,
        panel_findings: Dict[Panel, List[Finding]],
        timeout: Optional[float] = None,
    ) -> Dict[Panel, TranslationResult]:
        """
        Translate every panel concurrently.

        Args:
            panel_findings: Findings per panel
            timeout: Per-batch deadline override

        Returns:
            TranslationResult per panel
        """
        self.logger.info("translation_started", panels=len(panel_findings))

        async with asyncio.TaskGroup() as tg:
            tasks = {
                panel: tg.create_task(self.translate(panel, findings, timeout=timeout))
                for panel, findings in panel_findings.items()
            }

        results = {panel: task.result() for panel, task in tasks.items()}
        self.logger.info("translation_complete", panels=len(results))
        return results

    async def translate(
        self,
        panel: Panel,
        findings: List[Finding],
        timeout: Optional[float] = None,
    ) -> TranslationResult:
        """
        Translate the findings of one panel.

        Args:
            panel: Panel the findings belong to
            findings: Normalized findings
            timeout: Per-batch deadline override

        Returns:
            TranslationResult (never raises for service failures)
        """
        if not findings:
            self.logger.debug("no_findings_to_translate", panel=panel.value)
            return TranslationResult(panel=panel)

        if not self.client.has_credentials:
            self.logger.error("missing_translation_credential", panel=panel.value)
            note = unavailable_note("MISSING_API_KEY")
            return TranslationResult(
                panel=panel,
                findings=[self.fallback(panel, finding, note) for finding in findings],
                status=TranslationStatus.FAILED,
                status_reason="MISSING_API_KEY",
                original_count=len(findings),
                translated_count=0,
            )

        cap = cap_findings(findings, self.max_findings)
        batches = self._batches(cap.capped)
        deadline = timeout if timeout is not None else self.timeout

        self.logger.info(
            "translating_panel",
            panel=panel.value,
            findings=len(cap.capped),
            batches=len(batches),
            truncated=cap.truncated,
        )

        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(self._translate_batch(panel, batch, index, deadline))
                for index, batch in enumerate(batches)
            ]
        outcomes = [task.result() for task in tasks]

        translated = [finding for outcome in outcomes for finding in outcome.findings]
        matched = sum(outcome.matched for outcome in outcomes)

        if matched == len(cap.capped):
            status = TranslationStatus.SUCCESS
        elif matched > 0:
            status = TranslationStatus.PARTIAL
        else:
            status = TranslationStatus.FAILED

        status_reason = None
        if status is not TranslationStatus.SUCCESS:
            reasons = [outcome.reason for outcome in outcomes if outcome.reason]
            status_reason = reasons[0] if reasons else "partial_parse"

        self.logger.info(
            "panel_translated",
            panel=panel.value,
            matched=matched,
            total=len(cap.capped),
            fallbacks=len(cap.capped) - matched,
            status=status.value,
        )

        return TranslationResult(
            panel=panel,
            findings=translated,
            status=status,
            status_reason=status_reason,
            truncated=cap.truncated,
            original_count=cap.original_count,
            translated_count=matched,
        )

    def _batches(self, findings: List[Finding]) -> List[List[Finding]]:
        size = self.config.batch_size
        return [findings[i:i + size] for i in range(0, len(findings), size)]

    async def _translate_batch(
        self,
        panel: Panel,
        batch: List[Finding],
        index: int,
        timeout: float,
    ) -> BatchOutcome:
        """Translate one batch; every failure becomes per-finding fallbacks"""
        try:
            text = await asyncio.wait_for(
                self.client.send(build_user_prompt(panel, batch), system_prompt_for(panel)),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self.logger.error("translation_batch_timeout", panel=panel.value, batch=index)
            return self._failed_batch(panel, batch, "TRANSLATION_TIMEOUT")
        except (TranslationServiceError, aiohttp.ClientError) as e:
            self.logger.error(
                "translation_batch_api_error",
                panel=panel.value,
                batch=index,
                error=str(e)
            )
            return self._failed_batch(panel, batch, "TRANSLATION_API_ERROR")
        except Exception as e:
            self.logger.error(
                "translation_batch_failed",
                panel=panel.value,
                batch=index,
                error=str(e),
                exc_info=True
            )
            return self._failed_batch(panel, batch, "UNEXPECTED_ERROR")

        if not text or not text.strip():
            self.logger.warning("translation_empty_response", panel=panel.value, batch=index)
            return self._failed_batch(panel, batch, "EMPTY_RESPONSE")

        outcome = parse_translation_response(text)
        self.logger.debug(
            "translation_parsed",
            panel=panel.value,
            batch=index,
            tier=outcome.tier.value,
            items=len(outcome.items),
        )

        return self._reconcile(panel, batch, outcome.items)

    def _failed_batch(self, panel: Panel, batch: List[Finding], reason: str) -> BatchOutcome:
        note = unavailable_note(reason)
        return BatchOutcome(
            findings=[self.fallback(panel, finding, note) for finding in batch],
            matched=0,
            reason=reason,
        )

    def _reconcile(self, panel: Panel, batch: List[Finding], items: List[dict]) -> BatchOutcome:
        """Match parsed objects to findings by id, case-insensitively"""
        by_id = {}
        for item in items:
            item_id = item.get("id")
            if item_id is None:
                continue
            key = str(item_id).strip().lower()
            if key:
                by_id[key] = item

        translated = []
        matched = 0
        for finding in batch:
            accepted = self._accept(panel, finding, by_id.get(finding.id.lower()))
            if accepted is None:
                self.logger.debug("no_translation_match", panel=panel.value, finding_id=finding.id)
                translated.append(self.fallback(panel, finding, PARTIAL_NOTE))
            else:
                translated.append(accepted)
                matched += 1

        return BatchOutcome(
            findings=translated,
            matched=matched,
            reason=None if matched == len(batch) else "partial_parse",
        )

    def _accept(
        self,
        panel: Panel,
        finding: Finding,
        item: Optional[dict],
    ) -> Optional[TranslatedFinding]:
        if item is None:
            return None

        try:
            payload = TranslationPayload.model_validate(item)
        except ValidationError:
            return None

        approaches = None
        if payload.common_approaches is not None:
            approaches = [
                self._truncate(approach)
                for approach in payload.common_approaches[:self.config.max_common_approaches]
            ]

        note = None
        if payload.static_analysis_note is not None:
            note = self._truncate(payload.static_analysis_note)

        return TranslatedFinding(
            id=finding.id,
            panel=panel,
            plain_language=self._truncate(payload.plain_language),
            context=self._truncate(payload.context),
            importance=importance_for(finding.severity),
            reflection=self._truncate(payload.reflection),
            common_approaches=approaches,
            static_analysis_note=note,
            file=finding.file,
            line=finding.line,
            column=finding.column,
        )

    def _truncate(self, text: str) -> str:
        limit = self.config.max_text_length
        if len(text) > limit:
            return text[:limit] + TRUNCATION_MARKER
        return text

    @staticmethod
    def fallback(panel: Panel, finding: Finding, note: str) -> TranslatedFinding:
        """Build a TranslatedFinding from the original finding's own fields"""
        where = f" in {finding.file}" if finding.file else ""
        return TranslatedFinding(
            id=finding.id,
            panel=panel,
            plain_language=finding.message,
            context=f"This finding was detected by automated analysis{where}.",
            importance=importance_for(finding.severity),
            reflection=FALLBACK_REFLECTION,
            static_analysis_note=note,
            file=finding.file,
            line=finding.line,
            column=finding.column,
        )
