"""
Scan Coordinator - Central coordinator of the repository scan pipeline.

Pipeline:
1. Validate the repository URL
2. Check the client's daily quota
3. Fetch the repository into a temp directory
4. Run all analyzers concurrently, each behind its own deadline and
   exception boundary
5. Translate every panel concurrently
6. Assemble panel results and the report
7. Count the scan against the client's quota
8. Remove the temp directory, whatever happened above

Design Pattern: Pipeline + Observer
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog

from ..analyzers import (
    A11yAnalyzer,
    AnalyzerResult,
    BaseAnalyzer,
    ESLintAnalyzer,
    NpmAuditAnalyzer,
    Panel,
    SecretsAnalyzer,
)
from ..config import SCAN_MODES, AppConfig, ScanModeConfig
from ..errors import ErrorCode
from ..fetcher import GitHubFetcher, validate_github_url
from ..translation import TranslationBatcher, TranslationClient, TranslationResult, TranslationStatus
from .rate_limiter import DailyRateLimiter, RateLimitConfig
from .report import (
    PANEL_ORDER,
    PanelResult,
    PanelStatus,
    ScanReport,
    ScanResult,
    ScanScope,
    ScanStatus,
    overall_status,
)


# Extra time granted on top of an analyzer's own budget before it is cancelled
ANALYZER_GRACE_SECONDS = 1.0

_TIMEOUT_FIELDS = {
    Panel.QUALITY: "eslint_timeout",
    Panel.DEPENDENCY: "npm_audit_timeout",
    Panel.SECRET: "secrets_timeout",
    Panel.ACCESSIBILITY: "a11y_timeout",
}


class ScanCoordinator:
    """
    Runs one repository scan end to end.

    Responsibilities:
    1. Reject bad input and exhausted quotas before any network work
    2. Isolate analyzer failures to their own panel
    3. Merge analyzer and translation status into panel status
    4. Guarantee cleanup of the fetched repository

    Example:
        >>> coordinator = ScanCoordinator.from_config(load_config())
        >>> result = await coordinator.scan("https://github.com/octo/app", "fast", "203.0.113.7")
        >>> result.status
        <ScanStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        fetcher,
        analyzers: Dict[Panel, BaseAnalyzer],
        batcher: TranslationBatcher,
        rate_limiter: DailyRateLimiter,
        config: Optional[AppConfig] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            fetcher: Repository fetcher (fetch/cleanup)
            analyzers: One analyzer per panel; missing panels are skipped
            batcher: Translation batcher
            rate_limiter: Daily quota tracker shared across requests
            config: Application configuration
        """
        self.fetcher = fetcher
        self.analyzers = analyzers
        self.batcher = batcher
        self.rate_limiter = rate_limiter
        self.config = config or AppConfig()

        self.logger = structlog.get_logger(__name__)

        # Observer pattern - callbacks
        self.observers: List[Callable[[str, Dict[str, Any]], None]] = []

    @classmethod
    def from_config(cls, config: AppConfig) -> "ScanCoordinator":
        """Wire the production collaborators from configuration"""
        translation_timeout = config.fast_scan.translation_timeout
        client = TranslationClient(config.translation, timeout=translation_timeout)
        max_file_size = config.max_file_size_bytes

        return cls(
            fetcher=GitHubFetcher(config),
            analyzers={
                Panel.QUALITY: ESLintAnalyzer(),
                Panel.DEPENDENCY: NpmAuditAnalyzer(),
                Panel.SECRET: SecretsAnalyzer(
                    allowed_extensions=config.allowed_file_types,
                    ignored_directories=config.ignored_directories,
                    max_file_size_bytes=max_file_size,
                ),
                Panel.ACCESSIBILITY: A11yAnalyzer(
                    ignored_directories=config.ignored_directories,
                    max_file_size_bytes=max_file_size,
                ),
            },
            batcher=TranslationBatcher(
                client,
                config.translation,
                max_findings=config.max_findings_per_panel,
                timeout=translation_timeout,
            ),
            rate_limiter=DailyRateLimiter(
                RateLimitConfig(max_scans_per_day=config.max_scans_per_day)
            ),
            config=config,
        )

    def subscribe(self, observer: Callable[[str, Dict[str, Any]], None]):
        """
        Subscribe to coordinator events (Observer pattern).

        Args:
            observer: Callback receiving (event, data)
        """
        self.observers.append(observer)
        self.logger.info("observer_subscribed", observer=getattr(observer, "__name__", repr(observer)))

    def _notify_observers(self, event: str, data: Dict[str, Any]):
        """Notify all observers of an event"""
        for observer in self.observers:
            try:
                observer(event, data)
            except Exception as e:
                self.logger.error(
                    "observer_error",
                    observer=getattr(observer, "__name__", repr(observer)),
                    error=str(e)
                )

    async def scan(
        self,
        repo_url: str,
        scan_mode: str = "fast",
        client_id: str = "anonymous",
    ) -> ScanResult:
        """
        Scan a repository.

        Args:
            repo_url: https://github.com/owner/repo
            scan_mode: 'fast' or 'full'
            client_id: Quota key (usually the caller IP)

        Returns:
            ScanResult with a report, or a structured error
        """
        scan_id = str(uuid.uuid4())
        started = time.monotonic()
        temp_path = None
        log = self.logger.bind(scan_id=scan_id)

        log.info("scan_started", repo_url=repo_url, scan_mode=scan_mode)

        try:
            # Phase 1: Input validation
            validation = validate_github_url(repo_url)
            if not validation.is_valid:
                log.warning("invalid_url", error=validation.error)
                return ScanResult.failure(
                    ErrorCode.INVALID_URL,
                    validation.error,
                    self.rate_limiter.check(client_id),
                )

            if scan_mode not in SCAN_MODES:
                return ScanResult.failure(
                    ErrorCode.VALIDATION_ERROR,
                    "scanMode must be 'fast' or 'full'",
                    self.rate_limiter.check(client_id),
                )

            # Phase 2: Quota
            rate_limit = self.rate_limiter.check(client_id)
            if not rate_limit.can_scan:
                log.warning("rate_limit_exceeded", client_id=client_id)
                return ScanResult.failure(
                    ErrorCode.RATE_LIMIT_EXCEEDED,
                    f"Daily scan limit ({rate_limit.max_scans_per_day}) reached. "
                    "Resets at midnight UTC.",
                    rate_limit,
                )

            self._notify_observers("scan_started", {"scan_id": scan_id, "repo_url": validation.normalized_url})

            # Phase 3: Acquisition
            mode = self.config.mode(scan_mode)
            fetch_result = await self.fetcher.fetch(validation.normalized_url, scan_mode)
            if not fetch_result.success:
                error_code = fetch_result.error_code or ErrorCode.REPO_NOT_FOUND
                log.error("fetch_failed", error=fetch_result.error, error_code=error_code.value)
                self._notify_observers(
                    "scan_failed",
                    {"scan_id": scan_id, "error": fetch_result.error, "error_code": error_code.value},
                )
                return ScanResult.failure(
                    error_code,
                    fetch_result.error or "Failed to fetch repository",
                    self.rate_limiter.check(client_id),
                )

            temp_path = fetch_result.temp_path
            log.info("repository_fetched", path=str(temp_path), files=fetch_result.files_scanned)

            scan_scope = ScanScope(
                max_files_allowed=mode.max_files,
                max_file_size_mb=self.config.max_file_size_mb,
                ignored_directories=list(self.config.ignored_directories),
                files_counted=fetch_result.file_count,
                files_scanned=fetch_result.files_scanned,
                files_skipped=fetch_result.files_skipped,
            )

            # Phase 4: Analysis
            analyzer_results = await self._phase_analysis(temp_path, mode)

            # Phase 5: Translation
            translations = await self.batcher.translate_all(
                {
                    panel: result.findings if result.success and not result.skipped else []
                    for panel, result in analyzer_results.items()
                },
                timeout=mode.translation_timeout,
            )

            # Phase 6: Report
            panels = {
                panel: self.build_panel_result(panel, analyzer_results[panel], translations.get(panel))
                for panel in PANEL_ORDER
            }
            status = overall_status(list(panels.values()))

            report = ScanReport(
                id=scan_id,
                repo_url=validation.normalized_url,
                scan_mode=scan_mode,
                status=status,
                scan_scope=scan_scope,
                panels=panels,
                cloned_at=datetime.now(timezone.utc).isoformat(),
                scan_duration=int((time.monotonic() - started) * 1000),
                partial_reasons=self._partial_reasons(analyzer_results),
            )

            # Phase 7: Quota
            if status is not ScanStatus.ERROR:
                self.rate_limiter.increment(client_id)

            log.info("scan_complete", status=status.value, duration_ms=report.scan_duration)
            self._notify_observers("scan_completed", {"scan_id": scan_id, "status": status.value})

            return ScanResult(
                status=status,
                rate_limit=self.rate_limiter.check(client_id),
                report=report,
            )

        except Exception as e:
            log.error("scan_failed", error=str(e), exc_info=True)
            self._notify_observers("scan_failed", {"scan_id": scan_id, "error": str(e)})
            return ScanResult.failure(
                ErrorCode.INTERNAL_ERROR,
                "An unexpected error occurred during the scan.",
                self.rate_limiter.check(client_id),
            )

        finally:
            if temp_path is not None:
                self._cleanup(temp_path)

    async def _phase_analysis(self, path, mode: ScanModeConfig) -> Dict[Panel, AnalyzerResult]:
        """Run every analyzer concurrently; failures stay within their panel"""
        self.logger.info("phase_analysis_started", analyzers=len(self.analyzers))

        async with asyncio.TaskGroup() as tg:
            tasks = {
                panel: tg.create_task(
                    self._run_analyzer_safely(panel, path, getattr(mode, _TIMEOUT_FIELDS[panel]))
                )
                for panel in PANEL_ORDER
            }

        results = {panel: task.result() for panel, task in tasks.items()}

        self.logger.info(
            "phase_analysis_complete",
            findings={panel.value: len(result.findings) for panel, result in results.items()},
            failed=[panel.value for panel, result in results.items() if not result.success],
        )
        return results

    async def _run_analyzer_safely(self, panel: Panel, path, timeout: float) -> AnalyzerResult:
        analyzer = self.analyzers.get(panel)
        if analyzer is None:
            return AnalyzerResult(success=True, skipped=True)

        name = getattr(analyzer, "analyzer_name", panel.value)
        try:
            return await asyncio.wait_for(
                analyzer.run(path, timeout),
                timeout=timeout + ANALYZER_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            self.logger.error("analyzer_timeout", panel=panel.value, timeout=timeout)
            return AnalyzerResult.failed(f"{name} timeout after {timeout:g}s")
        except Exception as e:
            self.logger.error("analyzer_crashed", panel=panel.value, error=str(e), exc_info=True)
            return AnalyzerResult.failed(f"{name} crashed: {e}")

    @staticmethod
    def build_panel_result(
        panel: Panel,
        analyzer_result: AnalyzerResult,
        translation: Optional[TranslationResult],
    ) -> PanelResult:
        """
        Merge analyzer and translation outcomes into one panel.

        Analyzer failure wins over translation status; a panel whose
        translation failed outright is degraded to partial.
        """
        if analyzer_result.skipped:
            return PanelResult(panel=panel, status=PanelStatus.SKIPPED, status_reason="tool_unavailable")

        if not analyzer_result.success:
            return PanelResult(
                panel=panel,
                status=PanelStatus.PARTIAL,
                status_reason="tool_error",
                error_message=analyzer_result.error,
            )

        findings = translation.findings if translation else []
        result = PanelResult(
            panel=panel,
            status=PanelStatus.SUCCESS,
            finding_count=len(findings),
            findings=findings,
            truncated=translation.truncated if translation else False,
            original_count=translation.original_count if translation else 0,
        )

        if translation is not None and translation.status is TranslationStatus.FAILED:
            result.status = PanelStatus.PARTIAL
            result.status_reason = "translation_error"
            result.error_message = translation.status_reason

        return result

    def _partial_reasons(self, analyzer_results: Dict[Panel, AnalyzerResult]) -> List[str]:
        reasons = []
        for panel in PANEL_ORDER:
            result = analyzer_results[panel]
            if result.error:
                analyzer = self.analyzers.get(panel)
                name = getattr(analyzer, "analyzer_name", panel.value)
                reasons.append(f"{name}: {result.error}")
        return reasons

    def _cleanup(self, temp_path):
        self.logger.info("cleaning_up", path=str(temp_path))
        try:
            self.fetcher.cleanup(temp_path)
        except Exception as e:
            self.logger.error("cleanup_failed", path=str(temp_path), error=str(e))

    async def close(self):
        """Release the translation client's HTTP session"""
        client = getattr(self.batcher, "client", None)
        if client is not None and hasattr(client, "close"):
            await client.close()

    def get_status(self) -> Dict[str, Any]:
        """
        Get coordinator status.

        Returns:
            Status dictionary
        """
        return {
            "analyzers": {
                panel.value: repr(analyzer) for panel, analyzer in self.analyzers.items()
            },
            "observers": len(self.observers),
            "rate_limiter": self.rate_limiter.get_stats(),
        }
