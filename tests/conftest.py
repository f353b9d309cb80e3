"""
Shared fakes for the unit and integration tests.

The fakes implement the same small interfaces the coordinator and batcher
use (fetch/cleanup, run, has_credentials/send), so no network, subprocess
or external tool is needed.
"""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path

import pytest

from lumenclew.analyzers import AnalyzerResult, Finding, Panel, Severity, Tool
from lumenclew.fetcher import FetchResult


_TOOL_BY_PANEL = {
    Panel.QUALITY: Tool.ESLINT,
    Panel.DEPENDENCY: Tool.NPM_AUDIT,
    Panel.SECRET: Tool.SECRETS_REGEX,
    Panel.ACCESSIBILITY: Tool.A11Y_ANALYZER,
}


def make_finding(
    rule_id: str = "rule",
    severity: Severity = Severity.MEDIUM,
    panel: Panel = Panel.QUALITY,
    file: str = "src/app.js",
    line: int = 1,
    message: str = None,
) -> Finding:
    return Finding.create(
        panel=panel,
        tool=_TOOL_BY_PANEL[panel],
        rule_id=rule_id,
        severity=severity,
        message=message or f"{rule_id} at line {line}",
        file=file,
        line=line,
    )


def translation_for(finding: Finding, text: str = None) -> dict:
    """A well-formed translated object for a finding"""
    return {
        "id": finding.id,
        "plainLanguage": text or f"Plain: {finding.message}",
        "context": "Some context",
        "importance": "fyi",
        "reflection": "Worth a look?",
        "commonApproaches": ["Approach A", "Approach B"],
    }


class FakeFetcher:
    """Creates a real temp directory so cleanup can be observed"""

    def __init__(self, result: FetchResult = None, raises: Exception = None):
        self.result = result
        self.raises = raises
        self.fetched_paths = []
        self.cleaned_paths = []

    async def fetch(self, url: str, scan_mode: str = "fast") -> FetchResult:
        if self.raises is not None:
            raise self.raises
        if self.result is not None:
            return self.result

        temp_path = Path(tempfile.mkdtemp(prefix="lumen-test-"))
        (temp_path / "index.js").write_text("console.log('hi')\n")
        self.fetched_paths.append(temp_path)
        return FetchResult(
            success=True,
            temp_path=temp_path,
            file_count=3,
            files_scanned=1,
            files_skipped=2,
        )

    def cleanup(self, temp_path):
        self.cleaned_paths.append(temp_path)
        shutil.rmtree(temp_path, ignore_errors=True)


class FakeAnalyzer:
    """Analyzer stand-in with scripted behaviour"""

    def __init__(
        self,
        name: str = "Fake",
        findings=None,
        raises: Exception = None,
        delay: float = 0.0,
        skipped: bool = False,
        success: bool = True,
        error: str = None,
    ):
        self.analyzer_name = name
        self.findings = findings or []
        self.raises = raises
        self.delay = delay
        self.skipped = skipped
        self.success = success
        self.error = error
        self.calls = 0

    async def run(self, path, timeout: float) -> AnalyzerResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        if self.skipped:
            return AnalyzerResult(success=True, skipped=True)
        return AnalyzerResult(success=self.success, findings=list(self.findings), error=self.error)


class FakeTranslationClient:
    """
    Translation client stand-in.

    responder(user_prompt) returns the response text, or raises.
    The default echoes a translation for every id in the prompt.
    """

    def __init__(self, responder=None, has_credentials: bool = True):
        self.responder = responder
        self.has_credentials = has_credentials
        self.prompts = []
        self.closed = False

    async def send(self, user_prompt: str, system_prompt: str) -> str:
        self.prompts.append(user_prompt)
        if self.responder is None:
            return json.dumps([
                {
                    "id": item["id"],
                    "plainLanguage": f"Plain: {item['message']}",
                    "context": "Context",
                    "reflection": "Reflect?",
                }
                for item in prompt_findings(user_prompt)
            ])
        result = self.responder(user_prompt)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    async def close(self):
        self.closed = True


def prompt_findings(user_prompt: str) -> list:
    """Extract the findings JSON array embedded in a user prompt"""
    return json.loads(user_prompt.split("Findings to translate:", 1)[1])


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()
