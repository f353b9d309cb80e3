"""
GitHub Fetcher - Downloads a repository snapshot into a temp directory.

Instead of cloning, the fetcher lists the repository tree through the
GitHub API and downloads the allowed source files from the raw content
host, enforcing the scan mode's file-count and per-file size ceilings.

The returned directory belongs to the caller, who must pass it to
cleanup() once the scan is over.
"""

import asyncio
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from ..config import AppConfig
from ..errors import ErrorCode, FetchError


GITHUB_URL_PATTERN = re.compile(
    r"^https://github\.com/(?P<owner>[a-zA-Z0-9_-]+)/(?P<repo>[a-zA-Z0-9_.-]+)/?$"
)

USER_AGENT = "LumenClew/1.0"


@dataclass
class UrlValidation:
    """Outcome of repository URL validation"""
    is_valid: bool
    normalized_url: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    error: Optional[str] = None


def validate_github_url(url: Optional[str]) -> UrlValidation:
    """
    Check that a URL names a GitHub owner/repo pair.

    Args:
        url: User-supplied repository URL

    Returns:
        UrlValidation with the URL stripped of its trailing slash
    """
    trimmed = (url or "").strip()

    if not trimmed:
        return UrlValidation(False, error="Please enter a GitHub repository URL")

    if not trimmed.startswith("https://github.com/"):
        return UrlValidation(False, error="URL must start with https://github.com/")

    match = GITHUB_URL_PATTERN.match(trimmed)
    if not match:
        return UrlValidation(
            False,
            error="Invalid GitHub repository URL format. Expected: https://github.com/owner/repo",
        )

    return UrlValidation(
        True,
        normalized_url=trimmed.rstrip("/"),
        owner=match.group("owner"),
        repo=match.group("repo"),
    )


@dataclass
class FetchResult:
    """Outcome of a repository fetch"""
    success: bool
    temp_path: Optional[Path] = None
    file_count: int = 0
    files_scanned: int = 0
    files_skipped: int = 0
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def failed(cls, error: str, code: ErrorCode = ErrorCode.REPO_NOT_FOUND) -> "FetchResult":
        return cls(success=False, error=error, error_code=code)


class GitHubFetcher:
    """
    Fetches repository files over the GitHub HTTP APIs.

    Example:
        >>> fetcher = GitHubFetcher(config)
        >>> result = await fetcher.fetch("https://github.com/octo/app", "fast")
        >>> ...
        >>> fetcher.cleanup(result.temp_path)
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        tree_timeout: float = 30.0,
        file_timeout: float = 10.0,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Application configuration (limits, hosts)
            session: Shared aiohttp session (one per fetch if None)
            tree_timeout: Timeout for the tree listing request
            file_timeout: Timeout for each raw file download
        """
        self.config = config or AppConfig()
        self.session = session
        self.tree_timeout = tree_timeout
        self.file_timeout = file_timeout

        self.logger = structlog.get_logger(__name__)

    async def fetch(self, url: str, scan_mode: str = "fast") -> FetchResult:
        """
        Download the allowed files of a repository.

        Args:
            url: Repository URL (https://github.com/owner/repo)
            scan_mode: 'fast' or 'full' (selects the file ceiling)

        Returns:
            FetchResult with temp_path on success
        """
        validation = validate_github_url(url)
        if not validation.is_valid:
            return FetchResult.failed("Invalid GitHub URL format")

        owner, repo = validation.owner, validation.repo
        self.logger.info("fetching_repository", owner=owner, repo=repo, mode=scan_mode)

        session = self.session or aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
        try:
            return await self._fetch_with_session(session, owner, repo, scan_mode)
        except FetchError as e:
            self.logger.error("fetch_failed", owner=owner, repo=repo, error=str(e), code=e.code.value)
            return FetchResult.failed(str(e), e.code)
        finally:
            if self.session is None:
                await session.close()

    async def _fetch_with_session(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        repo: str,
        scan_mode: str,
    ) -> FetchResult:
        tree = await self._fetch_tree(session, owner, repo)

        all_files = [item for item in tree if item.get("type") == "blob"]
        to_download = self.select_files(all_files, self.config.mode(scan_mode).max_files)

        self.logger.info(
            "repository_files_selected",
            total=len(all_files),
            to_download=len(to_download),
        )

        temp_path = Path(tempfile.mkdtemp(prefix="lumen-"))
        try:
            files_scanned = await self._download_all(session, owner, repo, to_download, temp_path)
        except BaseException:
            self.cleanup(temp_path)
            raise

        self.logger.info(
            "fetch_complete",
            files_scanned=files_scanned,
            files_skipped=len(all_files) - files_scanned,
        )

        return FetchResult(
            success=True,
            temp_path=temp_path,
            file_count=len(all_files),
            files_scanned=files_scanned,
            files_skipped=len(all_files) - files_scanned,
        )

    async def _fetch_tree(self, session, owner: str, repo: str) -> List[Dict[str, Any]]:
        tree_url = f"{self.config.github_api_url}/repos/{owner}/{repo}/git/trees/HEAD?recursive=1"
        headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": USER_AGENT}

        try:
            async with session.get(
                tree_url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.tree_timeout),
            ) as response:
                if response.status == 404:
                    raise FetchError("Repository not found (404)")
                if response.status in (403, 429):
                    raise FetchError(
                        f"GitHub API rate limit reached ({response.status})",
                        ErrorCode.UPSTREAM_RATE_LIMITED,
                    )
                if response.status >= 400:
                    raise FetchError(f"GitHub API error: {response.status} {response.reason}")
                data = await response.json(content_type=None)
        except asyncio.TimeoutError:
            raise FetchError("GitHub API request timed out", ErrorCode.CLONE_TIMEOUT)
        except (aiohttp.ClientError, ValueError) as e:
            raise FetchError(f"Failed to fetch repository tree: {e}")

        if not isinstance(data, dict) or not isinstance(data.get("tree"), list):
            raise FetchError("Unexpected GitHub tree response")
        return data["tree"]

    def select_files(self, blobs: List[Dict[str, Any]], max_files: int) -> List[Dict[str, Any]]:
        """
        Apply the ignore list, extension allowlist and size/count ceilings.

        Args:
            blobs: Tree entries of type 'blob'
            max_files: File-count ceiling of the scan mode

        Returns:
            Entries to download, in tree order
        """
        max_bytes = self.config.max_file_size_bytes
        selected = []

        for item in blobs:
            file_path = item.get("path", "")
            if not self.is_allowed_file(file_path):
                continue
            size = item.get("size")
            if size and size > max_bytes:
                continue
            selected.append(item)
            if len(selected) >= max_files:
                break

        return selected

    def is_allowed_file(self, file_path: str) -> bool:
        """Whether a repository path passes the ignore list and extension allowlist"""
        for ignored in self.config.ignored_directories:
            if file_path.startswith(ignored) or f"/{ignored}" in file_path:
                return False
        suffix = PurePosixPath(file_path).suffix.lower()
        return suffix in self.config.allowed_file_types

    async def _download_all(self, session, owner, repo, items, temp_path: Path) -> int:
        semaphore = asyncio.Semaphore(self.config.download_concurrency)

        async def download(item) -> bool:
            async with semaphore:
                return await self._download_file(session, owner, repo, item["path"], temp_path)

        results = await asyncio.gather(*(download(item) for item in items))
        return sum(1 for ok in results if ok)

    async def _download_file(self, session, owner, repo, file_path: str, temp_path: Path) -> bool:
        target = (temp_path / file_path).resolve()
        if not target.is_relative_to(temp_path.resolve()):
            self.logger.warning("unsafe_repository_path", file=file_path)
            return False

        url = f"{self.config.github_raw_url}/{owner}/{repo}/HEAD/{file_path}"
        try:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.file_timeout),
            ) as response:
                if response.status != 200:
                    self.logger.warning("download_failed", file=file_path, status=response.status)
                    return False
                content = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning("download_error", file=file_path, error=str(e))
            return False

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return True

    def cleanup(self, temp_path):
        """Remove a fetched repository directory"""
        if temp_path is None:
            return
        path = Path(temp_path)
        if path.exists():
            shutil.rmtree(path, ignore_errors=True)
            self.logger.debug("temp_directory_removed", path=str(path))
