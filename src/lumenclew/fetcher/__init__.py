"""
Fetcher module - Repository acquisition.

- GitHubFetcher: Downloads repository files into a temp directory
- validate_github_url: Owner/repo URL validation
"""

from .github_fetcher import (
    FetchResult,
    GitHubFetcher,
    UrlValidation,
    validate_github_url,
)


__all__ = [
    "FetchResult",
    "GitHubFetcher",
    "UrlValidation",
    "validate_github_url",
]
