"""
Error taxonomy shared by every stage of the scan pipeline.

Input, quota and acquisition errors short-circuit a scan with one of the
ErrorCode values below. Analyzer and translation errors never leave their
own boundary; they are converted into panel status and fallback findings.
"""

from enum import Enum


class ErrorCode(Enum):
    """Error codes surfaced to API clients"""
    INVALID_URL = "INVALID_URL"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    REPO_NOT_FOUND = "REPO_NOT_FOUND"
    CLONE_TIMEOUT = "CLONE_TIMEOUT"
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LumenClewError(Exception):
    """Base exception for all pipeline errors"""
    pass


class ConfigError(LumenClewError):
    """Raised when configuration cannot be loaded or validated"""
    pass


class FetchError(LumenClewError):
    """Raised when the repository cannot be acquired"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.REPO_NOT_FOUND):
        super().__init__(message)
        self.code = code


class AnalyzerError(LumenClewError):
    """Base exception for analyzer errors"""
    pass


class AnalyzerTimeoutError(AnalyzerError):
    """Raised when an analyzer exceeds its time budget"""
    pass


class TranslationServiceError(LumenClewError):
    """Raised when the translation service answers with a non-2xx status"""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status
