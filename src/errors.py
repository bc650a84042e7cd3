"""
Screener Error Taxonomy.

Defines the typed errors raised by every layer of the screening pipeline.
Each error carries a stable code so callers can branch on the failure kind,
plus the original cause for diagnostics.

Callers exposing the pipeline over HTTP use `http_status_for` to translate
an error into a response status.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ScreenerErrorCode(str, Enum):
    """Stable identifiers for every classified pipeline failure."""

    GITHUB_AUTH_FAILED = "GITHUB_AUTH_FAILED"
    GITHUB_REPO_NOT_FOUND = "GITHUB_REPO_NOT_FOUND"
    GITHUB_RATE_LIMITED = "GITHUB_RATE_LIMITED"
    GITHUB_API_ERROR = "GITHUB_API_ERROR"
    INVALID_REPO_URL = "INVALID_REPO_URL"
    MODEL_API_ERROR = "MODEL_API_ERROR"
    MODEL_RATE_LIMITED = "MODEL_RATE_LIMITED"
    EVALUATION_PARSE_ERROR = "EVALUATION_PARSE_ERROR"
    PIPELINE_ERROR = "PIPELINE_ERROR"


HTTP_STATUS_BY_CODE: Dict[ScreenerErrorCode, int] = {
    ScreenerErrorCode.GITHUB_AUTH_FAILED: 401,
    ScreenerErrorCode.GITHUB_REPO_NOT_FOUND: 404,
    ScreenerErrorCode.GITHUB_RATE_LIMITED: 429,
    ScreenerErrorCode.GITHUB_API_ERROR: 500,
    ScreenerErrorCode.INVALID_REPO_URL: 400,
    ScreenerErrorCode.MODEL_API_ERROR: 502,
    ScreenerErrorCode.MODEL_RATE_LIMITED: 429,
    ScreenerErrorCode.EVALUATION_PARSE_ERROR: 502,
    ScreenerErrorCode.PIPELINE_ERROR: 500,
}


class ScreenerError(Exception):
    """
    Base class for all classified screening failures.

    Attributes:
        message (str): Human readable, actionable description
        code (ScreenerErrorCode): Stable failure identifier
        details (Optional[Any]): Extra diagnostic payload (raw response, cause, ...)
    """

    code: ScreenerErrorCode = ScreenerErrorCode.PIPELINE_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ScreenerErrorCode] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def to_dict(self) -> Dict[str, str]:
        """Serialize the error into the shape returned to API callers."""
        return {"error": self.message, "code": self.code.value}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class GitHubAuthError(ScreenerError):
    code = ScreenerErrorCode.GITHUB_AUTH_FAILED


class RepositoryNotFoundError(ScreenerError):
    code = ScreenerErrorCode.GITHUB_REPO_NOT_FOUND


class GitHubRateLimitError(ScreenerError):
    code = ScreenerErrorCode.GITHUB_RATE_LIMITED


class GitHubAPIError(ScreenerError):
    code = ScreenerErrorCode.GITHUB_API_ERROR


class InvalidRepoURLError(ScreenerError):
    code = ScreenerErrorCode.INVALID_REPO_URL


class ModelAPIError(ScreenerError):
    code = ScreenerErrorCode.MODEL_API_ERROR


class ModelRateLimitError(ScreenerError):
    code = ScreenerErrorCode.MODEL_RATE_LIMITED


class EvaluationParseError(ScreenerError):
    code = ScreenerErrorCode.EVALUATION_PARSE_ERROR


class PipelineError(ScreenerError):
    code = ScreenerErrorCode.PIPELINE_ERROR


def http_status_for(error: BaseException) -> int:
    """
    Map an exception raised by the pipeline to an HTTP status code.

    Args:
        error (BaseException): Exception raised by any pipeline entry point

    Returns:
        int: Status code; 500 for anything that is not a ScreenerError
    """
    if isinstance(error, ScreenerError):
        return HTTP_STATUS_BY_CODE.get(error.code, 500)
    return 500
