"""
Exception taxonomy for the provider and commit paths.

Every error carries a machine-readable code and the HTTP status the commit
endpoint answers with, so callers can render a precise failure reason.
"""

from typing import Any, Dict, List, Optional


class ChatCommitError(Exception):
    """Base exception for Chatcommit.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: str = "CHATCOMMIT_ERROR",
        status_code: int = 500,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response dict."""
        result = {"error": self.message, "code": self.code}
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


class MissingCredential(ChatCommitError):
    """Raised before any network call when a required credential is absent."""

    def __init__(self, name: str):
        super().__init__(
            message=f"{name} is missing",
            code="MISSING_CREDENTIAL",
            status_code=500,
            suggestion=f"Set the credential for {name} in the environment or .env file",
            details={"credential": name},
        )
        self.name = name


class UpstreamError(ChatCommitError):
    """Raised when a provider or remote host answers with a non-success status."""

    def __init__(self, source: str, message: str, status: Optional[int] = None):
        label = f"{source.upper()} API Error"
        super().__init__(
            message=f"{label}: {message}",
            code="UPSTREAM_ERROR",
            status_code=502,
            details={"source": source, "status": status},
        )
        self.source = source
        self.status = status
        self.upstream_message = message


class MalformedResponse(ChatCommitError):
    """Provider text could not be decoded as the expected JSON document.

    The parser recovers from this locally; it never reaches the caller.
    """

    def __init__(self, raw: str, reason: str = ""):
        super().__init__(
            message=f"Malformed provider response: {reason}".rstrip(": "),
            code="MALFORMED_RESPONSE",
            status_code=502,
        )
        self.raw = raw


class InvalidRequest(ChatCommitError):
    """A commit request failed local field validation."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(
            message=message,
            code="INVALID_REQUEST",
            status_code=400,
            details={"missing": missing} if missing else None,
        )
        self.missing = missing or []


class CommitFailed(ChatCommitError):
    """The remote host rejected the write, including stale-revision conflicts."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(
            message=message,
            code="COMMIT_FAILED",
            status_code=500,
            suggestion="Re-run the commit so the current file revision is read again",
            details={"status": status} if status is not None else None,
        )
        self.status = status
