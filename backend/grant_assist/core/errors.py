"""
Gateway Errors

Exception taxonomy for the assistant gateway. Each error knows its HTTP
status and machine-readable code, and renders the JSON error body returned
to callers.
"""
from typing import Any, Dict, List, Optional


class GatewayError(Exception):
    """Base class for every error surfaced to API callers."""
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def headers(self) -> Dict[str, str]:
        return {}

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class AuthenticationError(GatewayError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "Missing or invalid authorization credential"):
        super().__init__(message)

    @property
    def headers(self) -> Dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class RateLimitExceeded(GatewayError):
    status_code = 429
    code = "rate_limited"

    def __init__(self, limit: int, window_minutes: int):
        super().__init__(
            f"Rate limit exceeded: at most {limit} requests per {window_minutes} minutes. "
            f"Please try again later."
        )
        self.limit = limit
        self.window_minutes = window_minutes

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.window_minutes * 60),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
        }

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["rate_limit"] = {
            "remaining": 0,
            "limit": self.limit,
            "windowMinutes": self.window_minutes,
        }
        return payload


class MalformedRequest(GatewayError):
    status_code = 400
    code = "malformed_json"

    def __init__(self, message: str = "Request body is not valid JSON"):
        super().__init__(message)


class ValidationError(GatewayError):
    status_code = 400
    code = "validation_failed"

    def __init__(self, details: List[Dict[str, str]], message: str = "Request validation failed"):
        super().__init__(message)
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = self.details
        return payload


class UpstreamError(GatewayError):
    """The generation service failed or returned an unusable result."""
    status_code = 500
    code = "upstream_error"

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class InternalError(GatewayError):
    """Store unreachable or service misconfigured."""
    status_code = 500
    code = "internal_error"
