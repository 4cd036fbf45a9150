"""
Error taxonomy for the news data layer
Provider failures are collected by the race fetcher; only CustomError reaches callers
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple


class NewsFeedError(Exception):
    """Base class for all news feed errors"""
    pass


class ProviderError(NewsFeedError):
    """A single upstream provider failed"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class UpstreamRejected(ProviderError):
    """Provider answered with a non-success status"""

    def __init__(self, provider: str, status: int, body: Any = None):
        self.status = status
        self.body = body
        detail = _body_message(body)
        message = f"upstream rejected request with status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(provider, message)


class UpstreamUnreachable(ProviderError):
    """No response was received from the provider"""

    def __init__(self, provider: str, reason: str = "no response received"):
        self.reason = reason
        super().__init__(provider, reason)


class RequestSetupFailed(ProviderError):
    """The outbound request could not be built or sent"""

    def __init__(self, provider: str, reason: str):
        self.reason = reason
        super().__init__(provider, reason)


class InternalFailure(ProviderError):
    """Unexpected exception escaped an adapter"""

    def __init__(self, provider: str, cause: BaseException):
        self.cause = cause
        super().__init__(provider, f"unexpected error: {cause!r}")


class AllProvidersFailed(NewsFeedError):
    """Every provider failed for a query"""

    def __init__(self, errors: Sequence[ProviderError]):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors) or "no providers configured")


class UnsupportedCacheBackend(NewsFeedError):
    """Configured cache backend is not recognized"""

    def __init__(self, backend: Any):
        self.backend = backend
        super().__init__(f"Cache type not supported: {backend!r}")


class CustomError(NewsFeedError):
    """User-facing error carrying an HTTP-style status"""

    def __init__(self, message: str, status: int = 500, errors: Optional[List[str]] = None):
        self.message = message
        self.status = status
        self.errors = list(errors) if errors else [message]
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {'errors': self.errors}


def _body_message(body: Any) -> Optional[str]:
    """Pull a human readable message out of a provider error body"""
    if body is None:
        return None
    if isinstance(body, dict):
        message = body.get('message')
        if message is None and isinstance(body.get('errors'), list):
            message = ", ".join(str(e) for e in body['errors'])
        return str(message) if message else None
    text = str(body).strip()
    return text[:200] if text else None


def status_for_failures(errors: Sequence[ProviderError]) -> int:
    """503 when any provider was unreachable, 502 when any rejected, else 500"""
    if any(isinstance(e, UpstreamUnreachable) for e in errors):
        return 503
    if any(isinstance(e, UpstreamRejected) for e in errors):
        return 502
    return 500


def to_error_response(error: BaseException) -> Tuple[int, Dict[str, Any]]:
    """Shape any exception into (status, {"errors": [...]})"""
    if isinstance(error, CustomError):
        return error.status, error.to_dict()
    return 500, {'errors': [str(error) or error.__class__.__name__]}
