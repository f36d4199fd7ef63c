from typing import Any, Optional


class CatalogError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(CatalogError):
    """Bad input, detected locally or by the server (400)."""

    def __init__(self, message: str, field: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.field = field


class NotFound(CatalogError):
    pass


class NetworkOrServerFailed(CatalogError):
    pass


class FetchFailed(CatalogError):
    def __init__(self, message: str, cause: Optional[CatalogError] = None):
        super().__init__(message, cause.status_code if cause else None)
        self.cause = cause


class MutationFailed(CatalogError):
    def __init__(self, message: str, cause: Optional[CatalogError] = None):
        super().__init__(message, cause.status_code if cause else None)
        self.cause = cause


class StaleEditIgnored(CatalogError):
    # never surfaced to the user
    pass


def error_from_response(status_code: int, body: Any, fallback: str = "") -> CatalogError:
    message = body.get("message") if isinstance(body, dict) else None
    message = message or fallback or f"HTTP {status_code}"
    if status_code == 400:
        return ValidationFailed(message, status_code=status_code)
    if status_code == 404:
        return NotFound(message, status_code=status_code)
    return NetworkOrServerFailed(message, status_code=status_code)
