"""
Custom exception hierarchy for the Model Aggregator backend.

All application errors inherit from ModelAggregatorError, which carries an
HTTP status code and renders to a JSON body via ``to_dict``. Upstream
adapter failures are never surfaced through this hierarchy on the search
path; they are absorbed by the safe invocation wrapper.

Exception Hierarchy:
    ModelAggregatorError (base)
    ├── ResourceNotFoundError
    │   ├── UnknownSourceError
    │   └── ListingNotFoundError
    └── ExternalServiceError
        └── SourceAdapterError

Usage:
    from exceptions import UnknownSourceError

    raise UnknownSourceError("Etsy")
"""

from typing import Optional, Dict, Any


class ModelAggregatorError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        detail: Optional dict with additional error context
        status_code: Suggested HTTP status code (for API errors)
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class ResourceNotFoundError(ModelAggregatorError):
    """Raised when a requested resource doesn't exist."""

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=404)


class UnknownSourceError(ResourceNotFoundError):
    """
    Raised when a detail lookup names a source with no registered adapter.

    Examples:
        raise UnknownSourceError("Etsy")
    """

    def __init__(self, source: str):
        super().__init__(f"Unknown source: {source}", detail={"source": source})
        self.source = source


class ListingNotFoundError(ResourceNotFoundError):
    """
    Raised when the adapter could not produce the requested listing.

    Covers both an upstream miss and an upstream failure; detail lookups do
    not distinguish the two for callers.
    """

    def __init__(self, source: str, external_id: str):
        super().__init__(
            f"Model {external_id} not found on {source}",
            detail={"source": source, "external_id": external_id},
        )
        self.source = source
        self.external_id = external_id


class ExternalServiceError(ModelAggregatorError):
    """Base exception for upstream service failures."""

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        service_name: Optional[str] = None,
    ):
        if service_name and detail is None:
            detail = {"service": service_name}
        elif service_name and detail:
            detail["service"] = service_name

        super().__init__(message, detail=detail, status_code=502)


class SourceAdapterError(ExternalServiceError):
    """
    Raised by an adapter when an upstream returns an unusable response.

    Examples:
        raise SourceAdapterError("Could not extract buildId", source="MakerWorld")
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ):
        if source and detail is None:
            detail = {"source": source}
        elif source and detail:
            detail["source"] = source

        super().__init__(message, detail=detail, service_name="source_adapter")
