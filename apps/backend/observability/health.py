"""
Health check utilities for the source adapters.

Sources are not pinged: several upstreams rate-limit or bill per call, so
readiness only reports which adapters are registered and whether any live
(non-mock) source is available.
"""

from typing import Any, Dict, Optional, TYPE_CHECKING
from datetime import datetime, timezone

from .logging import get_logger

if TYPE_CHECKING:
    from aggregation.repository import AggregationRepository

logger = get_logger(__name__)


class HealthCheckResult:
    """Result of a health check."""

    def __init__(self, name: str, status: str, details: Optional[Dict[str, Any]] = None, error: Optional[str] = None):
        self.name = name
        self.status = status  # "ok", "degraded", "error"
        self.details = details or {}
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status,
            "details": self.details,
        }
        if self.error:
            result["error"] = self.error
        return result


def check_sources(repository: "AggregationRepository") -> HealthCheckResult:
    """Report registered sources; mock-only or empty registries are degraded."""
    names = repository.source_names()
    live = [name for name in names if not name.lower().startswith("mock")]

    if not names:
        return HealthCheckResult(
            name="sources",
            status="error",
            details={"registered": [], "count": 0},
            error="No source adapters registered",
        )

    if not live:
        return HealthCheckResult(
            name="sources",
            status="degraded",
            details={
                "registered": names,
                "count": len(names),
                "message": "Only mock sources registered",
            },
        )

    return HealthCheckResult(
        name="sources",
        status="ok",
        details={"registered": names, "count": len(names)},
    )


def run_health_checks(repository: "AggregationRepository") -> Dict[str, Any]:
    """Run all readiness checks and fold them into one overall status."""
    checks = {"sources": check_sources(repository)}

    statuses = [check.status for check in checks.values()]
    if any(status == "error" for status in statuses):
        overall_status = "unhealthy"
        logger.warning("Readiness check failed", extra={"checks": list(checks.keys())})
    elif any(status == "degraded" for status in statuses):
        overall_status = "degraded"
    else:
        overall_status = "ready"

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {name: check.to_dict() for name, check in checks.items()},
    }
