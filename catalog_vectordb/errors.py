"""
Exception hierarchy for catalog reconciliation.

Every error raised out of a reconciliation run derives from
``CatalogSyncError`` and tells the caller two things: whether retrying the
whole run later is expected to help (``retryable``) and which engine state the
run was in when it failed (``state``, filled in by the engine).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple


class CatalogSyncError(Exception):
    """Base exception for all catalog sync operations.

    Attributes:
        message: Human-readable error message
        details: Optional additional context or metadata
        state: Engine state in which the run failed, if known
    """

    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.state: Optional[str] = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CatalogSyncError):
    """Raised when configuration is invalid or missing."""


class ReconciliationPreconditionError(CatalogSyncError):
    """A run was rejected before any side effect was attempted.

    Callers surface these as client-facing "not found" / "invalid state"
    failures.
    """


class InvalidTenantIdError(ReconciliationPreconditionError):
    def __init__(self, tenant_id: Any) -> None:
        super().__init__(
            "Tenant id is required and must be a non-empty string",
            details={"tenant_id": tenant_id},
        )


class TenantNotFoundError(ReconciliationPreconditionError):
    def __init__(self, tenant_id: str) -> None:
        super().__init__(f"Ecommerce not found: {tenant_id}", details={"tenant_id": tenant_id})
        self.tenant_id = tenant_id


class EmptyCatalogError(ReconciliationPreconditionError):
    def __init__(self, tenant_id: str) -> None:
        super().__init__(
            f"Catalog not found or empty for ecommerce: {tenant_id}",
            details={"tenant_id": tenant_id},
        )
        self.tenant_id = tenant_id


class EmbeddingAlignmentError(CatalogSyncError):
    """The embedding service returned a different number of vectors than texts."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Expected {expected} embeddings, but received {received}",
            details={"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class ExternalDependencyError(CatalogSyncError):
    """A collaborator call failed.

    Attributes:
        origin: Name of the collaborator that failed
    """

    retryable = True

    def __init__(
        self,
        origin: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"External dependency failure in {origin}: {message}", details)
        self.origin = origin


class MutationApplyError(ExternalDependencyError):
    """One or more of the concurrent index/store mutations failed.

    Mutations that succeeded are not rolled back; the next run's diff picks up
    whatever was not applied.
    """

    def __init__(self, failures: List[Tuple[str, str, BaseException]]) -> None:
        steps = [step for step, _, _ in failures]
        origins = list(dict.fromkeys(origin for _, origin, _ in failures))
        summary = "; ".join(f"{step}: {exc}" for step, _, exc in failures)
        super().__init__(",".join(origins), summary, details={"failed_steps": steps})
        self.failures = failures
        self.failed_steps = steps
