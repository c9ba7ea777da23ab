"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI and any embedding application consume this type.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from rentalctl.domain.errors import DomainError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult.

    ``detail["kind"]`` carries the error category (``not_found``,
    ``conflict``, ``eligibility``, ``validation`` or ``payment``).
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: DomainError) -> ServiceError:
        return cls(code=exc.code, message=str(exc), detail={"kind": str(exc.kind), **exc.detail})

    @property
    def kind(self) -> str | None:
        return self.detail.get("kind")


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_rental"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues (failed notifications, plugin errors).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls, op: str, exc: DomainError, warnings: list[str] | None = None
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            warnings=list(warnings or []),
            error=ServiceError.from_exception(exc),
        )
