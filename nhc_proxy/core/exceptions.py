"""Unified proxy exception taxonomy.

Provides a shared base exception hierarchy for the format-translation
core, the upstream client, and the request router. Every domain
exception inherits from ``ProxyError`` and carries structured context
fields that let the router pick an HTTP status and a log level without
inspecting messages.

Taxonomy categories
-------------------
- ``ValidationError``:  bad request input (e.g. malformed storm id), never retryable.
- ``TransientError``:   temporary failures (timeout, connection refused), retryable.
- ``PermanentError``:   unrecoverable domain failures (no cone in KML), not retryable.
- ``ContractError``:    upstream payload shape drift, never retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload; the router logs it for every failed request.
"""

from __future__ import annotations


class ProxyError(Exception):
    """Base exception for all proxy-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Stage where the error occurred
            (e.g. ``"unpack_kmz"``, ``"extract_kml"``, ``"upstream"``).
        code: Machine-readable error code (e.g. ``"KMZ_NO_KML"``).
        retryable: Whether a caller could reasonably retry the operation.
        correlation_id: Request correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(ProxyError):
    """Input validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(ProxyError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(ProxyError):
    """Unrecoverable domain failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(ProxyError):
    """Upstream payload or schema drift. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
