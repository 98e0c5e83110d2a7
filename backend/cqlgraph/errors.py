"""
Error types for the cqlgraph backend.

This module defines the exceptions surfaced to callers of the
translation layer:
- BackendError: Base exception
- UnsupportedPredicateError: Condition cannot be expressed in CQL
- PreconditionError: Operation attempted in an invalid state
- ExecutionError: Store rejected a statement or batch

Invariants:
    - All errors inherit from BackendError
    - Errors carry a stable code for programmatic handling
    - Nothing raised here is retried internally
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class BackendError(Exception):
    """Base exception for all cqlgraph errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "BACKEND_ERROR"
        self.details = details or {}


class UnsupportedPredicateError(BackendError):
    """Condition has no CQL equivalent.

    Raised when:
    - An OR condition is translated
    - A NEQ relation is translated
    - An unknown condition object is translated

    Raised at translation time, before any statement reaches the store.
    """

    def __init__(self, message: str, condition: Any = None) -> None:
        super().__init__(
            message,
            code="UNSUPPORTED_PREDICATE",
            details={"condition": repr(condition)},
        )
        self.condition = condition


class PreconditionError(BackendError):
    """Operation attempted in an invalid state.

    Raised when:
    - A batch is committed against a closed session
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="PRECONDITION_FAILED")


class ExecutionError(BackendError):
    """The store rejected a statement or batch.

    The rejected statements are kept for diagnosis. A batch that fails
    with this error is left intact so the caller may retry or abandon it.

    Attributes:
        statements: Statements that were submitted when the store failed
    """

    def __init__(self, message: str, statements: Sequence[Any] = ()) -> None:
        rendered: List[str] = [str(s) for s in statements]
        super().__init__(
            message,
            code="EXECUTION_FAILED",
            details={"statements": rendered},
        )
        self.statements = list(statements)
