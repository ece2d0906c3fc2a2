"""
Structured error type for statement execution.

Every failure that leaves the gateway is an ``ExecutionError``. Instead of a
hierarchy of exception classes, one class carries a ``kind`` tag plus an
``ErrorContext`` with the attempted SQL and the connection address, so callers
match on ``error.kind`` and never see a raw driver exception.

Manifesto:
    - **One error type:** ``ExecutionError`` for every execution failure
    - **Explicit kinds:** ``ErrorKind`` enum, matched by callers
    - **Rich context:** attempted SQL, target address, operation name
    - **Error chaining:** the driver exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      ExecutionError                          │
        │            (kind, context, cause, retryable=False)           │
        ├─────────────────────────────────────────────────────────────┤
        │  MULTI_STATEMENT_NOT_ALLOWED   query/update got 2+ strings   │
        │  CONNECTION_UNAVAILABLE        offline / inert connection    │
        │  UNSUPPORTED_OPERATION         e.g. update(callable)         │
        │  DRIVER_FAILURE                wrapped driver exception      │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = ExecutionError.connection_unavailable("offline:oracle")
    >>> err.kind
    <ErrorKind.CONNECTION_UNAVAILABLE: 'CONNECTION_UNAVAILABLE'>
    >>> err.context.address
    'offline:oracle'

    Wrapping a driver failure:

    >>> try:
    ...     raise RuntimeError("table T does not exist")
    ... except RuntimeError as e:
    ...     err = translate_driver_error(e, ["SELECT * FROM T"], "sqlite://:memory:")
    >>> err.kind is ErrorKind.DRIVER_FAILURE
    True

Guardrails:
    ❌ DON'T: Raise driver exceptions past the executor
    ✅ DO: Wrap them with ``translate_driver_error``

    ❌ DON'T: Retry inside the gateway
    ✅ DO: Let callers decide; ``retryable`` is always ``False`` here

Tags:
    error-handling, error-context, sqlgate, execution, observability
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification of an execution failure."""

    MULTI_STATEMENT_NOT_ALLOWED = "MULTI_STATEMENT_NOT_ALLOWED"
    CONNECTION_UNAVAILABLE = "CONNECTION_UNAVAILABLE"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    DRIVER_FAILURE = "DRIVER_FAILURE"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an ``ExecutionError``.

    Attributes:
        sql: The rendered SQL that was attempted, one entry per string
        address: URL or identifier of the target connection
        operation: Executor operation name (``query``, ``update``, ...)
        metadata: Additional key-value pairs
    """

    sql: tuple[str, ...] = ()
    address: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        if self.sql:
            result["sql"] = list(self.sql)
        for key in ["address", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ExecutionError(Exception):
    """
    The single exception raised by the gateway.

    Callers distinguish failures by ``kind``; the remaining fields exist
    to reproduce the failing call.

    Examples:
        >>> err = ExecutionError("boom", kind=ErrorKind.DRIVER_FAILURE)
        >>> err.to_dict()["kind"]
        'DRIVER_FAILURE'
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    # -- Constructors for each kind ------------------------------------------

    @classmethod
    def multi_statement(cls, sql: Sequence[str], operation: str) -> ExecutionError:
        return cls(
            f"Can only {operation} with statements that render to exactly one "
            f"SQL string, got {len(sql)}",
            kind=ErrorKind.MULTI_STATEMENT_NOT_ALLOWED,
            context=ErrorContext(sql=tuple(sql), operation=operation),
        )

    @classmethod
    def connection_unavailable(cls, address: str | None) -> ExecutionError:
        return cls(
            "Cannot execute commands against an offline database",
            kind=ErrorKind.CONNECTION_UNAVAILABLE,
            context=ErrorContext(address=address),
        )

    @classmethod
    def unsupported(cls, message: str, operation: str | None = None) -> ExecutionError:
        return cls(
            message,
            kind=ErrorKind.UNSUPPORTED_OPERATION,
            context=ErrorContext(operation=operation),
        )

    # -- Fluent API / serialization ------------------------------------------

    def with_context(self, **kwargs: Any) -> ExecutionError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ExecutionError(...).with_context(operation="query", changeset="42")
        """
        for key, value in kwargs.items():
            if key == "sql":
                self.context.sql = tuple(value)
            elif hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def is_kind(self, kind: ErrorKind) -> bool:
        return self.kind is kind

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, kind={self.kind.value})"


def format_driver_message(sql: Sequence[str], address: str | None, cause: BaseException) -> str:
    """Build the human-readable message for a wrapped driver failure.

    Rendered strings are joined with ``"; on <address>"`` so the target
    connection shows up next to every attempted statement.
    """
    joined = f"; on {address}".join(sql)
    return f"Error executing SQL {joined}: {cause}"


def translate_driver_error(
    cause: BaseException,
    sql: Sequence[str],
    address: str | None,
    *,
    operation: str | None = None,
) -> ExecutionError:
    """Wrap a driver exception as a ``DRIVER_FAILURE`` execution error.

    An ``ExecutionError`` is returned unchanged so callbacks that raise
    one themselves are not double wrapped.
    """
    if isinstance(cause, ExecutionError):
        return cause
    return ExecutionError(
        format_driver_message(sql, address, cause),
        kind=ErrorKind.DRIVER_FAILURE,
        context=ErrorContext(sql=tuple(sql), address=address, operation=operation),
        cause=cause,
    )


__all__ = [
    "ErrorKind",
    "ErrorContext",
    "ExecutionError",
    "format_driver_message",
    "translate_driver_error",
]
