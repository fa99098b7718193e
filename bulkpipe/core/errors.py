"""Error Hierarchy - typed, categorized exceptions for every bulkpipe failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - User-facing failures are NEVER raised; they travel as Response objects
    - FatalDefect marks a broken pipeline invariant and derives from BaseException,
      so `except Exception` blocks in callers and handlers do not swallow it
    - BulkPipeError is the recoverable branch (client-side decoding only)

Design Decisions:
    - Two roots instead of one: defects must reach the top-level guard untouched,
      recoverable errors must be catchable the ordinary way
    - DefectContext as dataclass: structured log extras without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CATALOG = "catalog"
    CONTRACT = "contract"
    CONFIGURATION = "configuration"
    DECODE = "decode"


@dataclass
class DefectContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    index: int | None = None
    indexes: list[int] | None = None
    error_code: int | None = None
    debug_info: dict[str, Any] | None = None

    def to_log_extra(self) -> dict[str, Any]:
        extra: dict[str, Any] = {}
        if self.index is not None:
            extra["index"] = self.index
        if self.indexes is not None:
            extra["indexes"] = self.indexes
        if self.error_code is not None:
            extra["error_code"] = self.error_code
        return extra


def _envelope(
    code: str, message: str, category: "ErrorCategory",
    severity: "ErrorSeverity", context: DefectContext,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            "timestamp": context.timestamp.isoformat(),
            "context": {
                "index": context.index,
                "indexes": context.indexes,
                "error_code": context.error_code,
                "debug_info": context.debug_info,
            },
        }
    }


# ─── Fatal Defects (pipeline invariants broken) ─────────────────

class FatalDefect(BaseException):
    """Base for programmer / internal-consistency defects. Never recovered."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        context: DefectContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = ErrorSeverity.CRITICAL
        self.context = context or DefectContext()

    def to_response(self) -> dict:
        """Structured envelope for the top-level guard that terminates the call."""
        return _envelope(
            self.code, self.message, self.category, self.severity, self.context,
        )


class DuplicateErrorCodeError(FatalDefect):
    """An error code was registered twice."""
    def __init__(self, error_code: int, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.error_code = error_code
        super().__init__(
            f"Error code {error_code} already defined",
            "DUPLICATE_ERROR_CODE", ErrorCategory.CATALOG, ctx,
        )


class InvalidMessageBundleError(FatalDefect):
    """A message bundle is empty or lacks the default locale."""
    def __init__(self, error_code: int, reason: str, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.error_code = error_code
        super().__init__(
            f"Invalid message bundle for error code {error_code}: {reason}",
            "INVALID_MESSAGE_BUNDLE", ErrorCategory.CATALOG, ctx,
        )


class CatalogFrozenError(FatalDefect):
    """Registration attempted after the catalog was frozen for traffic."""
    def __init__(self, error_code: int, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.error_code = error_code
        super().__init__(
            f"Cannot register error code {error_code}: catalog is frozen",
            "CATALOG_FROZEN", ErrorCategory.CONFIGURATION, ctx,
        )


class UnknownErrorCodeError(FatalDefect):
    """A response asked for a code that was never registered."""
    def __init__(self, error_code: int, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.error_code = error_code
        super().__init__(
            f"Error code {error_code} is not registered in the catalog",
            "UNKNOWN_ERROR_CODE", ErrorCategory.CATALOG, ctx,
        )


class MissingErrorCodesError(FatalDefect):
    """A client-error response was requested without any error code."""
    def __init__(self, index: int, status: int, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.index = index
        super().__init__(
            f"No errors defined for client error response (index {index}, status {status})",
            "MISSING_ERROR_CODES", ErrorCategory.CONTRACT, ctx,
        )


class UnhandledUnitError(FatalDefect):
    """The handler returned without setting an output on every unit."""
    def __init__(self, indexes: list[int], context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.indexes = list(indexes)
        super().__init__(
            f"Not all requests have been handled: missing output for indexes {indexes}",
            "UNHANDLED_UNIT", ErrorCategory.CONTRACT, ctx,
        )


# ─── Recoverable Errors (client-side decoding) ──────────────────

class BulkPipeError(Exception):
    """Base exception for recoverable bulkpipe errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: DefectContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or DefectContext()

    def to_response(self) -> dict:
        """Convert to the standardized error envelope."""
        return _envelope(
            self.code, self.message, self.category, self.severity, self.context,
        )


class ResponseIndexNotFoundError(BulkPipeError, LookupError):
    """No response in the batch carries the requested index."""
    def __init__(self, index: int, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.index = index
        super().__init__(
            f"Given index {index} not found",
            "RESPONSE_INDEX_NOT_FOUND", ErrorCategory.DECODE,
            ErrorSeverity.ERROR, ctx,
        )


class PayloadDecodeError(BulkPipeError):
    """The ok payload of a response does not fit the requested type."""
    def __init__(self, index: int, target: str, detail: str, context: DefectContext | None = None):
        ctx = context or DefectContext()
        ctx.index = index
        ctx.debug_info = {"target": target, "detail": detail}
        super().__init__(
            f"Cannot decode ok payload of index {index} into {target}: {detail}",
            "PAYLOAD_DECODE_FAILED", ErrorCategory.DECODE,
            ErrorSeverity.ERROR, ctx,
        )
        self.target = target
