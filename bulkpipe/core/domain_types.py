"""Domain Types - rich types that replace bare primitives across the pipeline.

Invariants:
    - Built-in error codes are negative ints; consumer codes may use any other int
    - Unit indexes are non-negative and assigned once at normalization
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - IntEnum for built-in codes: they compare equal to the plain ints used on the wire
    - str Enums for outcome classes and unit states: serialize to JSON without custom encoders
    - Numeric HTTP-like statuses are NOT defined here; config.StatusCodes owns them
"""

from enum import Enum, IntEnum


DEFAULT_LOCALE = "en"


# ─── Enums ───────────────────────────────────────────────────────

class ErrorCode(IntEnum):
    """Reserved built-in error codes. Consumers register more in the catalog."""
    INTERNAL_SERVER_ERROR = -1
    EMPTY_REQUEST_NOT_ALLOWED = -2
    MAX_REQUESTS_EXCEEDED = -3
    OPERATION_ABORTED = -4
    INPUT_VALIDATION_FAILED = -5


class Locale(str, Enum):
    """Locales carried by the built-in message bundles."""
    EN = "en"
    DEV = "dev"


class OutcomeStatus(str, Enum):
    """Outcome class of a single response, mapped to a number by StatusCodes."""
    OK = "ok"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"
    SERVICE_UNAVAILABLE = "service_unavailable"


# Outcome classes that are unreportable without at least one error code
CLIENT_ERROR_OUTCOMES = frozenset({
    OutcomeStatus.BAD_REQUEST,
    OutcomeStatus.NOT_FOUND,
})


class UnitState(str, Enum):
    """Per-unit lifecycle. Every rejection is terminal; there is no retry edge."""
    CREATED = "created"
    ADMISSION_REJECTED = "admission_rejected"
    INPUT_REJECTED = "input_rejected"
    HANDLED = "handled"
    OUTPUT_REJECTED = "output_rejected"
    FINALIZED = "finalized"


TERMINAL_STATES = frozenset({
    UnitState.ADMISSION_REJECTED,
    UnitState.INPUT_REJECTED,
    UnitState.OUTPUT_REJECTED,
    UnitState.FINALIZED,
})


class PipelineStage(str, Enum):
    """Stages of one run, used for timings and log context."""
    INPUT_VALIDATION = "input_validation"
    HANDLER = "handler"
    OUTPUT_VALIDATION = "output_validation"
