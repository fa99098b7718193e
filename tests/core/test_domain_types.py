"""Domain Types - tests for built-in codes and lifecycle enums.

Tests cover:
    - Built-in codes are the reserved negative integers
    - Terminal states exclude CREATED and HANDLED
    - Client-error outcomes are bad request and not found only
"""

from bulkpipe.core.domain_types import (
    CLIENT_ERROR_OUTCOMES,
    TERMINAL_STATES,
    ErrorCode,
    OutcomeStatus,
    UnitState,
)


def test_builtin_codes_are_reserved_negatives():
    assert [int(c) for c in ErrorCode] == [-1, -2, -3, -4, -5]
    assert ErrorCode.OPERATION_ABORTED == -4


def test_terminal_states():
    assert UnitState.CREATED not in TERMINAL_STATES
    assert UnitState.HANDLED not in TERMINAL_STATES
    assert UnitState.FINALIZED in TERMINAL_STATES


def test_client_error_outcomes():
    assert CLIENT_ERROR_OUTCOMES == {OutcomeStatus.BAD_REQUEST, OutcomeStatus.NOT_FOUND}


def test_enums_serialize_as_strings():
    assert UnitState.INPUT_REJECTED.value == "input_rejected"
    assert OutcomeStatus.SERVICE_UNAVAILABLE == "service_unavailable"
