"""Response Builders - tests for error/ok construction and whole-batch failure.

Tests cover:
    - build_error resolves every code through the catalog at build time
    - build_ok sets the success status and no errors
    - Client-error builders require at least one code
    - internal_error defaults to INTERNAL_SERVER_ERROR
    - Client vs server OPERATION_ABORTED statuses
    - fail_all gives each unit its own index
    - Locale and custom status mapping are honored
"""

import pytest

from bulkpipe.config import StatusCodes
from bulkpipe.core.batch import RequestUnit
from bulkpipe.core.domain_types import ErrorCode, UnitState
from bulkpipe.core.error_catalog import ErrorCatalog
from bulkpipe.core.errors import MissingErrorCodesError, UnknownErrorCodeError
from bulkpipe.core.responses import ResponseBuilder


def _units(n: int) -> list[RequestUnit]:
    return [RequestUnit(index=i, input={"n": i}) for i in range(n)]


# ─── build_error / build_ok ──────────────────────────────────────

def test_build_error_resolves_codes_in_order(builder):
    response = builder.build_error(
        3, 400, ErrorCode.EMPTY_REQUEST_NOT_ALLOWED, ErrorCode.MAX_REQUESTS_EXCEEDED,
    )
    assert response.index == 3
    assert response.status == 400
    assert response.ok is None
    assert response.error_codes == [-2, -3]
    assert response.errors[0].message == "Empty request not allowed"


def test_build_error_sees_codes_registered_before_construction():
    catalog = ErrorCatalog.with_builtins()
    builder = ResponseBuilder(catalog)
    catalog.register(1001, {"en": "Customer not found"})
    response = builder.not_found(0, 1001)
    assert response.errors[0].message == "Customer not found"


def test_build_error_with_unknown_code_is_fatal(builder):
    with pytest.raises(UnknownErrorCodeError):
        builder.bad_request(0, 999)


def test_build_ok_sets_payload_and_success_status(builder):
    response = builder.build_ok(5, {"id": 42})
    assert response.index == 5
    assert response.status == 200
    assert response.errors == []
    assert response.ok == {"id": 42}


# ─── Client errors need codes ────────────────────────────────────

def test_bad_request_without_codes_is_fatal(builder):
    with pytest.raises(MissingErrorCodesError):
        builder.bad_request(0)


def test_not_found_without_codes_is_fatal(builder):
    with pytest.raises(MissingErrorCodesError):
        builder.not_found(1)


def test_build_error_with_client_status_and_no_codes_is_fatal(builder):
    with pytest.raises(MissingErrorCodesError) as exc_info:
        builder.build_error(2, 404)
    assert exc_info.value.context.index == 2


def test_client_error_is_not_found(builder):
    response = builder.client_error(0, ErrorCode.OPERATION_ABORTED)
    assert response.status == 404


# ─── Standard outcomes ───────────────────────────────────────────

def test_internal_error_defaults_to_internal_server_error(builder):
    response = builder.internal_error(1)
    assert response.status == 500
    assert response.error_codes == [ErrorCode.INTERNAL_SERVER_ERROR]


def test_internal_error_keeps_explicit_codes(builder):
    response = builder.internal_error(1, ErrorCode.OPERATION_ABORTED)
    assert response.error_codes == [ErrorCode.OPERATION_ABORTED]


def test_service_unavailable_has_no_body(builder):
    response = builder.service_unavailable(4)
    assert response.status == 503
    assert response.errors == []
    assert response.ok is None


def test_operation_aborted_variants(builder):
    client = builder.client_operation_aborted(0)
    server = builder.server_operation_aborted(0)
    assert client.status == 404
    assert server.status == 500
    assert client.error_codes == server.error_codes == [ErrorCode.OPERATION_ABORTED]


def test_input_validation_failed_uses_given_messages(builder):
    response = builder.input_validation_failed(2, ["qty: must be > 0", "sku: required"])
    assert response.status == 400
    assert response.error_codes == [ErrorCode.INPUT_VALIDATION_FAILED] * 2
    assert [e.message for e in response.errors] == ["qty: must be > 0", "sku: required"]


def test_input_validation_failed_without_messages_is_fatal(builder):
    with pytest.raises(MissingErrorCodesError):
        builder.input_validation_failed(0, [])


# ─── fail_all ────────────────────────────────────────────────────

def test_fail_all_is_index_adjusted(builder):
    units = _units(3)
    builder.fail_all(units, 500, ErrorCode.INTERNAL_SERVER_ERROR)
    assert [u.output.index for u in units] == [0, 1, 2]
    assert all(u.output.error_codes == [ErrorCode.INTERNAL_SERVER_ERROR] for u in units)


def test_fail_all_sets_state_when_given(builder):
    units = _units(2)
    builder.fail_all_client_aborted(units, state=UnitState.INPUT_REJECTED)
    assert all(u.state == UnitState.INPUT_REJECTED for u in units)
    assert all(u.output.status == 404 for u in units)


def test_fail_all_overwrites_existing_outputs(builder):
    units = _units(2)
    units[0].output = builder.build_ok(0, "done")
    builder.fail_all_server_aborted(units)
    assert units[0].output.ok is None
    assert units[0].output.error_codes == [ErrorCode.OPERATION_ABORTED]


def test_fail_all_service_unavailable_and_internal_error(builder):
    units = _units(2)
    builder.fail_all_service_unavailable(units)
    assert all(u.output.status == 503 and u.output.errors == [] for u in units)
    builder.fail_all_internal_error(units)
    assert all(u.output.status == 500 for u in units)


def test_fail_all_bad_request_requires_codes(builder):
    with pytest.raises(MissingErrorCodesError):
        builder.fail_all_bad_request(_units(1))


# ─── Configuration ───────────────────────────────────────────────

def test_builder_uses_configured_locale(catalog):
    builder = ResponseBuilder(catalog, locale="dev")
    response = builder.bad_request(0, ErrorCode.EMPTY_REQUEST_NOT_ALLOWED)
    assert response.errors[0].message.startswith("This endpoint does not allow")


def test_builder_uses_custom_status_codes(catalog):
    statuses = StatusCodes(ok=1, bad_request=2, not_found=3, internal_error=4, service_unavailable=5)
    builder = ResponseBuilder(catalog, statuses)
    assert builder.build_ok(0, "x").status == 1
    assert builder.bad_request(0, ErrorCode.MAX_REQUESTS_EXCEEDED).status == 2
    assert builder.server_operation_aborted(0).status == 4
    with pytest.raises(MissingErrorCodesError):
        builder.build_error(0, 3)
