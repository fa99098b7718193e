"""Admission & Validation Stage - admission limit, per-item input checks, input gate.

Invariants:
    - Admission (max_batch_size) runs before any content inspection
    - Admission rejection fails EVERY unit with MAX_REQUESTS_EXCEEDED and stops
    - Input validation evaluates every unit, even after an earlier one failed
    - Any input failure aborts the whole batch: units that passed get the client
      OPERATION_ABORTED response; the handler is never reached
    - The stage only writes outputs of rejected batches; an admitted batch leaves
      every output unset for the handler

Design Decisions:
    - Functions over a class: each step is testable with plain unit lists
    - AdmissionResult returned instead of raising: rejections are expected
      outcomes, not exceptional control flow
"""

import logging
from dataclasses import dataclass, field

from bulkpipe.config import BatchOptions
from bulkpipe.core.batch import RequestUnit
from bulkpipe.core.domain_types import ErrorCode, UnitState
from bulkpipe.core.responses import ResponseBuilder
from bulkpipe.core.structural_validation import Validator, as_violations

logger = logging.getLogger(__name__)


@dataclass
class AdmissionResult:
    """Outcome of the admission + input stage for one batch."""
    admitted: bool
    rejected_indexes: list[int] = field(default_factory=list)
    reason: ErrorCode | None = None


def check_admission(
    units: list[RequestUnit], options: BatchOptions, builder: ResponseBuilder,
) -> AdmissionResult:
    """Reject the whole batch when it holds more units than max_batch_size allows."""
    limit = options.max_batch_size
    if limit == 0 or len(units) <= limit:
        return AdmissionResult(admitted=True)

    builder.fail_all_bad_request(
        units, ErrorCode.MAX_REQUESTS_EXCEEDED,
        state=UnitState.ADMISSION_REJECTED,
    )
    logger.info(
        f"Batch rejected at admission: {len(units)} units exceed limit {limit}",
        extra={"batch_size": len(units), "error_code": int(ErrorCode.MAX_REQUESTS_EXCEEDED)},
    )
    return AdmissionResult(
        admitted=False,
        rejected_indexes=[u.index for u in units],
        reason=ErrorCode.MAX_REQUESTS_EXCEEDED,
    )


def validate_inputs(
    units: list[RequestUnit],
    options: BatchOptions,
    builder: ResponseBuilder,
    validator: Validator,
) -> list[int]:
    """Tag every invalid unit with its error response. Returns the failed indexes."""
    failed: list[int] = []
    for unit in units:
        if unit.is_empty:
            if not options.allow_empty_batch:
                unit.reject(
                    builder.bad_request(unit.index, ErrorCode.EMPTY_REQUEST_NOT_ALLOWED),
                    UnitState.INPUT_REJECTED,
                )
                failed.append(unit.index)
            continue

        violations = as_violations(validator(unit.input))
        if violations:
            unit.reject(
                builder.input_validation_failed(
                    unit.index, [v.render() for v in violations],
                ),
                UnitState.INPUT_REJECTED,
            )
            failed.append(unit.index)
    return failed


def abort_unrejected(units: list[RequestUnit], builder: ResponseBuilder) -> None:
    """All-or-nothing gate: every unit without an output is aborted."""
    pending = [u for u in units if not u.has_output]
    builder.fail_all_client_aborted(pending, state=UnitState.INPUT_REJECTED)


def admit_batch(
    units: list[RequestUnit],
    options: BatchOptions,
    builder: ResponseBuilder,
    validator: Validator,
) -> AdmissionResult:
    """Run admission, input validation and the input gate in order."""
    result = check_admission(units, options, builder)
    if not result.admitted:
        return result

    if options.skip_input_validation:
        return result

    failed = validate_inputs(units, options, builder, validator)
    if not failed:
        return result

    abort_unrejected(units, builder)
    logger.info(
        f"Batch rejected at input validation: {len(failed)} of {len(units)} units invalid",
        extra={"batch_size": len(units), "indexes": failed},
    )
    return AdmissionResult(
        admitted=False,
        rejected_indexes=[u.index for u in units],
        reason=ErrorCode.INPUT_VALIDATION_FAILED,
    )
