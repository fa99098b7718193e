"""Batch Orchestrator - admission, handler delegation, output validation, assembly.

Invariants:
    - One response per unit, in index order, every time (empty batch -> one response)
    - The handler is called at most once, and only for a fully admitted batch
    - The handler works on a copy of the unit list; dropping, replacing or reordering
      units in it, or leaving a unit without output, is a fatal defect (UnhandledUnitError)
    - Every returned output is a Response carrying its unit's index, even when
      output validation is skipped
    - A structurally invalid output is replaced by an internal error and logged, never
      returned verbatim
    - Any output failure aborts the whole batch with the server OPERATION_ABORTED response;
      no caller ever sees a mix of aborted and genuinely successful items
    - The debug trace observes the finished batch and never changes it

Design Decisions:
    - Catalog injected and frozen at construction: registration ends before traffic
    - Handler exceptions propagate unchanged; there is no partial result to return
    - Explicit stage sequence in run(), no step registry: the order is the contract
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from bulkpipe.config import BatchOptions, StatusCodes, get_settings
from bulkpipe.core.batch import RequestUnit, missing_outputs, normalize_batch
from bulkpipe.core.domain_types import PipelineStage, UnitState
from bulkpipe.core.error_catalog import ErrorCatalog, get_catalog
from bulkpipe.core.errors import FatalDefect, UnhandledUnitError
from bulkpipe.core.responses import ResponseBuilder
from bulkpipe.core.structural_validation import (
    ResponseValidator,
    StructuralValidator,
    Validator,
    Violation,
    as_violations,
)
from bulkpipe.infrastructure.trace import dump_trace, render_value
from bulkpipe.schemas.response import Response, ResponseBatch
from bulkpipe.services.admission import admit_batch

logger = logging.getLogger(__name__)

InT = TypeVar("InT")
OutT = TypeVar("OutT")

Handler = Callable[[list[RequestUnit[InT]]], None]


@dataclass
class StageTimings:
    """Wall time per stage of one run, in seconds."""
    admission: float = 0.0
    handler: float = 0.0
    output_validation: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            PipelineStage.INPUT_VALIDATION.value: self.admission,
            PipelineStage.HANDLER.value: self.handler,
            PipelineStage.OUTPUT_VALIDATION.value: self.output_validation,
        }


class BatchPipeline(Generic[InT, OutT]):
    """Runs batches of one input shape through one handler."""

    def __init__(
        self,
        handler: Handler,
        options: BatchOptions | None = None,
        *,
        catalog: ErrorCatalog | None = None,
        statuses: StatusCodes | None = None,
        input_validator: Validator | None = None,
        output_validator: Validator | None = None,
        input_model: type[InT] | None = None,
    ):
        settings = get_settings()
        self.handler = handler
        self.options = options or BatchOptions.from_settings(settings)
        self.statuses = statuses or StatusCodes.from_settings(settings)
        self.catalog = catalog if catalog is not None else get_catalog()
        self.catalog.freeze()
        self.builder = ResponseBuilder(self.catalog, self.statuses, self.options.locale)
        self.input_validator = input_validator or StructuralValidator(input_model)
        self.output_validator = output_validator or ResponseValidator(self.statuses)

    @property
    def handler_name(self) -> str:
        return getattr(self.handler, "__qualname__", type(self.handler).__qualname__)

    def run(self, items: Iterable[InT] | None) -> ResponseBatch:
        """Process one batch and return its responses in index order."""
        units: list[RequestUnit[InT]] = normalize_batch(items)
        timings = StageTimings()
        logger.info(
            f"Batch started with {len(units)} units",
            extra={"batch_size": len(units), "handler": self.handler_name},
        )

        start = time.perf_counter()
        admission = admit_batch(units, self.options, self.builder, self.input_validator)
        timings.admission = time.perf_counter() - start

        if admission.admitted:
            handed = list(units)
            start = time.perf_counter()
            self.handler(handed)
            timings.handler = time.perf_counter() - start

            self._assert_batch_intact(units, handed)
            self._assert_all_handled(units)
            for unit in units:
                unit.state = UnitState.HANDLED

            start = time.perf_counter()
            if self.options.skip_output_validation:
                self._validate_outputs(units, self._assembly_violations)
            else:
                self._validate_outputs(units, self.check_output)
            timings.output_validation = time.perf_counter() - start

            for unit in units:
                if unit.state == UnitState.HANDLED:
                    unit.state = UnitState.FINALIZED

        self._assert_all_handled(units)
        if self.options.debug_trace:
            dump_trace(units, timings.as_dict(), self.handler_name)

        logger.info(
            f"Batch finished with {len(units)} responses (admitted={admission.admitted})",
            extra={
                "batch_size": len(units),
                "duration_ms": round(sum(timings.as_dict().values()) * 1000, 3),
            },
        )
        return ResponseBatch.model_construct(root=[unit.output for unit in units])

    __call__ = run

    # ─── Output stage ────────────────────────────────────────

    def check_output(self, unit: RequestUnit) -> list[Violation]:
        """Violations of one unit's output, including index correspondence."""
        violations = as_violations(self.output_validator(unit.output))
        if isinstance(unit.output, Response) and unit.output.index != unit.index:
            violations.append(self._index_violation(unit))
        return violations

    def _assembly_violations(self, unit: RequestUnit) -> list[Violation]:
        """Minimum checks kept when output validation is skipped."""
        if not isinstance(unit.output, Response):
            return [Violation("", f"expected a Response, got {type(unit.output).__name__}")]
        if unit.output.index != unit.index:
            return [self._index_violation(unit)]
        return []

    @staticmethod
    def _index_violation(unit: RequestUnit) -> Violation:
        return Violation(
            "index",
            f"response index {unit.output.index} does not match unit index {unit.index}",
        )

    def _validate_outputs(
        self,
        units: list[RequestUnit],
        check: Callable[[RequestUnit], list[Violation]],
    ) -> bool:
        """Replace invalid outputs; abort the whole batch if any failed."""
        passed: list[RequestUnit] = []
        failed: list[int] = []
        for unit in units:
            violations = check(unit)
            if not violations:
                passed.append(unit)
                continue

            logger.warning(
                "Response validation failed. "
                f"Errors: {[v.render() for v in violations]} "
                f"Request: {render_value(unit.input)} "
                f"Response: {render_value(unit.output)}",
                extra={
                    "index": unit.index,
                    "stage": PipelineStage.OUTPUT_VALIDATION.value,
                    "violations": [v.render() for v in violations],
                },
            )
            unit.reject(self.builder.internal_error(unit.index), UnitState.OUTPUT_REJECTED)
            failed.append(unit.index)

        if not failed:
            return True

        self.builder.fail_all_server_aborted(passed, state=UnitState.OUTPUT_REJECTED)
        logger.error(
            f"Output validation failed for {len(failed)} of {len(units)} units; batch aborted",
            extra={"indexes": failed, "batch_size": len(units)},
        )
        return False

    def _assert_batch_intact(
        self, units: list[RequestUnit], handed: list[RequestUnit],
    ) -> None:
        """The handler may not drop, replace or reorder units of the list it got."""
        lost = [
            unit.index for position, unit in enumerate(units)
            if position >= len(handed) or handed[position] is not unit
        ]
        if lost or len(handed) != len(units):
            self._raise_defect(UnhandledUnitError(lost or [u.index for u in units]))

    def _assert_all_handled(self, units: list[RequestUnit]) -> None:
        missing = missing_outputs(units)
        if missing:
            self._raise_defect(UnhandledUnitError(missing))

    def _raise_defect(self, error: FatalDefect) -> None:
        logger.critical(
            error.message,
            extra={
                **error.context.to_log_extra(),
                "handler": self.handler_name,
                "defect": error.to_response()["error"],
            },
        )
        raise error


def handle_batch(
    items: Iterable[InT] | None,
    handler: Handler,
    options: BatchOptions | None = None,
    **kwargs,
) -> ResponseBatch:
    """One-shot form of BatchPipeline(handler, options, **kwargs).run(items)."""
    return BatchPipeline(handler, options, **kwargs).run(items)
