"""Response Builders - construct well-formed Responses from codes, statuses, payloads.

Invariants:
    - Builders only READ the catalog; messages are resolved at construction time
    - Client-error responses (bad request, not found) always carry >= 1 code;
      asking for one without codes is a fatal defect
    - fail_all() gives each unit its own index-adjusted copy of the same error

Design Decisions:
    - ResponseBuilder holds catalog + StatusCodes + locale so handlers and the
      orchestrator build against the same injected configuration
    - One build_error() core, every named builder delegates to it
"""

from collections.abc import Iterable
from typing import Any

from bulkpipe.config import StatusCodes
from bulkpipe.core.batch import RequestUnit
from bulkpipe.core.domain_types import (
    CLIENT_ERROR_OUTCOMES,
    DEFAULT_LOCALE,
    ErrorCode,
    UnitState,
)
from bulkpipe.core.error_catalog import ErrorCatalog, get_catalog
from bulkpipe.core.errors import MissingErrorCodesError
from bulkpipe.schemas.response import ErrorDetail, Response


class ResponseBuilder:
    """Builds Responses against one catalog, status mapping and locale."""

    def __init__(
        self,
        catalog: ErrorCatalog | None = None,
        statuses: StatusCodes | None = None,
        locale: str = DEFAULT_LOCALE,
    ):
        self.catalog = catalog if catalog is not None else get_catalog()
        self.statuses = statuses or StatusCodes()
        self.locale = locale

    # ─── Core builders ───────────────────────────────────────

    def build_error(self, index: int, status: int, *codes: int) -> Response:
        """Error response with every code resolved through the catalog."""
        if not codes and self._is_client_status(status):
            raise MissingErrorCodesError(index, status)
        errors = [self.detail(code) for code in codes]
        return Response(index=index, status=status, errors=errors, ok=None)

    def build_ok(self, index: int, payload: Any) -> Response:
        return Response(index=index, status=self.statuses.ok, errors=[], ok=payload)

    def detail(self, code: int, message: str | None = None) -> ErrorDetail:
        """ErrorDetail for `code`; `message` overrides the catalog text."""
        text = message if message is not None else self.catalog.resolve(code, self.locale)
        return ErrorDetail(code=int(code), message=text)

    # ─── Standard outcomes ───────────────────────────────────

    def bad_request(self, index: int, *codes: int) -> Response:
        return self.build_error(index, self.statuses.bad_request, *codes)

    def not_found(self, index: int, *codes: int) -> Response:
        return self.build_error(index, self.statuses.not_found, *codes)

    client_error = not_found

    def internal_error(self, index: int, *codes: int) -> Response:
        return self.build_error(
            index, self.statuses.internal_error,
            *(codes or (ErrorCode.INTERNAL_SERVER_ERROR,)),
        )

    def service_unavailable(self, index: int) -> Response:
        return self.build_error(index, self.statuses.service_unavailable)

    def client_operation_aborted(self, index: int) -> Response:
        return self.not_found(index, ErrorCode.OPERATION_ABORTED)

    def server_operation_aborted(self, index: int) -> Response:
        return self.build_error(
            index, self.statuses.internal_error, ErrorCode.OPERATION_ABORTED,
        )

    def input_validation_failed(self, index: int, messages: Iterable[str]) -> Response:
        """Bad request with one INPUT_VALIDATION_FAILED detail per violation message."""
        errors = [
            self.detail(ErrorCode.INPUT_VALIDATION_FAILED, message)
            for message in messages
        ]
        if not errors:
            raise MissingErrorCodesError(index, self.statuses.bad_request)
        return Response(
            index=index, status=self.statuses.bad_request, errors=errors, ok=None,
        )

    # ─── Whole-batch failure ─────────────────────────────────

    def fail_all(
        self,
        units: Iterable[RequestUnit],
        status: int,
        *codes: int,
        state: UnitState | None = None,
    ) -> None:
        """Overwrite every unit's output with the same error, index-adjusted."""
        for unit in units:
            unit.output = self.build_error(unit.index, status, *codes)
            if state is not None:
                unit.state = state

    def fail_all_client_aborted(self, units: Iterable[RequestUnit], state: UnitState | None = None) -> None:
        self.fail_all(units, self.statuses.not_found, ErrorCode.OPERATION_ABORTED, state=state)

    def fail_all_server_aborted(self, units: Iterable[RequestUnit], state: UnitState | None = None) -> None:
        self.fail_all(units, self.statuses.internal_error, ErrorCode.OPERATION_ABORTED, state=state)

    def fail_all_bad_request(self, units: Iterable[RequestUnit], *codes: int, state: UnitState | None = None) -> None:
        self.fail_all(units, self.statuses.bad_request, *codes, state=state)

    def fail_all_internal_error(self, units: Iterable[RequestUnit], state: UnitState | None = None) -> None:
        self.fail_all(units, self.statuses.internal_error, ErrorCode.INTERNAL_SERVER_ERROR, state=state)

    def fail_all_service_unavailable(self, units: Iterable[RequestUnit], state: UnitState | None = None) -> None:
        self.fail_all(units, self.statuses.service_unavailable, state=state)

    # ─── Helpers ─────────────────────────────────────────────

    def _is_client_status(self, status: int) -> bool:
        return self.statuses.outcome_of(status) in CLIENT_ERROR_OUTCOMES
