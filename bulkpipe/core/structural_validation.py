"""Structural Validation - default collaborators that inspect inputs and outputs.

Contract (shared by every validator the pipeline accepts):
    validate(value) -> sequence of Violation or (field_path, message) pairs;
    an empty result means the value is valid.

Invariants:
    - Validators never raise for invalid values; problems come back as Violations
    - Violation paths are dotted pydantic `loc` tuples ("items.0.qty")
    - Pydantic model instances are re-validated from their dump, so instances built
      with model_construct() or mutated after construction are still checked

Design Decisions:
    - Pydantic is the constraint engine: models declare constraints with Field(...)
      and validators, exactly as request schemas do at an API boundary
    - Response consistency rules need StatusCodes, so ResponseValidator is a class
      bound to one status mapping
"""

from collections.abc import Iterable
from typing import Any, NamedTuple, Protocol

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from bulkpipe.config import StatusCodes
from bulkpipe.core.domain_types import CLIENT_ERROR_OUTCOMES, OutcomeStatus
from bulkpipe.schemas.response import Response


class Violation(NamedTuple):
    """One failed constraint: where it failed and why."""
    field_path: str
    message: str

    def render(self) -> str:
        if not self.field_path:
            return self.message
        return f"{self.field_path}: {self.message}"


class Validator(Protocol):
    """Structural-validation collaborator.

    May return Violation objects or plain (field_path, message) pairs.
    """
    def __call__(self, value: Any) -> Iterable[Violation | tuple[str, str]]: ...


def as_violations(items: Iterable[Violation | tuple[str, str]] | None) -> list[Violation]:
    """Normalize a validator's result into Violation objects."""
    return [
        item if isinstance(item, Violation) else Violation(*item)
        for item in items or ()
    ]


def violations_from_error(exc: ValidationError) -> list[Violation]:
    return [
        Violation(
            field_path=".".join(str(loc) for loc in e["loc"]),
            message=e["msg"],
        )
        for e in exc.errors()
    ]


def revalidate_model(model: BaseModel) -> list[Violation]:
    """Run a model instance back through its own validators."""
    try:
        data = model.model_dump(by_alias=True, round_trip=True, warnings=False)
    except (PydanticSerializationError, AttributeError, TypeError, ValueError) as e:
        return [Violation("", f"value cannot be serialized for validation: {e}")]
    try:
        type(model).model_validate(data)
    except ValidationError as e:
        return violations_from_error(e)
    return []


class StructuralValidator:
    """Default input validator.

    Model instances are re-validated against their own class. When `model` is
    given, any other value (dicts, plain objects with attributes) is validated
    through a TypeAdapter for that type. Values with no declared shape pass.
    """

    def __init__(self, model: Any = None):
        self.model = model
        self._adapter = TypeAdapter(model) if model is not None else None

    def __call__(self, value: Any) -> list[Violation]:
        if isinstance(value, BaseModel):
            return revalidate_model(value)
        if self._adapter is None:
            return []
        try:
            self._adapter.validate_python(value)
        except ValidationError as e:
            return violations_from_error(e)
        return []


class ResponseValidator:
    """Default output validator: structure plus status/errors/ok consistency."""

    def __init__(self, statuses: StatusCodes | None = None):
        self.statuses = statuses or StatusCodes()

    def __call__(self, value: Any) -> list[Violation]:
        if not isinstance(value, Response):
            return [Violation("", f"expected a Response, got {type(value).__name__}")]

        violations = revalidate_model(value)
        if violations:
            return violations
        return self._check_consistency(value)

    def _check_consistency(self, response: Response) -> list[Violation]:
        outcome = self.statuses.outcome_of(response.status)
        violations: list[Violation] = []
        if outcome == OutcomeStatus.OK and response.errors:
            violations.append(Violation("errors", "success status must not carry errors"))
        if outcome not in (None, OutcomeStatus.OK) and response.ok is not None:
            violations.append(Violation("ok", "error status must not carry an ok payload"))
        if outcome in CLIENT_ERROR_OUTCOMES and not response.errors:
            violations.append(Violation("errors", "client error status requires at least one error"))
        return violations
