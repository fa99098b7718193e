"""Response Schemas - Pydantic models for the stable per-item response wire shape.

Wire shape (must round-trip through any encoding):
    {"index": int, "status": int, "errors": [{"code": int, "error": str}], "ok": any | null}

Invariants:
    - index >= 0 and status > 0 on every Response
    - errors (non-empty) and ok (present) are mutually exclusive
    - Both may be empty (service unavailable, pass-through)
    - ErrorDetail.message is serialized under the wire key "error"
    - ResponseBatch keeps the order it was built in; lookup is by index value

Design Decisions:
    - Response is generic over the ok payload: ok and errors are statically typed,
      decoding never needs ad-hoc isinstance checks downstream
    - Status consistency (success carries no errors, ...) depends on configured
      StatusCodes, so it is checked by the output validator, not by the model
    - decode() validates the JSON form of the payload strictly: wire data decodes the
      same whether it came from memory or from to_json(), and "1" never becomes 1
"""

from functools import lru_cache
from typing import Any, Generic, TypeVar, get_origin

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticSerializationError, to_json

from bulkpipe.core.errors import PayloadDecodeError, ResponseIndexNotFoundError

PayloadT = TypeVar("PayloadT")
T = TypeVar("T")


class ErrorDetail(BaseModel):
    """One resolved error: catalog code plus its message in the chosen locale."""
    model_config = ConfigDict(populate_by_name=True)

    code: int
    message: str = Field(min_length=1, alias="error")


class Response(BaseModel, Generic[PayloadT]):
    """Outcome of one request unit: a success payload or structured errors."""

    index: int = Field(ge=0)
    status: int = Field(gt=0)
    errors: list[ErrorDetail] = Field(default_factory=list)
    ok: PayloadT | None = None

    @field_validator("errors", mode="before")
    @classmethod
    def null_errors_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def check_ok_errors_exclusive(self):
        if self.errors and self.ok is not None:
            raise ValueError("response cannot carry both errors and an ok payload")
        return self

    @property
    def error_codes(self) -> list[int]:
        return [e.code for e in self.errors]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _is_plain_class(into: Any) -> bool:
    return isinstance(into, type) and get_origin(into) is None


@lru_cache(maxsize=128)
def _adapter_for(into: Any) -> TypeAdapter:
    return TypeAdapter(into)


class ResponseBatch(RootModel[list[Response]]):
    """Ordered responses of one batch, with lookup and typed payload decoding."""

    def __iter__(self):
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, position: int) -> Response:
        return self.root[position]

    @property
    def indexes(self) -> list[int]:
        return [r.index for r in self.root]

    def find(self, index: int) -> Response:
        """Response whose index field equals `index` (not list position)."""
        for response in self.root:
            if response.index == index:
                return response
        raise ResponseIndexNotFoundError(index)

    def decode(
        self, index: int, into: type[T] | Any, *, strict: bool = True,
    ) -> tuple[int, list[ErrorDetail], T | None]:
        """Return (status, errors, payload) with ok validated into `into`."""
        response = self.find(index)
        if response.ok is None:
            return response.status, list(response.errors), None

        value = response.ok
        target = getattr(into, "__name__", repr(into))
        adapter = _adapter_for(into)
        try:
            if _is_plain_class(into) and isinstance(value, into):
                payload = adapter.validate_python(value, strict=strict)
            else:
                payload = adapter.validate_json(
                    to_json(value, by_alias=True), strict=strict,
                )
        except (PydanticSerializationError, ValidationError) as e:
            raise PayloadDecodeError(index, target, str(e)) from e
        return response.status, list(response.errors), payload

    def to_wire(self) -> list[dict]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_wire(cls, data: list[dict] | str | bytes) -> "ResponseBatch":
        if isinstance(data, (str, bytes)):
            return cls.model_validate_json(data)
        return cls.model_validate(data)
