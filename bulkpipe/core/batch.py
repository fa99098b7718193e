"""Batch Records - per-item request units and batch normalization.

Invariants:
    - Units are indexed 0..n-1 in input order; index never changes after creation
    - An empty input batch still yields exactly one unit (index 0, input None)
    - output starts as None and must be set before the pipeline returns
    - state follows Created -> (AdmissionRejected | InputRejected | Handled)
      -> (OutputRejected | Finalized), with no way back

Design Decisions:
    - Plain mutable dataclass: the handler contract is "set unit.output", so units are
      shared by reference between the orchestrator and the handler
    - Generic over the input type: one concrete input shape per pipeline
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from bulkpipe.core.domain_types import TERMINAL_STATES, UnitState
from bulkpipe.schemas.response import Response

InT = TypeVar("InT")


@dataclass
class RequestUnit(Generic[InT]):
    """One item of a batch: its index, its input, and the response it ends with."""

    index: int
    input: InT | None = None
    output: Response | None = None
    state: UnitState = field(default=UnitState.CREATED)

    @property
    def has_output(self) -> bool:
        return self.output is not None

    @property
    def is_empty(self) -> bool:
        return self.input is None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def reject(self, response: Response, state: UnitState) -> None:
        """Set an error output and move to a rejection state."""
        self.output = response
        self.state = state


def normalize_batch(items: Iterable[InT] | None) -> list[RequestUnit[InT]]:
    """Turn the raw input collection into indexed units.

    An empty (or None) collection produces a single unit with absent input;
    whether that unit is acceptable is decided later by input validation.
    """
    units = [
        RequestUnit(index=index, input=item)
        for index, item in enumerate(items if items is not None else ())
    ]
    if not units:
        units.append(RequestUnit(index=0, input=None))
    return units


def missing_outputs(units: Iterable[RequestUnit]) -> list[int]:
    """Indexes of units that still have no output."""
    return [u.index for u in units if u.output is None]
