"""Debug Trace - diagnostic dump of one batch run (inputs, outputs, stage timings).

Invariants:
    - Read-only: the trace never touches unit outputs or states
    - Never raises: a value that cannot be serialized is logged via repr()
    - One log record per unit, framed by BEGIN/END markers

Design Decisions:
    - Emitted through logging (logger "bulkpipe.infrastructure.trace"), so the host's
      handlers decide where the dump goes
    - pydantic's to_jsonable_python handles models, dataclasses and datetimes uniformly
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from bulkpipe.core.batch import RequestUnit

logger = logging.getLogger(__name__)

BEGIN_MARKER = "========== BULKPIPE TRACE BEGIN =========="
END_MARKER = "========== BULKPIPE TRACE END =========="


def render_value(value: Any) -> str:
    """Pretty JSON for the trace, repr() when the value is not serializable."""
    try:
        return json.dumps(
            to_jsonable_python(value, by_alias=True, fallback=repr),
            indent=2, ensure_ascii=False,
        )
    except (PydanticSerializationError, TypeError, ValueError) as e:
        logger.warning(f"Trace serialization failed: {e}")
        return repr(value)


def dump_trace(
    units: Iterable[RequestUnit],
    timings: Mapping[str, float],
    handler_name: str | None = None,
) -> None:
    logger.info(BEGIN_MARKER)
    if handler_name:
        logger.info(f"handler: {handler_name}", extra={"handler": handler_name})
    for unit in units:
        logger.info(
            f"[index: {unit.index}] ({unit.state.value}) "
            f"{render_value(unit.input)} -> {render_value(unit.output)}",
            extra={"index": unit.index},
        )
    logger.info(
        "Stage timings: "
        + ", ".join(f"{stage}: {seconds * 1000:.3f}ms" for stage, seconds in timings.items()),
    )
    logger.info(END_MARKER)
