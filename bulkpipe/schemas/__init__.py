"""Pydantic Schemas - the stable wire shape of batch responses.

Invariants:
    - Schemas validate at the system boundary (handler output, decoded responses)
    - Error codes are plain ints on the wire; symbolic names live in core/domain_types
"""
