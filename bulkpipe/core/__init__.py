"""Core Layer - error catalog, response builders, batch records, structural validation.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Everything here is synchronous and free of IO beyond logging
"""
