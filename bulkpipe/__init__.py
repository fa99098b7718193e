"""bulkpipe - all-or-nothing batch request orchestration.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
    - Importing bulkpipe never configures logging or populates the error catalog

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
