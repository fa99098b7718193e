"""Services Layer - admission stage and batch orchestrator.

Invariants:
    - Services compose core/ pieces; they never define wire types themselves
"""
