"""Infrastructure Layer - logging setup and the diagnostic trace sink.

Invariants:
    - Nothing here changes pipeline results; it only observes them
"""
