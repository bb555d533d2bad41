"""Core Layer: pure protocol and codec logic, no IO, no async.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Functions are deterministic except identifier generation (random source injectable)
"""
