"""Services Layer: request dispatch and the asyncio line server.

Invariants:
    - Command dispatch uses an explicit mapping (no getattr lookup)
    - Every request produces exactly one response line
"""
