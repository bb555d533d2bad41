"""DustDB Package: line-protocol record store backed by pile directories.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
