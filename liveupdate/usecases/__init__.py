"""Use-case layer for the bundle lifecycle.

Each module coordinates domain objects and ports without performing transport
I/O directly, preserving the hexagonal boundaries.
"""
