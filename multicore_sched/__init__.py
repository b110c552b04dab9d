"""
Multicore scheduling simulator package.

Simulates process execution on a machine with performance and efficiency
cores, records which process ran on each core at every tick, and rebuilds
windowed timelines from that history.
"""

__all__ = ["cli"]
