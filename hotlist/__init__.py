"""
hotlist - A hot-list aggregation engine that pulls short-lived "hot item" feeds from
many independent sources, reuses fresh cached snapshots where possible, and merges
everything into one deduplicated, time-windowed, ranked timeline.
"""

__version__ = "0.1.0"
