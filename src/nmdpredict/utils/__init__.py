"""Utility functions for nmdpredict.

- Interval operations (overlap, truncation, merge, containment)
- Logging configuration
- Chromosome naming checks

Example:
    >>> from nmdpredict.utils import GenomicInterval, merge_intervals
    >>> merged = merge_intervals(intervals)
"""

from nmdpredict.utils.intervals import (
    GenomicInterval,
    is_contained,
    merge_intervals,
    overlap_length,
    overlaps,
    truncate,
)

__all__ = [
    "GenomicInterval",
    "overlaps",
    "overlap_length",
    "truncate",
    "merge_intervals",
    "is_contained",
]
