"""Genomic interval operations.

This module provides the interval primitives used by the exon/CDS
geometry code:

- Overlap detection
- Truncation (intersection) of one interval by another
- Interval merging
- Containment within a union of intervals

All coordinates are 0-based half-open.

Example:
    >>> from nmdpredict.utils.intervals import GenomicInterval, merge_intervals
    >>> exon = GenomicInterval("chr1", 100, 200, "+")
    >>> exon.length
    100
"""

from __future__ import annotations

from typing import Iterable, NamedTuple

# =============================================================================
# Data Structures
# =============================================================================


class GenomicInterval(NamedTuple):
    """A genomic interval with chromosome and strand.

    Attributes:
        seqid: Chromosome/contig identifier.
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
        strand: Strand (+ or -).
    """

    seqid: str
    start: int
    end: int
    strand: str = "+"

    def __str__(self) -> str:
        """Return 1-based inclusive representation."""
        return f"{self.seqid}:{self.start + 1}-{self.end}:{self.strand}"

    @property
    def length(self) -> int:
        """Get interval length."""
        return self.end - self.start

    def contains(self, position: int) -> bool:
        """Check if this interval contains a position."""
        return self.start <= position < self.end

    def same_locus(self, other: GenomicInterval) -> bool:
        """Check if two intervals share seqid and strand."""
        return self.seqid == other.seqid and self.strand == other.strand


# =============================================================================
# Overlap Operations
# =============================================================================


def overlaps(a: GenomicInterval, b: GenomicInterval) -> bool:
    """Check if two intervals overlap.

    Intervals on different seqids never overlap. Strand is ignored.

    Args:
        a: First interval.
        b: Second interval.

    Returns:
        True if intervals overlap.
    """
    return a.seqid == b.seqid and a.start < b.end and b.start < a.end


def overlap_length(a: GenomicInterval, b: GenomicInterval) -> int:
    """Calculate overlap length between two intervals.

    Args:
        a: First interval.
        b: Second interval.

    Returns:
        Overlap length (0 if no overlap).
    """
    if not overlaps(a, b):
        return 0
    return min(a.end, b.end) - max(a.start, b.start)


def truncate(interval: GenomicInterval, bounds: GenomicInterval) -> GenomicInterval | None:
    """Clip an interval to the span of another.

    Args:
        interval: Interval to clip.
        bounds: Interval giving the allowed span.

    Returns:
        The clipped interval, or None if they do not overlap.
    """
    if not overlaps(interval, bounds):
        return None
    return interval._replace(
        start=max(interval.start, bounds.start),
        end=min(interval.end, bounds.end),
    )


# =============================================================================
# Merge Operations
# =============================================================================


def merge_intervals(intervals: Iterable[GenomicInterval]) -> list[GenomicInterval]:
    """Merge overlapping or book-ended intervals.

    Intervals are grouped by seqid; the strand of the first interval of each
    merged block is kept.

    Args:
        intervals: Intervals to merge.

    Returns:
        List of merged intervals sorted by (seqid, start).
    """
    sorted_intervals = sorted(intervals, key=lambda x: (x.seqid, x.start))
    if not sorted_intervals:
        return []

    merged = [sorted_intervals[0]]
    for current in sorted_intervals[1:]:
        last = merged[-1]
        if current.seqid == last.seqid and current.start <= last.end:
            merged[-1] = last._replace(end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


def is_contained(interval: GenomicInterval, intervals: Iterable[GenomicInterval]) -> bool:
    """Check if an interval lies entirely within the union of intervals.

    Args:
        interval: Query interval.
        intervals: Intervals whose union is tested.

    Returns:
        True if every base of ``interval`` is covered.
    """
    for block in merge_intervals(intervals):
        if block.seqid == interval.seqid and block.start <= interval.start and interval.end <= block.end:
            return True
    return False
