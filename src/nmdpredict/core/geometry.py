"""Exon and CDS geometry for a single transcript.

This module represents a transcript's exon structure and its CDS
sub-structure as validated, immutable collections of genomic intervals,
and provides the coordinate operations the NMD classifier needs:

- Ordering intervals 5' to 3' along the transcript
- Mapping genomic positions to spliced (intron-removed) positions and back
- Enumerating exon-exon junctions
- Checking that a CDS lies within its exons

Coordinate conventions:
    - Genomic coordinates are 0-based half-open, as in GenomicInterval.
    - Spliced coordinates are 1-based, counted from the transcript 5' end.
    - A junction is represented by the 3'-most base of its donor exon;
      the junction itself lies immediately 3' of that base.

Example:
    >>> from nmdpredict.core.geometry import ExonSet, to_spliced_coordinate
    >>> exons = ExonSet([("chr1", 100, 200, "-"), ("chr1", 300, 400, "-")])
    >>> to_spliced_coordinate(399, exons)
    1
    >>> junctions(exons)
    [300]
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterator

import attrs
import numpy as np

from nmdpredict.utils.intervals import GenomicInterval, is_contained

VALID_STRANDS = ("+", "-")


# =============================================================================
# Exceptions
# =============================================================================


class MalformedStructureError(ValueError):
    """Raised when an exon or CDS interval set violates its invariants."""

    pass


class OutOfRangeError(ValueError):
    """Raised when a position lies outside the exons of a transcript."""

    pass


# =============================================================================
# Interval Sets
# =============================================================================


def _coerce_intervals(value: Any) -> tuple[GenomicInterval, ...]:
    """Convert a collection of intervals or 4-tuples to a sorted tuple."""
    if isinstance(value, IntervalSet):
        return value.intervals
    if isinstance(value, (GenomicInterval, str, bytes)):
        raise MalformedStructureError(
            f"Expected a collection of intervals, got a single {type(value).__name__}"
        )

    try:
        items = list(value)
    except TypeError as e:
        raise MalformedStructureError(
            f"Expected a collection of intervals, got {type(value).__name__}"
        ) from e

    intervals = []
    for item in items:
        if isinstance(item, GenomicInterval):
            intervals.append(item)
        elif isinstance(item, (tuple, list)) and len(item) == 4:
            seqid, start, end, strand = item
            intervals.append(GenomicInterval(str(seqid), int(start), int(end), str(strand)))
        else:
            raise MalformedStructureError(f"Cannot interpret {item!r} as a genomic interval")

    return tuple(sorted(intervals, key=lambda iv: (iv.start, iv.end)))


def _sort_5p_to_3p(intervals: tuple[GenomicInterval, ...], strand: str | None) -> tuple[GenomicInterval, ...]:
    if strand == "-":
        return tuple(sorted(intervals, key=lambda iv: iv.start, reverse=True))
    return tuple(sorted(intervals, key=lambda iv: iv.start))


@attrs.frozen
class IntervalSet:
    """Validated intervals of one transcript on one seqid and strand.

    Intervals are stored sorted by genomic start regardless of strand.
    The 5' to 3' ordering is computed once at construction.

    Attributes:
        intervals: Intervals in ascending genomic order.
    """

    allow_empty: ClassVar[bool] = True
    label: ClassVar[str] = "interval"

    intervals: tuple[GenomicInterval, ...] = attrs.field(converter=_coerce_intervals)
    _ordered: tuple[GenomicInterval, ...] = attrs.field(init=False, repr=False, eq=False)

    def __attrs_post_init__(self) -> None:
        self._validate()
        object.__setattr__(self, "_ordered", _sort_5p_to_3p(self.intervals, self.strand))

    def _validate(self) -> None:
        if not self.intervals:
            if self.allow_empty:
                return
            raise MalformedStructureError(f"{self.label} set contains no intervals")

        first = self.intervals[0]
        if first.strand not in VALID_STRANDS:
            raise MalformedStructureError(
                f"Invalid {self.label} strand {first.strand!r}; must be '+' or '-'"
            )

        previous = None
        for interval in self.intervals:
            if not interval.same_locus(first):
                raise MalformedStructureError(
                    f"{self.label} intervals mix seqid/strand: "
                    f"{first.seqid}({first.strand}) and {interval.seqid}({interval.strand})"
                )
            if interval.start < 0 or interval.end <= interval.start:
                raise MalformedStructureError(f"Invalid {self.label} coordinates: {interval}")
            if previous is not None and interval.start < previous.end:
                raise MalformedStructureError(
                    f"Overlapping {self.label} intervals: {previous} and {interval}"
                )
            previous = interval

    def __len__(self) -> int:
        return len(self.intervals)

    def __iter__(self) -> Iterator[GenomicInterval]:
        return iter(self.intervals)

    @property
    def seqid(self) -> str | None:
        """Shared seqid, or None for an empty set."""
        return self.intervals[0].seqid if self.intervals else None

    @property
    def strand(self) -> str | None:
        """Shared strand, or None for an empty set."""
        return self.intervals[0].strand if self.intervals else None

    @property
    def ordered(self) -> tuple[GenomicInterval, ...]:
        """Intervals in 5' to 3' transcriptional order."""
        return self._ordered

    @property
    def widths(self) -> np.ndarray:
        """Interval lengths in 5' to 3' order."""
        return np.fromiter((iv.length for iv in self._ordered), dtype=np.int64, count=len(self._ordered))

    @property
    def length(self) -> int:
        """Total length of all intervals."""
        return int(self.widths.sum())


@attrs.frozen
class ExonSet(IntervalSet):
    """Exon structure of one transcript. Must contain at least one exon."""

    allow_empty: ClassVar[bool] = False
    label: ClassVar[str] = "exon"


@attrs.frozen
class CDSSet(IntervalSet):
    """Coding region of one transcript. Empty for non-coding transcripts."""

    allow_empty: ClassVar[bool] = True
    label: ClassVar[str] = "CDS"


# =============================================================================
# Coordinate Operations
# =============================================================================


def order_by_transcription_direction(interval_set: IntervalSet) -> tuple[GenomicInterval, ...]:
    """Return intervals sorted 5' to 3' along the transcript.

    Ascending genomic start on the + strand, descending on the - strand.

    Args:
        interval_set: Exon or CDS set.

    Returns:
        Tuple of intervals in transcriptional order.
    """
    return interval_set.ordered


def to_spliced_coordinate(position: int, exons: ExonSet) -> int:
    """Map a genomic position to a 1-based spliced transcript position.

    Args:
        position: Genomic position (0-based).
        exons: Exon set of the transcript.

    Returns:
        Position in the spliced transcript, counting exonic bases from the
        transcript's 5' end (first base = 1).

    Raises:
        OutOfRangeError: If the position falls in an intron or outside
            all exons.
    """
    ordered = order_by_transcription_direction(exons)
    offsets = np.concatenate(([0], np.cumsum(exons.widths)[:-1]))

    for offset, exon in zip(offsets, ordered):
        if exon.contains(position):
            if exons.strand == "+":
                within = position - exon.start
            else:
                within = exon.end - 1 - position
            return int(offset) + within + 1

    raise OutOfRangeError(
        f"Position {exons.seqid}:{position + 1} is not within any exon"
    )


def to_genomic_coordinate(spliced_position: int, exons: ExonSet) -> int:
    """Map a 1-based spliced transcript position back to the genome.

    Inverse of ``to_spliced_coordinate``: consecutive spliced positions
    step over introns, so the base after a donor exon's last base is the
    first base of the next exon.

    Args:
        spliced_position: Position in the spliced transcript (first base = 1).
        exons: Exon set of the transcript.

    Returns:
        Genomic position (0-based).

    Raises:
        OutOfRangeError: If the position is below 1 or beyond the
            transcript length.
    """
    if not 1 <= spliced_position <= exons.length:
        raise OutOfRangeError(
            f"Spliced position {spliced_position} is outside transcript of length {exons.length}"
        )

    ordered = order_by_transcription_direction(exons)
    ends = np.cumsum(exons.widths)
    index = int(np.searchsorted(ends, spliced_position))
    exon = ordered[index]
    within = spliced_position - (int(ends[index]) - exon.length) - 1

    if exons.strand == "+":
        return exon.start + within
    return exon.end - 1 - within


def junctions(exons: ExonSet) -> list[int]:
    """Genomic positions of the exon-exon junctions, 5' to 3'.

    Each junction is reported as the 3'-most base of its donor exon.

    Args:
        exons: Exon set of the transcript.

    Returns:
        One position per junction; empty for single-exon transcripts.
    """
    ordered = order_by_transcription_direction(exons)
    if exons.strand == "+":
        return [exon.end - 1 for exon in ordered[:-1]]
    return [exon.start for exon in ordered[:-1]]


def junction_spliced_positions(exons: ExonSet) -> list[int]:
    """Spliced positions of the exon-exon junctions, 5' to 3'.

    Args:
        exons: Exon set of the transcript.

    Returns:
        Spliced position of each donor exon's 3'-most base, which equals
        the cumulative exon length through that donor.
    """
    return [to_spliced_coordinate(j, exons) for j in junctions(exons)]


def last_exon_start(exons: ExonSet) -> int:
    """Genomic 5' start of the final exon in transcriptional order."""
    last = order_by_transcription_direction(exons)[-1]
    return last.start if exons.strand == "+" else last.end - 1


def transcript_length(exons: ExonSet) -> int:
    """Spliced length of the transcript."""
    return exons.length


def cds_terminal_base(cds: CDSSet) -> int:
    """Genomic position of the 3'-most CDS base.

    Raises:
        MalformedStructureError: If the CDS set is empty.
    """
    if not cds.intervals:
        raise MalformedStructureError("CDS set is empty")
    last = order_by_transcription_direction(cds)[-1]
    return last.end - 1 if cds.strand == "+" else last.start


def validate_cds_within_exons(exons: ExonSet, cds: CDSSet) -> None:
    """Check that a CDS set lies on the exons' seqid/strand and within them.

    Args:
        exons: Exon set of the transcript.
        cds: CDS set of the same transcript.

    Raises:
        MalformedStructureError: If any CDS interval is not covered by the
            union of the exons.
    """
    if not cds.intervals:
        return

    if cds.seqid != exons.seqid or cds.strand != exons.strand:
        raise MalformedStructureError(
            f"CDS on {cds.seqid}({cds.strand}) does not match exons on "
            f"{exons.seqid}({exons.strand})"
        )

    for interval in cds:
        if not is_contained(interval, exons.intervals):
            raise MalformedStructureError(f"CDS interval {interval} is not contained within exons")


# =============================================================================
# Transcript Structures
# =============================================================================


def _as_exon_set(value: Any) -> ExonSet:
    return value if isinstance(value, ExonSet) else ExonSet(value)


def _as_cds_set(value: Any) -> CDSSet:
    if value is None:
        return CDSSet(())
    return value if isinstance(value, CDSSet) else CDSSet(value)


@attrs.frozen
class TranscriptStructure:
    """Exon and CDS geometry of one transcript plus its metadata.

    Attributes:
        transcript_id: Transcript identifier.
        exons: Exon set.
        cds: CDS set (empty for non-coding transcripts).
        attributes: Metadata from the annotation (gene_id, gene_name, ...).
    """

    transcript_id: str
    exons: ExonSet = attrs.field(converter=_as_exon_set)
    cds: CDSSet = attrs.field(factory=lambda: CDSSet(()), converter=_as_cds_set)
    attributes: dict[str, str] = attrs.field(factory=dict, eq=False)

    def __attrs_post_init__(self) -> None:
        validate_cds_within_exons(self.exons, self.cds)

    @property
    def seqid(self) -> str:
        """Chromosome/contig of the transcript."""
        return self.exons.intervals[0].seqid

    @property
    def strand(self) -> str:
        """Strand of the transcript."""
        return self.exons.intervals[0].strand

    @property
    def gene_id(self) -> str | None:
        """Gene identifier from the metadata, if present."""
        return self.attributes.get("gene_id")

    @property
    def gene_name(self) -> str | None:
        """Gene name from the metadata, if present."""
        return self.attributes.get("gene_name")

    @property
    def n_exons(self) -> int:
        """Number of exons."""
        return len(self.exons)

    @property
    def is_coding(self) -> bool:
        """Whether the transcript has a CDS."""
        return len(self.cds) > 0
