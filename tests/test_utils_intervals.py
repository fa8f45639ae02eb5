"""Tests for nmdpredict.utils.intervals module."""

from nmdpredict.utils.intervals import (
    GenomicInterval,
    is_contained,
    merge_intervals,
    overlap_length,
    overlaps,
    truncate,
)


class TestGenomicInterval:
    """Tests for GenomicInterval."""

    def test_length(self) -> None:
        """Length of a half-open interval."""
        assert GenomicInterval("chr1", 100, 200).length == 100

    def test_default_strand(self) -> None:
        """Strand defaults to plus."""
        assert GenomicInterval("chr1", 100, 200).strand == "+"

    def test_str_is_one_based(self) -> None:
        """String form uses 1-based inclusive coordinates."""
        assert str(GenomicInterval("chr1", 100, 200, "-")) == "chr1:101-200:-"

    def test_contains(self) -> None:
        """End is exclusive."""
        interval = GenomicInterval("chr1", 100, 200)
        assert interval.contains(100)
        assert interval.contains(199)
        assert not interval.contains(200)
        assert not interval.contains(99)

    def test_same_locus(self) -> None:
        """Same seqid and strand."""
        a = GenomicInterval("chr1", 100, 200, "+")
        assert a.same_locus(GenomicInterval("chr1", 500, 600, "+"))
        assert not a.same_locus(GenomicInterval("chr1", 500, 600, "-"))


class TestOverlaps:
    """Tests for overlap functions."""

    def test_overlapping(self) -> None:
        a = GenomicInterval("chr1", 100, 200)
        b = GenomicInterval("chr1", 150, 250)
        assert overlaps(a, b)
        assert overlap_length(a, b) == 50

    def test_book_ended(self) -> None:
        """Touching intervals do not overlap."""
        a = GenomicInterval("chr1", 100, 200)
        b = GenomicInterval("chr1", 200, 300)
        assert not overlaps(a, b)
        assert overlap_length(a, b) == 0

    def test_different_seqid(self) -> None:
        a = GenomicInterval("chr1", 100, 200)
        b = GenomicInterval("chr2", 100, 200)
        assert not overlaps(a, b)


class TestTruncate:
    """Tests for truncate."""

    def test_clip(self) -> None:
        interval = GenomicInterval("chr1", 100, 300, "-")
        clipped = truncate(interval, GenomicInterval("chr1", 150, 250))
        assert clipped == GenomicInterval("chr1", 150, 250, "-")

    def test_no_overlap(self) -> None:
        assert truncate(GenomicInterval("chr1", 100, 200), GenomicInterval("chr1", 300, 400)) is None


class TestMergeIntervals:
    """Tests for merge_intervals and is_contained."""

    def test_merge_overlapping_and_adjacent(self) -> None:
        merged = merge_intervals([
            GenomicInterval("chr1", 300, 400),
            GenomicInterval("chr1", 100, 200),
            GenomicInterval("chr1", 200, 250),
            GenomicInterval("chr1", 350, 500),
        ])
        assert [(m.start, m.end) for m in merged] == [(100, 250), (300, 500)]

    def test_merge_keeps_seqids_apart(self) -> None:
        merged = merge_intervals([GenomicInterval("chr2", 100, 200), GenomicInterval("chr1", 150, 250)])
        assert [m.seqid for m in merged] == ["chr1", "chr2"]

    def test_merge_empty(self) -> None:
        assert merge_intervals([]) == []

    def test_is_contained(self) -> None:
        blocks = [GenomicInterval("chr1", 100, 200), GenomicInterval("chr1", 200, 300)]
        assert is_contained(GenomicInterval("chr1", 150, 250), blocks)
        assert not is_contained(GenomicInterval("chr1", 250, 350), blocks)
        assert not is_contained(GenomicInterval("chr2", 150, 250), blocks)
