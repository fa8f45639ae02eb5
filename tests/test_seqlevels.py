"""Tests for nmdpredict.utils.seqlevels module."""

import logging

from nmdpredict.utils.seqlevels import has_consistent_seqlevels, missing_seqlevels, seqlevels


class TestSeqlevels:
    """Tests for chromosome naming checks."""

    def test_from_structures(self, structures) -> None:
        """Seqids are collected from structure mappings."""
        assert seqlevels(structures) == {"chr1", "chr2"}

    def test_from_names(self) -> None:
        """Plain names are accepted."""
        assert seqlevels(["chr1", "chr1", "chrX"]) == {"chr1", "chrX"}

    def test_missing(self) -> None:
        """Missing names are sorted."""
        assert missing_seqlevels({"chr2", "chr1", "chrM"}, {"chr1"}) == ["chr2", "chrM"]

    def test_consistent(self, structures) -> None:
        """A superset reference is consistent."""
        assert has_consistent_seqlevels(structures, {"chr1", "chr2", "chrX"})

    def test_inconsistent_logs_warning(self, structures, caplog) -> None:
        """UCSC vs Ensembl naming is reported."""
        with caplog.at_level(logging.WARNING, logger="nmdpredict"):
            assert not has_consistent_seqlevels(structures, {"1", "2"})
        assert "chr1" in caplog.text
