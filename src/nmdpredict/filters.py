"""Selecting transcripts for NMD prediction.

This module provides tools for subsetting transcripts by their
metadata (IDs, gene names, seqids, coding status, ...) before they
are classified.

Example:
    >>> from nmdpredict.filters import FilterCriteria, TranscriptFilter
    >>>
    >>> criteria = FilterCriteria(gene_names=["Ptbp1"], coding_only=True)
    >>> transcript_filter = TranscriptFilter(criteria)
    >>> result = transcript_filter.apply(structures)
    >>>
    >>> # Filters are callable and can be passed as predicates
    >>> table = predict_nmd(structures, where=transcript_filter)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import attrs

from nmdpredict.core.geometry import TranscriptStructure

# =============================================================================
# Filter Criteria
# =============================================================================


def _optional_set(value: Iterable[str] | None) -> frozenset[str] | None:
    return None if value is None else frozenset(value)


@attrs.define
class FilterCriteria:
    """Criteria for selecting transcripts.

    Attributes:
        name: Name of the filter profile.
        transcript_ids: Transcript IDs to keep (None = all).
        gene_ids: Gene IDs to keep (None = all).
        gene_names: Gene names to keep (None = all).
        seqids: Chromosomes/contigs to keep (None = all).
        coding_only: Drop transcripts without CDS.
        min_exons: Minimum number of exons.
        custom_filter: Custom predicate over TranscriptStructure.
    """

    name: str = "custom"

    # Identifier filters
    transcript_ids: frozenset[str] | None = attrs.field(default=None, converter=_optional_set)
    gene_ids: frozenset[str] | None = attrs.field(default=None, converter=_optional_set)
    gene_names: frozenset[str] | None = attrs.field(default=None, converter=_optional_set)
    seqids: frozenset[str] | None = attrs.field(default=None, converter=_optional_set)

    # Structure filters
    coding_only: bool = False
    min_exons: int | None = None

    # Custom filter
    custom_filter: Callable[[TranscriptStructure], bool] | None = None


# =============================================================================
# Filter Result
# =============================================================================


@attrs.define
class FilterResult:
    """Result of a filtering operation.

    Attributes:
        passed: Structures that passed the filter.
        failed: Structures that failed the filter.
        criteria: The criteria used for filtering.
        statistics: Statistics about the filtering.
    """

    passed: list[TranscriptStructure]
    failed: list[TranscriptStructure]
    criteria: FilterCriteria
    statistics: dict[str, Any] = attrs.Factory(dict)

    @property
    def total_count(self) -> int:
        """Total number of transcripts processed."""
        return len(self.passed) + len(self.failed)

    @property
    def pass_count(self) -> int:
        """Number of transcripts that passed."""
        return len(self.passed)

    def passed_ids(self) -> list[str]:
        """Get list of transcript IDs that passed."""
        return [s.transcript_id for s in self.passed]


# =============================================================================
# Transcript Filter
# =============================================================================


@attrs.define
class TranscriptFilter:
    """Filter transcripts based on metadata criteria.

    Example:
        >>> transcript_filter = TranscriptFilter(FilterCriteria(seqids=["chr1"]))
        >>> result = transcript_filter.apply(structures)
        >>> print(f"Passed: {result.pass_count}/{result.total_count}")
    """

    criteria: FilterCriteria

    def __call__(self, structure: TranscriptStructure) -> bool:
        """Return True if the transcript passes all criteria."""
        return self._check_transcript(structure)[0]

    def apply(
        self,
        structures: Mapping[str, TranscriptStructure] | Iterable[TranscriptStructure],
    ) -> FilterResult:
        """Apply filter criteria to transcripts.

        Args:
            structures: Dict or iterable of TranscriptStructure objects.

        Returns:
            FilterResult with passed/failed transcripts and statistics.
        """
        if isinstance(structures, Mapping):
            items = list(structures.values())
        else:
            items = list(structures)

        passed: list[TranscriptStructure] = []
        failed: list[TranscriptStructure] = []
        fail_reasons: dict[str, int] = {}

        for structure in items:
            is_pass, reason = self._check_transcript(structure)
            if is_pass:
                passed.append(structure)
            else:
                failed.append(structure)
                if reason:
                    fail_reasons[reason] = fail_reasons.get(reason, 0) + 1

        statistics = {
            "total": len(items),
            "passed": len(passed),
            "failed": len(failed),
            "fail_reasons": fail_reasons,
        }

        return FilterResult(
            passed=passed,
            failed=failed,
            criteria=self.criteria,
            statistics=statistics,
        )

    def _check_transcript(self, structure: TranscriptStructure) -> tuple[bool, str | None]:
        """Check if a transcript passes all criteria.

        Returns:
            Tuple of (passed, failure_reason).
        """
        criteria = self.criteria

        if criteria.transcript_ids is not None:
            if structure.transcript_id not in criteria.transcript_ids:
                return False, "transcript_id"

        if criteria.gene_ids is not None:
            if structure.gene_id not in criteria.gene_ids:
                return False, "gene_id"

        if criteria.gene_names is not None:
            if structure.gene_name not in criteria.gene_names:
                return False, "gene_name"

        if criteria.seqids is not None:
            if structure.seqid not in criteria.seqids:
                return False, "seqid"

        if criteria.coding_only and not structure.is_coding:
            return False, "noncoding"

        if criteria.min_exons is not None:
            if structure.n_exons < criteria.min_exons:
                return False, "too_few_exons"

        if criteria.custom_filter is not None:
            if not criteria.custom_filter(structure):
                return False, "custom_filter"

        return True, None

    # -------------------------------------------------------------------------
    # Preset Filter Profiles
    # -------------------------------------------------------------------------

    @classmethod
    def multi_exon_coding(cls) -> "TranscriptFilter":
        """Create filter for coding transcripts with at least one junction."""
        return cls(FilterCriteria(name="multi_exon_coding", coding_only=True, min_exons=2))


def filter_transcripts(
    structures: Mapping[str, TranscriptStructure] | Iterable[TranscriptStructure],
    **criteria: Any,
) -> list[TranscriptStructure]:
    """Convenience wrapper returning the structures passing the criteria.

    Args:
        structures: Dict or iterable of TranscriptStructure objects.
        **criteria: Keyword arguments for FilterCriteria.

    Returns:
        Structures that passed, in input order.
    """
    return TranscriptFilter(FilterCriteria(**criteria)).apply(structures).passed
