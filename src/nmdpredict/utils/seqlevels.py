"""Chromosome naming consistency checks.

Comparisons between two annotations only make sense when they name
chromosomes the same way (``chr1`` vs ``1``, ``chrM`` vs ``MT``). These
helpers check that every seqid of a query annotation exists in a
reference. They never rename anything.

Example:
    >>> from nmdpredict.utils.seqlevels import has_consistent_seqlevels
    >>> has_consistent_seqlevels({"chr1", "chr2"}, {"chr1", "chr2", "chrX"})
    True
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from nmdpredict.core.geometry import TranscriptStructure

logger = logging.getLogger(__name__)


def seqlevels(source: Mapping[str, Any] | Iterable[Any]) -> set[str]:
    """Collect seqids from structures or plain names.

    Args:
        source: Mapping or iterable of TranscriptStructure objects, or an
            iterable of seqid strings.

    Returns:
        Set of seqids.
    """
    items = source.values() if isinstance(source, Mapping) else source
    names = set()
    for item in items:
        if isinstance(item, TranscriptStructure):
            names.add(item.seqid)
        else:
            names.add(str(item))
    return names


def missing_seqlevels(
    query: Mapping[str, Any] | Iterable[Any],
    reference: Mapping[str, Any] | Iterable[Any],
) -> list[str]:
    """Seqids of the query that do not appear in the reference.

    Args:
        query: Query structures or seqids.
        reference: Reference structures or seqids.

    Returns:
        Sorted list of missing seqids.
    """
    return sorted(seqlevels(query) - seqlevels(reference))


def has_consistent_seqlevels(
    query: Mapping[str, Any] | Iterable[Any],
    reference: Mapping[str, Any] | Iterable[Any],
) -> bool:
    """Check that every query seqid is present in the reference.

    Args:
        query: Query structures or seqids.
        reference: Reference structures or seqids.

    Returns:
        True if all query seqids are found in the reference.
    """
    missing = missing_seqlevels(query, reference)
    if missing:
        logger.warning(
            f"{len(missing)} seqlevels missing from reference: {', '.join(missing[:10])}"
        )
        return False
    return True
