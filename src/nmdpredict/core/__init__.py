"""Core NMD prediction logic.

This module contains the geometry and classification code:

- geometry: Exon/CDS interval sets and spliced coordinates
- nmd: Per-transcript classification and batch prediction
- nmd_output: Table writers and summaries

Example:
    >>> from nmdpredict.core import ExonSet, CDSSet, classify_transcript
    >>> result = classify_transcript(ExonSet(exons), CDSSet(cds))
"""

from nmdpredict.core.geometry import (
    CDSSet,
    ExonSet,
    MalformedStructureError,
    OutOfRangeError,
    TranscriptStructure,
    junctions,
    last_exon_start,
    order_by_transcription_direction,
    to_genomic_coordinate,
    to_spliced_coordinate,
)
from nmdpredict.core.nmd import (
    DEFAULT_NMD_THRESHOLD,
    NMDResult,
    NMDTable,
    NoCDSError,
    classify_transcript,
    predict_nmd,
)

__all__ = [
    # Geometry
    "ExonSet",
    "CDSSet",
    "TranscriptStructure",
    "order_by_transcription_direction",
    "to_spliced_coordinate",
    "to_genomic_coordinate",
    "junctions",
    "last_exon_start",
    # Classification
    "DEFAULT_NMD_THRESHOLD",
    "NMDResult",
    "NMDTable",
    "classify_transcript",
    "predict_nmd",
    # Errors
    "MalformedStructureError",
    "NoCDSError",
    "OutOfRangeError",
]
