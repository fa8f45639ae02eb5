"""Nonsense-mediated decay prediction.

This module classifies transcripts as NMD-sensitive using the
position of the stop codon relative to the last exon-exon junction:
a stop codon lying more than ``threshold`` spliced nucleotides upstream
of the last junction is predicted to trigger NMD.

For each transcript the classifier reports:

- stop_to_lastEJ: spliced distance from the stop codon to the last
  junction (negative when the stop codon is in the last exon)
- num_of_downEJs: number of junctions downstream of the stop codon
- 3'UTR_length: spliced length from the stop codon to the 3' end
- is_NMD: the verdict
- PTC_coord: ``seqid:position:strand`` of the stop codon (1-based)

The stop codon position is the spliced base immediately 3' of the last CDS
base. Single-exon transcripts are never NMD targets.

Example:
    >>> from nmdpredict.core.nmd import classify_transcript, predict_nmd
    >>> result = classify_transcript(exons, cds, threshold=50)
    >>> result.is_nmd
    True
    >>> table = predict_nmd(transcripts, threshold=50)
    >>> table.columns
    ('transcript', 'stop_to_lastEJ', 'num_of_downEJs', "3'UTR_length", 'is_NMD', 'PTC_coord')
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any, Literal

import attrs

from nmdpredict.core.geometry import (
    CDSSet,
    ExonSet,
    MalformedStructureError,
    TranscriptStructure,
    cds_terminal_base,
    junction_spliced_positions,
    order_by_transcription_direction,
    to_genomic_coordinate,
    to_spliced_coordinate,
    transcript_length,
    validate_cds_within_exons,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Canonical distance (nt) between stop codon and last junction
DEFAULT_NMD_THRESHOLD = 50

NMD_COLUMNS = (
    "transcript",
    "stop_to_lastEJ",
    "num_of_downEJs",
    "3'UTR_length",
    "is_NMD",
    "PTC_coord",
)
DOWN_EJS_COLUMN = "stop_to_downEJs"


# =============================================================================
# Exceptions
# =============================================================================


class NoCDSError(ValueError):
    """Raised when a transcript without a CDS is submitted for classification."""

    pass


# =============================================================================
# Data Structures
# =============================================================================


@attrs.frozen
class NMDResult:
    """NMD classification of one transcript.

    Attributes:
        transcript_id: Transcript identifier.
        stop_to_last_ej: Spliced distance from stop codon to last junction.
        num_of_down_ejs: Junctions strictly downstream of the stop codon.
        utr3_length: Spliced 3'UTR length including the stop position.
        is_nmd: Whether the transcript is predicted NMD-sensitive.
        ptc_coord: Stop codon coordinate as ``seqid:position:strand``.
        stop_to_down_ejs: Distance from the stop codon to each
            downstream junction, 5' to 3'.
    """

    transcript_id: str
    stop_to_last_ej: int
    num_of_down_ejs: int
    utr3_length: int
    is_nmd: bool
    ptc_coord: str
    stop_to_down_ejs: tuple[int, ...] = ()

    def to_dict(self, include_down_ejs: bool = False) -> dict[str, Any]:
        """Convert to a row keyed by table column names."""
        row: dict[str, Any] = {
            "transcript": self.transcript_id,
            "stop_to_lastEJ": self.stop_to_last_ej,
            "num_of_downEJs": self.num_of_down_ejs,
            "3'UTR_length": self.utr3_length,
            "is_NMD": self.is_nmd,
            "PTC_coord": self.ptc_coord,
        }
        if include_down_ejs:
            row[DOWN_EJS_COLUMN] = ",".join(str(d) for d in self.stop_to_down_ejs)
        return row


@attrs.define
class NMDTable:
    """NMD results for many transcripts, keyed by transcript ID.

    Rows keep the order in which transcripts were submitted.

    Attributes:
        results: Classification records.
        include_down_ejs: Whether the stop_to_downEJs column is reported.
    """

    results: list[NMDResult] = attrs.Factory(list)
    include_down_ejs: bool = False
    _index: dict[str, NMDResult] = attrs.field(init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        self._index = {r.transcript_id: r for r in self.results}

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names in output order."""
        if self.include_down_ejs:
            return NMD_COLUMNS + (DOWN_EJS_COLUMN,)
        return NMD_COLUMNS

    @property
    def transcript_ids(self) -> list[str]:
        """Transcript IDs in row order."""
        return [r.transcript_id for r in self.results]

    @property
    def n_nmd(self) -> int:
        """Number of transcripts predicted NMD-sensitive."""
        return sum(1 for r in self.results if r.is_nmd)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[NMDResult]:
        return iter(self.results)

    def __contains__(self, transcript_id: object) -> bool:
        return transcript_id in self._index

    def __getitem__(self, transcript_id: str) -> NMDResult:
        return self._index[transcript_id]

    def to_records(self) -> list[dict[str, Any]]:
        """Rows as dictionaries keyed by column name."""
        return [r.to_dict(include_down_ejs=self.include_down_ejs) for r in self.results]


# =============================================================================
# Single Transcript Classification
# =============================================================================


def classify_transcript(
    exons: ExonSet,
    cds: CDSSet,
    threshold: int = DEFAULT_NMD_THRESHOLD,
    transcript_id: str = "",
) -> NMDResult:
    """Classify one transcript as NMD-sensitive or not.

    Args:
        exons: Exon set of the transcript.
        cds: CDS set of the transcript.
        threshold: Minimum distance (nt) between stop codon and last
            junction for the transcript to be called an NMD target.
        transcript_id: Identifier copied into the result.

    Returns:
        NMDResult for the transcript.

    Raises:
        NoCDSError: If the CDS set is empty.
        MalformedStructureError: If the CDS does not lie within the exons.
    """
    if not isinstance(exons, ExonSet):
        exons = ExonSet(exons)
    if not isinstance(cds, CDSSet):
        cds = CDSSet(cds)

    if not cds.intervals:
        raise NoCDSError(f"Transcript {transcript_id or '<unnamed>'} has no CDS")
    validate_cds_within_exons(exons, cds)

    ordered = order_by_transcription_direction(exons)
    terminal = cds_terminal_base(cds)
    stop_pos = to_spliced_coordinate(terminal, exons) + 1
    tx_length = transcript_length(exons)

    if stop_pos <= tx_length:
        stop_genomic = to_genomic_coordinate(stop_pos, exons)
    elif exons.strand == "+":
        # CDS runs to the 3' end: report the base just past the last exon
        stop_genomic = ordered[-1].end
    else:
        stop_genomic = ordered[-1].start - 1

    utr3_length = tx_length - stop_pos + 1
    ptc_coord = f"{exons.seqid}:{stop_genomic + 1}:{exons.strand}"

    junction_pos = junction_spliced_positions(exons)
    if not junction_pos:
        # No junction: report the distance to the transcript 3' end instead
        return NMDResult(
            transcript_id=transcript_id,
            stop_to_last_ej=tx_length - stop_pos,
            num_of_down_ejs=0,
            utr3_length=utr3_length,
            is_nmd=False,
            ptc_coord=ptc_coord,
        )

    down_ejs = tuple(pos - stop_pos for pos in junction_pos if pos > stop_pos)
    stop_to_last_ej = junction_pos[-1] - stop_pos

    return NMDResult(
        transcript_id=transcript_id,
        stop_to_last_ej=stop_to_last_ej,
        num_of_down_ejs=len(down_ejs),
        utr3_length=utr3_length,
        is_nmd=stop_to_last_ej > threshold,
        ptc_coord=ptc_coord,
        stop_to_down_ejs=down_ejs,
    )


def classify_structure(
    structure: TranscriptStructure,
    threshold: int = DEFAULT_NMD_THRESHOLD,
) -> NMDResult:
    """Classify a TranscriptStructure.

    Args:
        structure: Transcript geometry and metadata.
        threshold: NMD distance threshold (nt).

    Returns:
        NMDResult for the transcript.
    """
    return classify_transcript(
        structure.exons,
        structure.cds,
        threshold=threshold,
        transcript_id=structure.transcript_id,
    )


# =============================================================================
# Batch Prediction
# =============================================================================


def _build_structure(tx_id: str, value: Any, cds: Mapping[str, Any] | None) -> TranscriptStructure:
    if isinstance(value, TranscriptStructure):
        return value
    if cds is not None:
        return TranscriptStructure(tx_id, value, cds.get(tx_id))
    if isinstance(value, tuple) and len(value) == 2:
        return TranscriptStructure(tx_id, value[0], value[1])
    raise MalformedStructureError(
        f"Cannot interpret input for transcript {tx_id}: expected TranscriptStructure "
        f"or (exons, cds) pair, got {type(value).__name__}"
    )


def build_structures(
    transcripts: Mapping[str, Any],
    cds: Mapping[str, Any] | None = None,
    on_error: Literal["raise", "skip"] = "raise",
) -> dict[str, TranscriptStructure]:
    """Normalise batch input into TranscriptStructure objects.

    ``transcripts`` maps transcript IDs to TranscriptStructure objects, to
    ``(exons, cds)`` pairs, or, when ``cds`` is given, to exon collections.

    Args:
        transcripts: Mapping of transcript ID to transcript geometry.
        cds: Optional mapping of transcript ID to CDS collection.
        on_error: "raise" to propagate the first malformed transcript,
            "skip" to log and drop it.

    Returns:
        Dictionary of transcript ID to TranscriptStructure, in input order.

    Raises:
        MalformedStructureError: If either argument is not a mapping or if
            ``cds`` names transcripts absent from ``transcripts``. With
            ``on_error="raise"``, also if a value cannot be interpreted or
            violates the exon/CDS invariants.
    """
    if not isinstance(transcripts, Mapping):
        raise MalformedStructureError(
            f"Expected a mapping of transcript ID to exons, got {type(transcripts).__name__}"
        )

    if cds is not None:
        if not isinstance(cds, Mapping):
            raise MalformedStructureError(
                f"Expected a mapping of transcript ID to CDS, got {type(cds).__name__}"
            )
        orphans = sorted(set(cds) - set(transcripts))
        if orphans:
            raise MalformedStructureError(
                f"CDS given for {len(orphans)} transcripts without exons: {', '.join(orphans[:5])}"
            )

    structures: dict[str, TranscriptStructure] = {}
    for tx_id, value in transcripts.items():
        try:
            structures[tx_id] = _build_structure(tx_id, value, cds)
        except ValueError as e:
            if on_error == "raise":
                raise
            logger.warning(f"Skipping {tx_id}: {type(e).__name__}: {e}")

    return structures


def predict_nmd(
    transcripts: Mapping[str, Any],
    cds: Mapping[str, Any] | None = None,
    threshold: int = DEFAULT_NMD_THRESHOLD,
    where: Callable[[TranscriptStructure], bool] | None = None,
    return_stop_to_down_ejs: bool = False,
    skip_noncoding: bool = True,
    on_error: Literal["raise", "skip"] = "raise",
    n_workers: int = 1,
    backend: str = "processes",
    progress_callback: Callable[[int, int, str], None] | None = None,
) -> NMDTable:
    """Predict NMD sensitivity for many transcripts.

    Args:
        transcripts: Mapping of transcript ID to TranscriptStructure,
            ``(exons, cds)`` pair, or exon collection (with ``cds``).
        cds: Optional mapping of transcript ID to CDS collection.
        threshold: NMD distance threshold (nt), shared by all transcripts.
        where: Predicate selecting transcripts to classify.
        return_stop_to_down_ejs: Add the stop_to_downEJs column.
        skip_noncoding: Skip transcripts without CDS instead of raising
            NoCDSError.
        on_error: "raise" to propagate the first per-transcript failure
            (malformed structure or classification error),
            "skip" to log and drop failing transcripts.
        n_workers: Number of parallel workers.
        backend: Executor backend (serial, threads, processes).
        progress_callback: Called with (completed, total, transcript_id).

    Returns:
        NMDTable with one row per classified transcript.

    Raises:
        MalformedStructureError: If the input is not a mapping, if CDS is
            given for unknown transcripts, or, with ``on_error="raise"``,
            if a transcript is malformed.
        NoCDSError: If a non-coding transcript is selected and
            ``skip_noncoding`` is False.
    """
    from nmdpredict.parallel.executor import ParallelExecutor

    if on_error not in ("raise", "skip"):
        raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")

    structures = build_structures(transcripts, cds, on_error=on_error)
    selected = [s for s in structures.values() if where is None or where(s)]
    logger.info(f"Selected {len(selected)}/{len(structures)} transcripts for NMD prediction")

    if skip_noncoding:
        coding = [s for s in selected if s.is_coding]
        if len(coding) < len(selected):
            logger.info(f"Skipping {len(selected) - len(coding)} transcripts without CDS")
        selected = coding

    executor = ParallelExecutor(
        n_workers=n_workers,
        backend=backend,
        progress_callback=progress_callback,
    )
    task_results, _stats = executor.map_items(
        functools.partial(classify_structure, threshold=threshold),
        selected,
        ids=[s.transcript_id for s in selected],
        continue_on_error=on_error == "skip",
    )

    results = []
    for task in task_results:
        if task.success:
            results.append(task.result)
        else:
            logger.warning(f"Skipping {task.task_id}: {task.error}")

    logger.info(
        f"Classified {len(results)} transcripts, "
        f"{sum(1 for r in results if r.is_nmd)} predicted NMD-sensitive"
    )
    return NMDTable(results=results, include_down_ejs=return_stop_to_down_ejs)
