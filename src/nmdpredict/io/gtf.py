"""GTF/GFF3 file handling.

This module reads exon and CDS features from GTF or GFF3 annotation
files and groups them per transcript into TranscriptStructure objects
ready for NMD prediction.

Features:
    - GTF (``key "value";``) and GFF3 (``key=value``) attribute syntax
    - Plain or gzipped input
    - Transcript-level attributes kept as metadata
    - Coordinate conversion (1-based inclusive to 0-based half-open)

Example:
    >>> from nmdpredict.io.gtf import GTFParser
    >>> parser = GTFParser("assembly.gtf")
    >>> for structure in parser.iter_transcripts():
    ...     print(structure.transcript_id, structure.n_exons)
"""

from __future__ import annotations

import gzip
import logging
from collections import defaultdict
from pathlib import Path
from typing import IO, Any, Iterator, Literal

from nmdpredict.core.geometry import MalformedStructureError, TranscriptStructure
from nmdpredict.utils.intervals import GenomicInterval

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Column indices (shared by GTF and GFF3)
COL_SEQID = 0
COL_SOURCE = 1
COL_TYPE = 2
COL_START = 3
COL_END = 4
COL_SCORE = 5
COL_STRAND = 6
COL_PHASE = 7
COL_ATTRIBUTES = 8

FEATURE_EXON = "exon"
FEATURE_CDS = "CDS"
FEATURE_TYPES_TRANSCRIPT = {"transcript", "mRNA", "ncRNA", "lnc_RNA"}

# Exon-level attributes not copied to transcript metadata
EXON_ONLY_ATTRIBUTES = {"exon_number", "exon_id", "ID", "Parent", "phase"}

AnnotationFormat = Literal["gtf", "gff3"]


# =============================================================================
# Attribute Parsing
# =============================================================================


def parse_gtf_attributes(attr_string: str) -> dict[str, str]:
    """Parse GTF attribute string into dictionary.

    Repeated keys (e.g. ``tag``) are joined with commas.

    Args:
        attr_string: Semicolon-separated ``key "value"`` pairs.

    Returns:
        Dictionary of attribute key-value pairs.
    """
    attributes: dict[str, str] = {}
    if not attr_string or attr_string == ".":
        return attributes

    for item in attr_string.split(";"):
        item = item.strip()
        if not item:
            continue

        key, _, value = item.partition(" ")
        value = value.strip().strip('"')
        if key in attributes:
            attributes[key] = f"{attributes[key]},{value}"
        else:
            attributes[key] = value

    return attributes


def parse_gff3_attributes(attr_string: str) -> dict[str, str]:
    """Parse GFF3 attribute string into dictionary.

    Args:
        attr_string: Semicolon-separated key=value pairs.

    Returns:
        Dictionary of attribute key-value pairs.
    """
    attributes: dict[str, str] = {}
    if not attr_string or attr_string == ".":
        return attributes

    for item in attr_string.split(";"):
        item = item.strip()
        if not item or "=" not in item:
            continue

        key, value = item.split("=", 1)
        # URL decode
        value = value.replace("%3B", ";").replace("%3D", "=").replace("%26", "&")
        value = value.replace("%2C", ",")
        attributes[key] = value

    return attributes


def detect_format(path: Path | str) -> AnnotationFormat:
    """Guess whether a file is GTF or GFF3.

    Uses the file extension, falling back to the attribute syntax of the
    first feature line.

    Args:
        path: Annotation file path.

    Returns:
        "gtf" or "gff3".
    """
    path = Path(path)
    suffixes = [s.lower() for s in path.suffixes if s.lower() != ".gz"]
    if suffixes and suffixes[-1] == ".gtf":
        return "gtf"
    if suffixes and suffixes[-1] in (".gff", ".gff3"):
        return "gff3"

    with _open_text(path) as f:
        for line in f:
            if line.startswith("#") or not line.strip():
                continue
            parts = line.rstrip("\n").split("\t")
            if len(parts) >= 9 and '"' not in parts[COL_ATTRIBUTES] and "=" in parts[COL_ATTRIBUTES]:
                return "gff3"
            return "gtf"
    return "gtf"


def _open_text(path: Path) -> IO[str]:
    if path.suffix.lower() == ".gz":
        return gzip.open(path, "rt")
    return open(path)


# =============================================================================
# GTF Parser
# =============================================================================


class GTFParser:
    """Parse a GTF/GFF3 file into per-transcript exon and CDS structures.

    Attributes:
        path: Path to the annotation file.
        format: "gtf" or "gff3".
        strict: Raise on malformed transcripts instead of dropping them.

    Example:
        >>> parser = GTFParser("assembly.gtf")
        >>> structure = parser.get_transcript("transcript1")
        >>> structure.is_coding
        True
    """

    def __init__(
        self,
        path: Path | str,
        format: AnnotationFormat | None = None,
        strict: bool = True,
    ) -> None:
        """Initialize the parser.

        Args:
            path: Path to GTF or GFF3 file.
            format: Force a format instead of detecting it.
            strict: Raise MalformedStructureError for invalid transcripts.

        Raises:
            FileNotFoundError: If file doesn't exist.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Annotation file not found: {self.path}")

        self.format: AnnotationFormat = format or detect_format(self.path)
        self.strict = strict
        self._transcripts: dict[str, TranscriptStructure] | None = None
        self._seqids: set[str] = set()

    def _parse_line(self, line: str) -> dict[str, Any] | None:
        """Parse a single annotation line.

        Args:
            line: Raw line.

        Returns:
            Parsed feature dictionary or None for comments/empty/malformed.
        """
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        parts = line.split("\t")
        if len(parts) < 9:
            logger.warning(f"Malformed line (expected 9 columns): {line[:50]}...")
            return None

        try:
            parse_attributes = (
                parse_gtf_attributes if self.format == "gtf" else parse_gff3_attributes
            )
            return {
                "seqid": parts[COL_SEQID],
                "source": parts[COL_SOURCE],
                "type": parts[COL_TYPE],
                # 1-based inclusive to 0-based half-open
                "start": int(parts[COL_START]) - 1,
                "end": int(parts[COL_END]),
                "strand": parts[COL_STRAND],
                "attributes": parse_attributes(parts[COL_ATTRIBUTES]),
            }
        except ValueError as e:
            logger.warning(f"Error parsing line: {e}")
            return None

    def _transcript_ids(self, feature: dict[str, Any]) -> list[str]:
        """Transcript IDs a feature belongs to."""
        attributes = feature["attributes"]
        if self.format == "gtf":
            tx_id = attributes.get("transcript_id")
            return [tx_id] if tx_id else []
        parent = attributes.get("Parent", "")
        return [p for p in parent.split(",") if p]

    def _build_transcripts(self) -> dict[str, TranscriptStructure]:
        """Group exon and CDS features by transcript."""
        exons: dict[str, list[GenomicInterval]] = defaultdict(list)
        cds: dict[str, list[GenomicInterval]] = defaultdict(list)
        metadata: dict[str, dict[str, str]] = {}

        with _open_text(self.path) as f:
            for line in f:
                feature = self._parse_line(line)
                if feature is None:
                    continue

                self._seqids.add(feature["seqid"])
                ftype = feature["type"]
                attributes = feature["attributes"]

                if ftype in FEATURE_TYPES_TRANSCRIPT:
                    if self.format == "gtf":
                        tx_id = attributes.get("transcript_id")
                    else:
                        tx_id = attributes.get("ID")
                    if not tx_id:
                        continue
                    meta = dict(attributes)
                    meta.setdefault("transcript_id", tx_id)
                    if "gene_id" not in meta and attributes.get("Parent"):
                        meta["gene_id"] = attributes["Parent"].split(",")[0]
                    metadata[tx_id] = meta

                elif ftype in (FEATURE_EXON, FEATURE_CDS):
                    interval = GenomicInterval(
                        feature["seqid"], feature["start"], feature["end"], feature["strand"]
                    )
                    target = exons if ftype == FEATURE_EXON else cds
                    for tx_id in self._transcript_ids(feature):
                        target[tx_id].append(interval)
                        if tx_id not in metadata:
                            metadata[tx_id] = {
                                k: v for k, v in attributes.items() if k not in EXON_ONLY_ATTRIBUTES
                            }
                            metadata[tx_id].setdefault("transcript_id", tx_id)

        transcripts: dict[str, TranscriptStructure] = {}
        for tx_id in metadata:
            if tx_id not in exons:
                if tx_id in cds:
                    self._reject(tx_id, "CDS features without exons")
                continue
            try:
                transcripts[tx_id] = TranscriptStructure(
                    transcript_id=tx_id,
                    exons=exons[tx_id],
                    cds=cds.get(tx_id, ()),
                    attributes=metadata[tx_id],
                )
            except MalformedStructureError as e:
                self._reject(tx_id, str(e))

        n_coding = sum(1 for s in transcripts.values() if s.is_coding)
        logger.info(f"Parsed {len(transcripts)} transcripts ({n_coding} coding) from {self.path}")
        return transcripts

    def _reject(self, tx_id: str, reason: str) -> None:
        if self.strict:
            raise MalformedStructureError(f"Transcript {tx_id}: {reason}")
        logger.warning(f"Dropping transcript {tx_id}: {reason}")

    def _ensure_parsed(self) -> None:
        """Ensure the file has been parsed."""
        if self._transcripts is None:
            self._transcripts = self._build_transcripts()

    def iter_transcripts(self) -> Iterator[TranscriptStructure]:
        """Iterate over transcript structures in file order.

        Yields:
            TranscriptStructure objects.
        """
        self._ensure_parsed()
        assert self._transcripts is not None
        yield from self._transcripts.values()

    def get_transcript(self, transcript_id: str) -> TranscriptStructure | None:
        """Retrieve a transcript by ID.

        Args:
            transcript_id: Transcript identifier.

        Returns:
            TranscriptStructure or None if not found.
        """
        self._ensure_parsed()
        assert self._transcripts is not None
        return self._transcripts.get(transcript_id)

    @property
    def transcripts(self) -> dict[str, TranscriptStructure]:
        """All transcripts keyed by ID."""
        self._ensure_parsed()
        assert self._transcripts is not None
        return dict(self._transcripts)

    @property
    def transcript_ids(self) -> list[str]:
        """List of all transcript IDs."""
        self._ensure_parsed()
        assert self._transcripts is not None
        return list(self._transcripts.keys())

    @property
    def seqids(self) -> set[str]:
        """Chromosome/contig names seen in any feature line."""
        self._ensure_parsed()
        return set(self._seqids)


# =============================================================================
# Convenience Functions
# =============================================================================


def read_transcripts(
    path: Path | str,
    format: AnnotationFormat | None = None,
    strict: bool = True,
) -> dict[str, TranscriptStructure]:
    """Read transcript structures from a GTF/GFF3 file.

    Args:
        path: Path to the annotation file.
        format: Force "gtf" or "gff3".
        strict: Raise on malformed transcripts.

    Returns:
        Dictionary of transcript ID to TranscriptStructure.
    """
    return GTFParser(path, format=format, strict=strict).transcripts
