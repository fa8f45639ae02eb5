"""Pytest configuration and shared fixtures for nmdpredict tests.

Fixtures are organized by category:

- Structure fixtures: exon/CDS sets for reference transcripts
- File fixtures: GTF/GFF3 files written to tmp_path

Reference transcripts (0-based half-open coordinates):

- transcript1 (chr1, +): 3 exons, stop codon in the last exon.
  stop_to_lastEJ = -130, 3'UTR_length = 1158, not NMD.
- transcript2 (chr2, +): single exon, never NMD.
- transcript3 (chr1, -): 5 exons, stop codon 364 nt upstream of the
  last junction. stop_to_lastEJ = 364, 3'UTR_length = 644, NMD.
- transcript4 (chr2, -): 2 exons, stop codon 99 nt upstream of the
  junction, NMD.
- transcript5 (chr3, +): non-coding.
"""

from pathlib import Path

import pytest

from nmdpredict.core.geometry import CDSSet, ExonSet, TranscriptStructure


# =============================================================================
# Raw Coordinates
# =============================================================================

TX1_EXONS = [("chr1", 1000, 1200, "+"), ("chr1", 1500, 1700, "+"), ("chr1", 2000, 3287, "+")]
TX1_CDS = [("chr1", 1100, 1200, "+"), ("chr1", 1500, 1700, "+"), ("chr1", 2000, 2129, "+")]

TX2_EXONS = [("chr2", 5000, 6000, "+")]
TX2_CDS = [("chr2", 5100, 5400, "+")]

TX3_EXONS = [
    ("chr1", 10000, 10279, "-"),
    ("chr1", 10500, 10578, "-"),
    ("chr1", 11000, 11217, "-"),
    ("chr1", 11500, 11620, "-"),
    ("chr1", 12000, 12150, "-"),
]
TX3_CDS = [("chr1", 11570, 11620, "-"), ("chr1", 12000, 12120, "-")]

TX4_EXONS = [("chr2", 8000, 8500, "-"), ("chr2", 9000, 9300, "-")]
TX4_CDS = [("chr2", 9100, 9250, "-")]

TX5_EXONS = [("chr3", 100, 300, "+"), ("chr3", 400, 600, "+")]


# =============================================================================
# Structure Fixtures
# =============================================================================


@pytest.fixture
def tx1_exons() -> ExonSet:
    """Exons of transcript1 (stop codon in last exon)."""
    return ExonSet(TX1_EXONS)


@pytest.fixture
def tx1_cds() -> CDSSet:
    """CDS of transcript1."""
    return CDSSet(TX1_CDS)


@pytest.fixture
def tx3_exons() -> ExonSet:
    """Exons of transcript3 (NMD target, minus strand)."""
    return ExonSet(TX3_EXONS)


@pytest.fixture
def tx3_cds() -> CDSSet:
    """CDS of transcript3."""
    return CDSSet(TX3_CDS)


@pytest.fixture
def single_exon() -> TranscriptStructure:
    """Single-exon coding transcript2."""
    return TranscriptStructure("transcript2", TX2_EXONS, TX2_CDS)


@pytest.fixture
def structures() -> dict[str, TranscriptStructure]:
    """The four coding reference transcripts keyed by ID."""
    return {
        "transcript1": TranscriptStructure(
            "transcript1", TX1_EXONS, TX1_CDS, {"gene_id": "gene1", "gene_name": "Ptbp1"}
        ),
        "transcript2": TranscriptStructure(
            "transcript2", TX2_EXONS, TX2_CDS, {"gene_id": "gene2", "gene_name": "Srsf3"}
        ),
        "transcript3": TranscriptStructure(
            "transcript3", TX3_EXONS, TX3_CDS, {"gene_id": "gene1", "gene_name": "Ptbp1"}
        ),
        "transcript4": TranscriptStructure(
            "transcript4", TX4_EXONS, TX4_CDS, {"gene_id": "gene3", "gene_name": "Sox9"}
        ),
    }


@pytest.fixture
def noncoding() -> TranscriptStructure:
    """Non-coding transcript5."""
    return TranscriptStructure("transcript5", TX5_EXONS, None, {"gene_id": "gene4"})


# =============================================================================
# File Fixtures
# =============================================================================


def _gtf_line(seqid, ftype, start, end, strand, attributes):
    attr = " ".join(f'{k} "{v}";' for k, v in attributes.items())
    # 0-based half-open to 1-based inclusive
    return f"{seqid}\ttest\t{ftype}\t{start + 1}\t{end}\t.\t{strand}\t.\t{attr}\n"


def _write_gtf_transcript(f, tx_id, gene_id, gene_name, exons, cds):
    seqid, strand = exons[0][0], exons[0][3]
    base = {"gene_id": gene_id, "transcript_id": tx_id, "gene_name": gene_name}
    tx_start = min(e[1] for e in exons)
    tx_end = max(e[2] for e in exons)
    f.write(_gtf_line(seqid, "transcript", tx_start, tx_end, strand, base))
    for i, (_, start, end, _) in enumerate(exons, 1):
        f.write(_gtf_line(seqid, "exon", start, end, strand, {**base, "exon_number": i}))
    for _, start, end, _ in cds:
        f.write(_gtf_line(seqid, "CDS", start, end, strand, base))


@pytest.fixture
def query_gtf(tmp_path: Path) -> Path:
    """GTF with the four coding reference transcripts and one non-coding."""
    gtf_path = tmp_path / "query.gtf"
    with open(gtf_path, "w") as f:
        f.write("#!genome-build test\n")
        _write_gtf_transcript(f, "transcript1", "gene1", "Ptbp1", TX1_EXONS, TX1_CDS)
        _write_gtf_transcript(f, "transcript2", "gene2", "Srsf3", TX2_EXONS, TX2_CDS)
        _write_gtf_transcript(f, "transcript3", "gene1", "Ptbp1", TX3_EXONS, TX3_CDS)
        _write_gtf_transcript(f, "transcript4", "gene3", "Sox9", TX4_EXONS, TX4_CDS)
        _write_gtf_transcript(f, "transcript5", "gene4", "Malat1", TX5_EXONS, [])
    return gtf_path


@pytest.fixture
def reference_gtf(tmp_path: Path) -> Path:
    """Reference GTF covering chr1, chr2 and chr3."""
    gtf_path = tmp_path / "reference.gtf"
    with open(gtf_path, "w") as f:
        for seqid in ("chr1", "chr2", "chr3"):
            f.write(_gtf_line(seqid, "exon", 0, 100, "+", {"gene_id": "g", "transcript_id": f"ref_{seqid}"}))
    return gtf_path


@pytest.fixture
def ensembl_style_gtf(tmp_path: Path) -> Path:
    """Reference GTF naming chromosomes without the chr prefix."""
    gtf_path = tmp_path / "ensembl.gtf"
    with open(gtf_path, "w") as f:
        for seqid in ("1", "2", "3"):
            f.write(_gtf_line(seqid, "exon", 0, 100, "+", {"gene_id": "g", "transcript_id": f"ref_{seqid}"}))
    return gtf_path


@pytest.fixture
def query_gff3(tmp_path: Path) -> Path:
    """GFF3 version of transcript3 with an mRNA parent."""
    gff_path = tmp_path / "query.gff3"
    with open(gff_path, "w") as f:
        f.write("##gff-version 3\n")
        f.write("chr1\ttest\tgene\t10001\t12150\t.\t-\t.\tID=gene1;Name=Ptbp1\n")
        f.write("chr1\ttest\tmRNA\t10001\t12150\t.\t-\t.\tID=transcript3;Parent=gene1\n")
        for i, (_, start, end, _) in enumerate(TX3_EXONS, 1):
            f.write(f"chr1\ttest\texon\t{start + 1}\t{end}\t.\t-\t.\tID=exon{i};Parent=transcript3\n")
        for _, start, end, _ in TX3_CDS:
            f.write(f"chr1\ttest\tCDS\t{start + 1}\t{end}\t.\t-\t0\tID=cds3;Parent=transcript3\n")
    return gff_path


@pytest.fixture
def raw_coords() -> dict[str, list[tuple[str, int, int, str]]]:
    """Plain (seqid, start, end, strand) tuples keyed like ``tx1_exons``."""
    return {
        "tx1_exons": TX1_EXONS,
        "tx1_cds": TX1_CDS,
        "tx3_exons": TX3_EXONS,
        "tx3_cds": TX3_CDS,
        "tx5_exons": TX5_EXONS,
    }
