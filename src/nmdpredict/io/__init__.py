"""Input handlers for nmdpredict.

- GTF/GFF3: exon and CDS features grouped per transcript

Example:
    >>> from nmdpredict.io import read_transcripts
    >>> structures = read_transcripts("assembly.gtf")
"""

from nmdpredict.io.gtf import GTFParser, read_transcripts

__all__ = [
    "GTFParser",
    "read_transcripts",
]
