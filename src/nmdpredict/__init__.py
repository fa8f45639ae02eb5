"""nmdpredict: Predict nonsense-mediated decay of assembled transcripts.

nmdpredict annotates custom-assembled transcriptomes with NMD
predictions: for each coding transcript it locates the stop codon,
measures its distance to the last exon-exon junction and calls the
transcript NMD-sensitive when that distance exceeds a threshold.

Example:
    >>> import nmdpredict
    >>> nmdpredict.__version__
    '0.1.0'

Modules:
    core: Exon/CDS geometry and NMD classification
    io: GTF/GFF3 input
    filters: Transcript selection by metadata
    parallel: Parallel execution of per-transcript work
    utils: Intervals, logging and seqlevel checks
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
