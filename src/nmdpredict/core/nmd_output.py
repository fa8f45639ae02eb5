"""Output writers for NMD prediction results.

This module provides functions for exporting NMD tables:

- TSV table with one row per transcript
- Summary statistics

Example:
    >>> from nmdpredict.core.nmd import predict_nmd
    >>> from nmdpredict.core.nmd_output import write_nmd_table_tsv
    >>>
    >>> table = predict_nmd(transcripts)
    >>> write_nmd_table_tsv(table, "nmd.tsv")
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nmdpredict.core.nmd import NMDTable

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


# =============================================================================
# TSV Writers
# =============================================================================


def write_nmd_table_tsv(table: "NMDTable", output_path: Path | str) -> None:
    """Write an NMD table to TSV.

    Args:
        table: NMDTable to write.
        output_path: Output file path.
    """
    output_path = Path(output_path)
    columns = table.columns

    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f, delimiter="\t")
        writer.writerow(columns)
        for row in table.to_records():
            writer.writerow([_format_value(row[col]) for col in columns])

    logger.info(f"Wrote {len(table)} NMD predictions to {output_path}")


# =============================================================================
# Summary Statistics
# =============================================================================


def summarize_nmd_results(table: "NMDTable") -> dict[str, Any]:
    """Calculate summary statistics for an NMD table.

    Args:
        table: NMDTable to summarise.

    Returns:
        Dictionary with transcript and NMD counts.
    """
    n = len(table)
    n_nmd = table.n_nmd
    utr_lengths = [r.utr3_length for r in table]

    return {
        "n_transcripts": n,
        "n_nmd": n_nmd,
        "n_not_nmd": n - n_nmd,
        "nmd_fraction": n_nmd / n if n else 0.0,
        "n_with_downstream_ej": sum(1 for r in table if r.num_of_down_ejs > 0),
        "mean_utr3_length": sum(utr_lengths) / n if n else 0.0,
    }


def write_nmd_summary_txt(table: "NMDTable", output_path: Path | str) -> None:
    """Write summary statistics as ``key<TAB>value`` lines.

    Args:
        table: NMDTable to summarise.
        output_path: Output file path.
    """
    stats = summarize_nmd_results(table)
    with open(output_path, "w") as f:
        for key, value in stats.items():
            if isinstance(value, float):
                value = f"{value:.4f}"
            f.write(f"{key}\t{value}\n")
