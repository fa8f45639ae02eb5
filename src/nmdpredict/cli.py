"""Command-line interface for nmdpredict.

This module provides the main entry point for the nmdpredict CLI tool.
It uses Click to define commands.

Commands:
    predict: Classify transcripts of a GTF/GFF3 file as NMD-sensitive
    check-seqlevels: Check chromosome naming against a reference annotation

Example:
    $ nmdpredict --help
    $ nmdpredict predict -g assembly.gtf -o nmd.tsv
    $ nmdpredict predict -g assembly.gtf -o nmd.tsv --gene ENSG00000011304 --down-ejs -j 4
    $ nmdpredict check-seqlevels -g assembly.gtf -r gencode.gtf
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from nmdpredict import __version__

# Initialize rich console for pretty output
console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="nmdpredict")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Write a debug log to this file.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, log_file: Optional[Path]) -> None:
    """nmdpredict: Predict nonsense-mediated decay of assembled transcripts.

    Transcripts whose stop codon lies more than a threshold distance
    upstream of the last exon-exon junction are predicted NMD-sensitive.
    """
    from nmdpredict.utils.logging import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity, log_file=log_file)


# =============================================================================
# predict command
# =============================================================================


@main.command()
@click.option(
    "-g",
    "--gtf",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Query GTF/GFF3 with exon and CDS features.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    required=True,
    help="Output NMD table (TSV).",
)
@click.option(
    "--threshold",
    type=int,
    default=None,
    help="Stop codon to last junction distance (nt) above which a transcript is NMD-sensitive. [default: 50]",
)
@click.option(
    "--transcript",
    "transcript_ids",
    type=str,
    multiple=True,
    help="Only classify these transcript IDs. Repeatable.",
)
@click.option(
    "--gene",
    "gene_ids",
    type=str,
    multiple=True,
    help="Only classify transcripts of these gene IDs. Repeatable.",
)
@click.option(
    "--down-ejs",
    is_flag=True,
    help="Add a stop_to_downEJs column with distances to downstream junctions.",
)
@click.option(
    "-r",
    "--reference",
    type=click.Path(exists=True, path_type=Path),
    help="Reference GTF/GFF3; abort if chromosome names do not match it.",
)
@click.option(
    "--on-error",
    type=click.Choice(["raise", "skip"]),
    default=None,
    help="Abort or skip when a transcript is malformed. [default: raise]",
)
@click.option(
    "--summary",
    type=click.Path(path_type=Path),
    help="Output summary statistics file.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML configuration file. Command-line options take precedence.",
)
@click.option(
    "-j",
    "--workers",
    type=int,
    default=None,
    help="Number of parallel workers (0 = all CPUs). [default: 1]",
)
@click.pass_context
def predict(
    ctx: click.Context,
    gtf: Path,
    output: Path,
    threshold: Optional[int],
    transcript_ids: tuple[str, ...],
    gene_ids: tuple[str, ...],
    down_ejs: bool,
    reference: Optional[Path],
    on_error: Optional[str],
    summary: Optional[Path],
    config_path: Optional[Path],
    workers: Optional[int],
) -> None:
    """Classify transcripts as NMD-sensitive.

    Reads exon and CDS features per transcript, locates the stop codon
    and compares its distance to the last exon-exon junction against
    the threshold. Transcripts without CDS are skipped.

    \b
    Output columns:
    - transcript: transcript ID
    - stop_to_lastEJ: spliced distance from stop codon to last junction
    - num_of_downEJs: junctions downstream of the stop codon
    - 3'UTR_length: spliced length from stop codon to transcript end
    - is_NMD: TRUE/FALSE
    - PTC_coord: seqid:position:strand of the stop codon

    \b
    Examples:
        $ nmdpredict predict -g assembly.gtf -o nmd.tsv
        $ nmdpredict predict -g assembly.gtf -o nmd.tsv --threshold 55 -j 4
    """
    from nmdpredict.config import Config
    from nmdpredict.core.nmd import predict_nmd
    from nmdpredict.core.nmd_output import (
        summarize_nmd_results,
        write_nmd_summary_txt,
        write_nmd_table_tsv,
    )
    from nmdpredict.filters import FilterCriteria, TranscriptFilter
    from nmdpredict.io.gtf import GTFParser
    from nmdpredict.parallel.executor import create_progress_bar, get_optimal_workers
    from nmdpredict.utils.logging import ProgressLogger, Timer, get_logger
    from nmdpredict.utils.seqlevels import missing_seqlevels

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    logger = get_logger(__name__)

    try:
        config = Config.load(config_path)
        if threshold is not None:
            config.nmd.threshold = threshold
        if down_ejs:
            config.nmd.return_stop_to_down_ejs = True
        if on_error is not None:
            config.nmd.on_error = on_error
        if workers is not None:
            config.parallel.max_workers = workers

        if not quiet:
            console.print(f"[blue]Input GTF:[/blue] {gtf}")
            console.print(f"[blue]Threshold:[/blue] {config.nmd.threshold} nt")
            console.print(f"[blue]Output:[/blue] {output}")

        parser = GTFParser(gtf, strict=config.nmd.on_error == "raise")
        structures = parser.transcripts
        if not quiet:
            console.print(f"[dim]Loaded {len(structures):,} transcripts[/dim]")

        if reference is not None:
            missing = missing_seqlevels(parser.seqids, GTFParser(reference, strict=False).seqids)
            if missing:
                console.print(
                    f"[red]Error:[/red] Chromosome names not found in reference: "
                    f"{', '.join(missing[:10])}"
                )
                raise SystemExit(1)

        where = None
        if transcript_ids or gene_ids:
            where = TranscriptFilter(FilterCriteria(
                transcript_ids=transcript_ids or None,
                gene_ids=gene_ids or None,
            ))

        # Progress bar on an interactive console, log messages otherwise
        progress = None
        if not quiet and console.is_terminal:
            progress = create_progress_bar()
            task_id = progress.add_task("Classifying transcripts...", total=None)

            def progress_callback(completed: int, total: int, tx_id: str) -> None:
                progress.update(task_id, completed=completed, total=total)

            progress.start()
        else:
            progress_callback = ProgressLogger(logger, description="Classifying")

        try:
            with Timer("NMD prediction", logger) as timer:
                table = predict_nmd(
                    structures,
                    threshold=config.nmd.threshold,
                    where=where,
                    return_stop_to_down_ejs=config.nmd.return_stop_to_down_ejs,
                    skip_noncoding=config.nmd.skip_noncoding,
                    on_error=config.nmd.on_error,
                    n_workers=get_optimal_workers(config.parallel.max_workers),
                    backend=config.parallel.backend,
                    progress_callback=progress_callback,
                )
                timer.n_items = len(table)
        finally:
            if progress is not None:
                progress.stop()

        write_nmd_table_tsv(table, output)
        if summary:
            write_nmd_summary_txt(table, summary)
            if not quiet:
                console.print(f"[green]Wrote summary:[/green] {summary}")

        if not quiet:
            stats = summarize_nmd_results(table)
            console.print("")
            console.print("[bold]NMD Summary:[/bold]")
            console.print(f"  Classified transcripts: {stats['n_transcripts']:,}")
            console.print(f"  NMD-sensitive:          {stats['n_nmd']:,} ({stats['nmd_fraction'] * 100:.1f}%)")
            console.print(f"  Mean 3'UTR length:      {stats['mean_utr3_length']:.1f}")
            console.print("")
            console.print(f"[green]Wrote NMD table:[/green] {output}")

    except SystemExit:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        raise SystemExit(1)


# =============================================================================
# check-seqlevels command
# =============================================================================


@main.command("check-seqlevels")
@click.option(
    "-g",
    "--gtf",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Query GTF/GFF3.",
)
@click.option(
    "-r",
    "--reference",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Reference GTF/GFF3.",
)
def check_seqlevels(gtf: Path, reference: Path) -> None:
    """Check that chromosome names in a query match a reference.

    Exits with status 1 and lists the offending names when any query
    chromosome is absent from the reference.
    """
    from nmdpredict.io.gtf import GTFParser
    from nmdpredict.utils.seqlevels import missing_seqlevels

    query_seqids = GTFParser(gtf, strict=False).seqids
    reference_seqids = GTFParser(reference, strict=False).seqids
    missing = missing_seqlevels(query_seqids, reference_seqids)

    if missing:
        console.print(f"[red]Inconsistent seqlevels:[/red] {len(missing)} not in reference")
        for name in missing:
            console.print(f"  - {name}")
        raise SystemExit(1)

    console.print(f"[green]Seqlevels consistent:[/green] {len(query_seqids)} chromosomes found in reference")


if __name__ == "__main__":
    main()
