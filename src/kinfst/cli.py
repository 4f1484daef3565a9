"""kinfst command-line interface.

This module provides a Typer-based CLI with -bfile, -o, -outdir flags for
data loading and output configuration, following PLINK-style conventions.
"""

import sys
import time
from pathlib import Path
from typing import Annotated

import typer

import kinfst
from kinfst.core import KinfstError, KinshipConfig, OutputConfig
from kinfst.groups import map_groups
from kinfst.io import BedGenotypes, read_fam_labels, read_group_table
from kinfst.kinship import (
    compute_kinship,
    extreme_groups_from_labels,
    read_kinship_matrix,
    rescale_baseline,
    write_kinship_matrix,
)
from kinfst.stats import balance_weights, estimate_fst, inbreeding
from kinfst.utils import setup_logging, write_run_log

app = typer.Typer(
    name="kinfst",
    help="kinfst: kinship and FST estimation for structured populations.",
    add_completion=False,
)

# Store global options set by callback
_global_config: OutputConfig | None = None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from kinfst.core import get_jax_info

        typer.echo(f"kinfst version {kinfst.__version__}")

        info = get_jax_info()
        typer.echo(f"JAX {info['version']} on {info['backend']}")
        raise typer.Exit()


def _config() -> OutputConfig:
    global _global_config
    if _global_config is None:
        _global_config = OutputConfig()
    return _global_config


def _require_bfile(bfile: Path) -> None:
    bed_path = Path(f"{bfile}.bed")
    if not bed_path.exists():
        typer.echo(f"Error: PLINK file not found: {bed_path}", err=True)
        raise typer.Exit(code=1)


def _load_kinship(kinship_file: Path, n_individuals: int | None = None):
    if not kinship_file.exists():
        typer.echo(f"Error: Kinship matrix file not found: {kinship_file}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Loading kinship matrix from {kinship_file}...")
    try:
        return read_kinship_matrix(kinship_file, n_individuals=n_individuals)
    except ValueError as e:
        typer.echo(f"Error loading kinship matrix: {e}", err=True)
        raise typer.Exit(code=1) from None


@app.callback()
def main(
    outdir: Annotated[
        Path,
        typer.Option("-outdir", help="Output directory"),
    ] = Path("output"),
    output: Annotated[
        str,
        typer.Option("-o", help="Output file prefix"),
    ] = "result",
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Verbose output"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """kinfst: kinship and FST estimation.

    Estimates kinship matrices from PLINK genotypes without assuming
    unrelated individuals, and derives inbreeding coefficients and FST.
    """
    global _global_config
    _global_config = OutputConfig(outdir=outdir, prefix=output, verbose=verbose)
    setup_logging(verbose=verbose)


@app.command("kinship")
def kinship_command(
    bfile: Annotated[
        Path,
        typer.Option("-bfile", help="PLINK binary file prefix"),
    ],
    use_groups: Annotated[
        bool,
        typer.Option(
            "--groups/--no-groups",
            help="Calibrate against group labels from the .fam family IDs",
        ),
    ] = True,
    reference: Annotated[
        list[str] | None,
        typer.Option(
            "-ref", help="Group(s) used to estimate allele frequencies (repeatable)"
        ),
    ] = None,
    block_size: Annotated[
        int,
        typer.Option("-block", help="Loci per streamed block"),
    ] = 10_000,
    threads: Annotated[
        int | None,
        typer.Option("-threads", help="Worker threads (default: physical cores)"),
    ] = None,
    normalize: Annotated[
        bool,
        typer.Option(
            "--normalize/--no-normalize",
            help="Divide by (1 - baseline) after subtracting it",
        ),
    ] = True,
    check_memory: Annotated[
        bool,
        typer.Option(
            "--check-memory/--no-check-memory",
            help="Enable/disable pre-flight memory check (default: enabled)",
        ),
    ] = True,
    progress: Annotated[
        bool | None,
        typer.Option(
            "--progress/--no-progress",
            help="Show a progress bar (default: only when stdout is a terminal)",
        ),
    ] = None,
) -> None:
    """Estimate the kinship matrix from genotype data.

    Streams PLINK genotypes block by block and writes the calibrated
    kinship matrix as {prefix}.kinship.txt.
    """
    start_time = time.perf_counter()
    config = _config()
    config.ensure_outdir()
    command_line = " ".join(sys.argv)

    _require_bfile(bfile)

    typer.echo(f"Loading PLINK metadata from {bfile}...")
    source = BedGenotypes(bfile, use_fam_labels=use_groups)
    typer.echo(f"Found {source.n_individuals} individuals, {source.n_loci} loci")

    groups = source.labels if use_groups else None
    if use_groups and groups is None:
        typer.echo(
            "Warning: no family IDs in .fam; kinship left uncalibrated", err=True
        )

    try:
        kinship_config = KinshipConfig(
            block_size=block_size,
            n_workers=threads,
            normalize=normalize,
            check_memory=check_memory,
            show_progress=sys.stdout.isatty() if progress is None else progress,
        )
        result = compute_kinship(
            source, groups, reference=reference or None, config=kinship_config
        )
    except (KinfstError, ValueError, MemoryError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    kinship_time = time.perf_counter() - start_time

    write_kinship_matrix(result.kinship, config.kinship_path)
    typer.echo(f"Kinship matrix written to {config.kinship_path}")

    n_undefined = len(result.undefined_pairs())
    params = {
        "n_individuals": result.n_individuals,
        "n_loci": result.n_loci,
        "n_loci_undefined": result.n_loci_undefined,
        "n_undefined_pairs": n_undefined,
        "baseline": result.baseline,
        "normalize": normalize,
        "reference": ",".join(reference) if reference else None,
        "block_size": block_size,
        "kinship_file": str(config.kinship_path),
    }
    timing = {"total": time.perf_counter() - start_time, "kinship": kinship_time}

    log_path = write_run_log(config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


@app.command("fst")
def fst_command(
    kinship_file: Annotated[
        Path,
        typer.Option("-k", help="Kinship matrix file"),
    ],
    bfile: Annotated[
        Path | None,
        typer.Option("-bfile", help="PLINK prefix whose .fam family IDs label groups"),
    ] = None,
    table: Annotated[
        Path | None,
        typer.Option("-table", help="Two-column sub-group -> group table"),
    ] = None,
) -> None:
    """Estimate FST from a kinship matrix.

    Individuals are weighted so every group (and every sub-group within a
    group, with -table) has equal weight; without -bfile all individuals
    are weighted equally.
    """
    start_time = time.perf_counter()
    config = _config()
    command_line = " ".join(sys.argv)

    labels = None
    if bfile is not None:
        _require_bfile(bfile)
        labels = read_fam_labels(bfile)
    if table is not None and labels is None:
        typer.echo("Error: -table requires sub-group labels from -bfile", err=True)
        raise typer.Exit(code=1)

    K = _load_kinship(kinship_file, None if labels is None else len(labels))

    try:
        if labels is None:
            weights = None
            weighting = "uniform"
        elif table is not None:
            groups = map_groups(labels, read_group_table(table))
            weights = balance_weights(groups, labels)
            weighting = "two-level"
        else:
            weights = balance_weights(labels)
            weighting = "groups"
        fst = estimate_fst(K, weights)
    except (KinfstError, FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"FST = {fst:.6f}")

    inbr = inbreeding(K)
    params = {
        "n_individuals": K.shape[0],
        "kinship_file": str(kinship_file),
        "weighting": weighting,
        "fst": f"{fst:.10g}",
        "mean_inbreeding": f"{float(inbr.mean()):.10g}",
    }
    timing = {"total": time.perf_counter() - start_time}

    log_path = write_run_log(config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


@app.command("rescale")
def rescale_command(
    kinship_file: Annotated[
        Path,
        typer.Option("-k", help="Kinship matrix file"),
    ],
    bfile: Annotated[
        Path,
        typer.Option("-bfile", help="PLINK prefix whose .fam family IDs label groups"),
    ],
    extreme: Annotated[
        list[str],
        typer.Option("-extreme", help="Extreme group label (give exactly twice)"),
    ],
) -> None:
    """Shift a kinship matrix so two extreme groups have zero mean kinship.

    Writes the shifted matrix as {prefix}.rescaled.txt.
    """
    start_time = time.perf_counter()
    config = _config()
    command_line = " ".join(sys.argv)

    if len(extreme) != 2:
        typer.echo(
            f"Error: -extreme must be given exactly twice (got {len(extreme)})",
            err=True,
        )
        raise typer.Exit(code=1)

    _require_bfile(bfile)
    labels = read_fam_labels(bfile)
    if labels is None:
        typer.echo(f"Error: {bfile}.fam has no family IDs to select groups", err=True)
        raise typer.Exit(code=1)

    K = _load_kinship(kinship_file, len(labels))

    try:
        extremes = extreme_groups_from_labels(labels, *extreme)
        rescaled = rescale_baseline(K, extremes)
    except KinfstError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    out_path = config.outdir / f"{config.prefix}.rescaled.txt"
    write_kinship_matrix(rescaled, out_path)
    typer.echo(f"Rescaled kinship matrix written to {out_path}")

    params = {
        "n_individuals": K.shape[0],
        "kinship_file": str(kinship_file),
        "extreme_groups": " ".join(extreme),
        "shift": f"{float(K[0, 0] - rescaled[0, 0]):.10g}",
        "output_file": str(out_path),
    }
    timing = {"total": time.perf_counter() - start_time}

    log_path = write_run_log(config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


if __name__ == "__main__":
    app()
