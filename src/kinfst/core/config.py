"""Configuration dataclasses for kinfst.

This module contains dataclasses that configure output locations and the
streaming kinship estimator.
"""

from dataclasses import dataclass, field
from pathlib import Path

# Relative tolerance on sum(weights) == 1
WEIGHT_SUM_RTOL = 1e-6


@dataclass
class OutputConfig:
    """Configuration for output files and directories.

    Attributes:
        outdir: Output directory for result files. Created if it doesn't exist.
        prefix: Prefix for output filenames (e.g., "result" produces "result.log.txt").
        verbose: Enable verbose/debug output to console.
    """

    outdir: Path = field(default_factory=lambda: Path("output"))
    prefix: str = "result"
    verbose: bool = False

    @property
    def log_path(self) -> Path:
        """Path to the run log file.

        Returns:
            Path to {outdir}/{prefix}.log.txt
        """
        return self.outdir / f"{self.prefix}.log.txt"

    @property
    def kinship_path(self) -> Path:
        """Path to the kinship matrix written by the ``kinship`` command."""
        return self.outdir / f"{self.prefix}.kinship.txt"

    def ensure_outdir(self) -> None:
        """Create output directory if it doesn't exist."""
        self.outdir.mkdir(parents=True, exist_ok=True)


@dataclass
class KinshipConfig:
    """Tuning knobs for the streaming kinship estimator.

    Attributes:
        block_size: Loci read and accumulated per block.
        n_workers: Worker threads, each with private accumulators. None uses
            get_thread_count(); 1 runs serially in the calling thread.
        normalize: Divide by (1 - baseline) after subtracting the baseline so
            self-kinship keeps its identity-by-descent scale.
        check_memory: Check available memory before allocating accumulators.
        show_progress: Show a progress bar while streaming blocks.
    """

    block_size: int = 10_000
    n_workers: int | None = 1
    normalize: bool = True
    check_memory: bool = True
    show_progress: bool = False

    def __post_init__(self) -> None:
        if self.block_size < 1:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        if self.n_workers is not None and self.n_workers < 1:
            raise ValueError(f"n_workers must be positive, got {self.n_workers}")
