"""Two-column label tables (key<whitespace>label), no header."""

from pathlib import Path

import numpy as np


def read_group_table(path: Path) -> dict[str, str]:
    """Read a whitespace-delimited two-column table into a dict.

    Used for sub-population -> super-population tables and for
    individual ID -> population sample sheets.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a row has fewer than two columns or a key repeats
            with different labels.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Group table not found: {path}")

    rows = np.loadtxt(path, dtype=str, ndmin=2, comments="#")
    if rows.shape[1] < 2:
        raise ValueError(f"{path} needs two columns, found {rows.shape[1]}")

    table: dict[str, str] = {}
    for key, label in rows[:, :2].tolist():
        if table.setdefault(key, label) != label:
            raise ValueError(
                f"{path}: {key!r} mapped to both {table[key]!r} and {label!r}"
            )
    return table
