"""Exception types raised by kinfst.

Locus-level problems (a locus with no observed genotype in the frequency
reference set) are not exceptions: they are skipped during accumulation and
tallied in the kinship diagnostics. Everything that would make a pair-level
or global result wrong is raised to the caller instead of being replaced by
a default value.
"""


class KinfstError(Exception):
    """Base class for all kinfst errors."""


class WeightMismatchError(KinfstError, ValueError):
    """Weights do not match the kinship matrix or do not sum to one."""


class UndefinedKinshipError(WeightMismatchError):
    """An undefined (NaN) kinship entry was needed for a computation.

    Subclasses WeightMismatchError: an undefined entry carrying nonzero
    weight invalidates a weighted statistic the same way a bad weight does.
    """


class EmptyGroupError(KinfstError, ValueError):
    """A requested group or sub-group has no members."""


class GroupingError(KinfstError, ValueError):
    """Group labels are malformed (wrong length, inconsistent nesting)."""


class EstimationCancelled(KinfstError):
    """Kinship accumulation was abandoned between blocks of loci."""
