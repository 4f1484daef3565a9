"""Progress display for long streaming passes over loci."""

import sys
from collections.abc import Iterable, Iterator

import progressbar


class _CurrentStdout:
    """File-like view of whatever sys.stdout is at write time.

    progressbar2 swaps an fd that *is* sys.stdout for the stdout it saw at
    import, which breaks once a captured stream is closed (CliRunner,
    redirect_stdout, notebook cells).
    """

    def write(self, text: str) -> int:
        return sys.stdout.write(text)

    def flush(self) -> None:
        sys.stdout.flush()

    def isatty(self) -> bool:
        isatty = getattr(sys.stdout, "isatty", None)
        return bool(isatty and isatty())

    def __getattr__(self, name: str):
        return getattr(sys.stdout, name)


def progress_iterator(iterable: Iterable, total: int, desc: str = "") -> Iterator:
    """Wrap an iterable with a progressbar2 display written to stdout.

    The bar is finished in a finally block, so a consumer that stops early
    (cancellation, exception) leaves the terminal clean.

    Args:
        iterable: Items to yield.
        total: Expected number of items.
        desc: Optional description prefix.

    Yields:
        Items from the wrapped iterable.
    """
    widgets = [
        f"{desc}: " if desc else "",
        progressbar.Counter(),
        f"/{total} ",
        progressbar.Percentage(),
        " ",
        progressbar.Bar(),
        " ",
        progressbar.ETA(),
    ]
    bar = progressbar.ProgressBar(
        max_value=total, widgets=widgets, fd=_CurrentStdout()
    )
    bar.start()
    try:
        for done, item in enumerate(iterable, start=1):
            yield item
            bar.update(min(done, total))
    finally:
        bar.finish()
