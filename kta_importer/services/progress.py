from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

The total row count of the input is unknown up front (the file is streamed),
so the bar is an open-ended counter with the running inserted / skipped /
failed numbers as postfix. In non-TTY environments (CI, redirected output)
no bar is created at all.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgress:
    """Open-ended tqdm row counter for one import run."""

    def __init__(self, file_name: str, *, enabled: bool | None = None) -> None:
        self.file_name = file_name
        self.rows = 0
        self.enabled = is_tty_enabled() if enabled is None else enabled
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                desc=f"Importing {file_name}",
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
                mininterval=0.5,
            )
        else:
            self.pbar = None

    def advance(self, n: int = 1) -> None:
        self.rows += n
        if self.pbar is not None:
            self.pbar.update(n)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
