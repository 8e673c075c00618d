from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display over imports with tqdm (TTY only).

In non-TTY environments (CI, redirected output) no bar is created, so log
lines are not interleaved with ANSI control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True when stdout is a TTY and a progress bar should be shown."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar advancing once per import."""

    def __init__(self, total_imports: int, *, description: str = "Processing imports") -> None:
        self.total_imports = total_imports
        self.description = description
        self.current_import = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_imports,
                desc=description,
                unit="import",
                leave=True,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_import(self, import_id: str) -> None:
        self.current_import += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({import_id})")

    def finish_import(self) -> None:
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        """Show running counters next to the bar."""
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
