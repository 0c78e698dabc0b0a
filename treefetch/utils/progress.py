"""
Progress reporting for downloads.

A bar is shown when the response declares its length, a spinner otherwise.
"""

import itertools
import sys
from typing import Callable, Optional

from tqdm import tqdm

SPINNER_CHARS = '-\\|/'


class ProgressSink:
    """Receives byte counts while a resource is written. Does nothing by default."""

    def update(self, n: int):
        pass

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class BarProgress(ProgressSink):
    """Determinate byte bar for responses with a known Content-Length."""

    def __init__(self, description: str, total: int, position: Optional[int] = None):
        self.bar = tqdm(
            total=total,
            desc=description,
            unit='B',
            unit_scale=True,
            unit_divisor=1024,
            position=position,
            leave=False,
            file=sys.stdout,
        )

    def update(self, n: int):
        self.bar.update(n)

    def close(self):
        self.bar.close()


class SpinnerProgress(ProgressSink):
    """Indeterminate indicator that advances one frame per chunk."""

    def __init__(self, description: str, position: Optional[int] = None):
        self._frames = itertools.cycle(SPINNER_CHARS)
        self.bar = tqdm(
            total=None,
            desc=description,
            unit='B',
            unit_scale=True,
            bar_format='{desc} {postfix} {n_fmt}B [{elapsed}]',
            position=position,
            leave=False,
            file=sys.stdout,
        )

    def update(self, n: int):
        self.bar.set_postfix_str(next(self._frames), refresh=False)
        self.bar.update(n)

    def close(self):
        self.bar.close()


ProgressFactory = Callable[[str, Optional[int]], ProgressSink]


def tqdm_progress(description: str, total: Optional[int]) -> ProgressSink:
    """Bar when ``total`` is known, spinner otherwise."""
    if total is not None:
        return BarProgress(description, total)
    return SpinnerProgress(description)


def no_progress(description: str, total: Optional[int]) -> ProgressSink:
    return ProgressSink()


def progress_factory(enabled: bool) -> ProgressFactory:
    return tqdm_progress if enabled else no_progress
