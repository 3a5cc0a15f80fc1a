"""
Execution timing utilities.

A small accumulating wall-clock timer used by backends and the grouped
fitter to record where time goes. Results land in ``Result.timing``.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating wall-clock timer with named sections.

    Usage:
        timer = Timer()
        timer.start()

        with timer.section('decomposition'):
            Q, R, piv = qr(X)

        timer.stop()
        timer.result()
        # {'total_seconds': 0.002, 'decomposition': 0.001}

    Sections entered more than once accumulate.
    """

    def __init__(self) -> None:
        self._sections: dict[str, float] = {}
        self._started: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        self._started = time.perf_counter()

    def stop(self) -> None:
        if self._started is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._started

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time the enclosed block under ``name``."""
        begin = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - begin
            self._sections[name] = self._sections.get(name, 0.0) + elapsed

    def result(self) -> dict[str, float]:
        """
        Timing results as ``{'total_seconds': ..., <section>: ...}``.

        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._sections}


@contextmanager
def timed() -> Iterator[Timer]:
    """
    Time a whole block.

    Usage:
        with timed() as timer:
            fits = fit_grouped(table, 'city', 'sales ~ month')
        timer.result()['total_seconds']
    """
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
