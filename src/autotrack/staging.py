"""Cooperative stage helpers.

A stage is a generator that yields progress fractions in ``[0, 1]`` while it
works and returns its result with ``return``.  Callers that do not need to
interleave work can use :func:`drain`.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import TypeVar

T = TypeVar("T")

Stage = Generator[float, None, T]


def drain(stage: Stage[T]) -> T:
    """Run *stage* to completion and return its result."""
    while True:
        try:
            next(stage)
        except StopIteration as stop:
            return stop.value
