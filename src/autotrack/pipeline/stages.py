"""Generation states and readiness signals."""

from __future__ import annotations

import asyncio
import enum


class GenerationStage(enum.Enum):
    """States of the generation FSM, in execution order."""

    IDLE = "idle"
    SCANNING = "scanning"
    THREADING = "threading"
    CENTERLINE_EXTRACTION = "centerline_extraction"
    DISTRIBUTING = "distributing"
    OPTIMIZING = "optimizing"
    SPAWNING_POINTS = "spawning_points"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStage.DONE, GenerationStage.FAILED)

    @property
    def is_running(self) -> bool:
        return self not in (GenerationStage.IDLE, GenerationStage.DONE, GenerationStage.FAILED)


class Readiness(enum.Enum):
    """What a downstream consumer can wait for."""

    BOUNDARIES = "boundaries"    # inner/outer curves and walls
    CHECKPOINTS = "checkpoints"  # checkpoints, centerline and spawn points


class ReadinessSignals:
    """Published/unpublished flag per :class:`Readiness` level, awaitable.

    Waiters get an :class:`asyncio.Event` created inside their own running
    loop, so the signals can be awaited from successive ``asyncio.run``
    calls.  A level is only cleared when the run that first published it
    does not finish.
    """

    def __init__(self) -> None:
        self._ready: set[Readiness] = set()
        self._waiters: dict[Readiness, list[asyncio.Event]] = {level: [] for level in Readiness}

    def is_set(self, level: Readiness) -> bool:
        return level in self._ready

    def set(self, level: Readiness) -> None:
        self._ready.add(level)
        for event in self._waiters[level]:
            event.set()

    def clear(self, level: Readiness) -> None:
        self._ready.discard(level)

    async def wait(self, level: Readiness) -> None:
        if level in self._ready:
            return
        event = asyncio.Event()
        self._waiters[level].append(event)
        try:
            await event.wait()
        finally:
            self._waiters[level].remove(event)
