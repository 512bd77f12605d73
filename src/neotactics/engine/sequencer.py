"""Sequencer — caller-driven stepping of multi-step game actions.

Moves, combat cascades and the whole enemy turn are written as
generators.  Every discrete state mutation is followed by a
``yield Pause(...)``, giving observers a point to render the
intermediate state.  The engine itself never sleeps: the caller decides
whether to drain a sequence instantly (tests, headless play) or to pace
it in real time (``run_async``).

While any sequence is queued or running ``GameState.busy`` is True and
the command surface rejects player input.

Usage::

    sequencer.submit(state, movement.move_unit(state, unit, dest), "move")
    sequencer.run_until_idle()
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generator, Optional, TypeVar

if TYPE_CHECKING:
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Pause:
    """A suspension point between two state mutations.

    Attributes:
        label: What just happened (``"move"``, ``"attack"``, ...).
        delay_ms: Suggested presentation delay before the next step.
    """

    label: str
    delay_ms: float = 0.0


Sequence = Generator[Pause, None, T]


@dataclass
class _Task:
    state: GameState
    steps: Sequence
    name: str


class Sequencer:
    """FIFO queue of step sequences, advanced one pause at a time."""

    def __init__(self) -> None:
        self._tasks: deque[_Task] = deque()

    @property
    def idle(self) -> bool:
        return not self._tasks

    def submit(self, state: GameState, steps: Sequence, name: str = "") -> None:
        """Queue a sequence and mark the match busy."""
        self._tasks.append(_Task(state, steps, name))
        state.busy = True
        log.debug("sequence %r queued (%d pending)", name, len(self._tasks))

    def step(self) -> Optional[Pause]:
        """Advance the current sequence to its next pause.

        Returns:
            The pause reached, or None if a sequence just finished or the
            queue is empty.
        """
        if not self._tasks:
            return None
        task = self._tasks[0]
        try:
            pause = next(task.steps)
        except StopIteration:
            self._finish(task)
            return None
        except Exception:
            self._abort()
            raise
        return pause

    def run_until_idle(self, max_steps: int = 100_000) -> int:
        """Drain every queued sequence synchronously.

        Returns:
            Number of pauses passed.
        """
        count = 0
        while not self.idle:
            if self.step() is not None:
                count += 1
            assert count <= max_steps, "sequence did not terminate"
        return count

    async def run_async(self, time_scale: float = 1.0) -> None:
        """Drain the queue, sleeping for each pause's delay."""
        while not self.idle:
            pause = self.step()
            delay = (pause.delay_ms if pause else 0.0) * time_scale / 1000.0
            await asyncio.sleep(delay)

    # -- Internals -------------------------------------------------------

    def _finish(self, task: _Task) -> None:
        self._tasks.popleft()
        log.debug("sequence %r done", task.name)
        if not any(t.state is task.state for t in self._tasks):
            task.state.busy = False

    def _abort(self) -> None:
        # A failing sequence leaves the board half-updated; drop everything.
        for task in self._tasks:
            task.state.busy = False
            task.steps.close()
        self._tasks.clear()
