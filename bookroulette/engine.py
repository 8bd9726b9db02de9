"""
Roulette selection engine.

A run is a fixed schedule of steps measured from the moment the run starts:
a fast spin, two settling phases that tick progressively slower, then the
result step where the winner is drawn, followed by a short settle delay
before the run completes. The visible index only churns for show; the
winner is a single uniform draw made at the result step.

The schedule is computed up front by ``build_schedule`` and the state for
any point in time by ``phase_at``, both pure. ``SelectionEngine`` drives one
schedule at a time on the running event loop and sleeps until each step's
absolute deadline, so late wake-ups do not push later steps back.
"""
import asyncio
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from bookroulette.errors import ConfigurationError, RunInProgressError, ValidationError
from bookroulette.models import Book

logger = logging.getLogger(__name__)

# Tolerance for float offsets that land on a phase boundary
_EPSILON = 1e-9


class RunState(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    SETTLING = "settling"
    RESULT = "result"


@dataclass(frozen=True)
class Phase:
    """A stretch of the run where the visible index advances every ``tick_interval``."""
    state: RunState
    tick_interval: float
    duration: float

    def __post_init__(self):
        if self.tick_interval <= 0 or self.duration <= 0:
            raise ConfigurationError(
                "Phase tick interval and duration must be positive",
                details={"tick_interval": self.tick_interval, "duration": self.duration},
            )


DEFAULT_PHASES: Tuple[Phase, ...] = (
    Phase(RunState.SPINNING, tick_interval=0.10, duration=2.0),
    Phase(RunState.SETTLING, tick_interval=0.15, duration=1.5),
    Phase(RunState.SETTLING, tick_interval=0.30, duration=1.5),
)


@dataclass(frozen=True)
class RunTiming:
    phases: Tuple[Phase, ...] = DEFAULT_PHASES
    settle_delay: float = 0.6

    @property
    def spin_duration(self) -> float:
        """Seconds from run start to the result step."""
        return sum(phase.duration for phase in self.phases)

    @property
    def total(self) -> float:
        return self.spin_duration + self.settle_delay

    def scaled(self, factor: float) -> "RunTiming":
        """Same schedule shape, every interval multiplied by ``factor``."""
        return RunTiming(
            phases=tuple(
                replace(p, tick_interval=p.tick_interval * factor, duration=p.duration * factor)
                for p in self.phases
            ),
            settle_delay=self.settle_delay * factor,
        )

    def check_timeout(self, timeout: float) -> None:
        """A caller that gives up before the schedule ends would desync from the engine."""
        if timeout < self.total:
            raise ConfigurationError(
                f"Run timeout {timeout}s is shorter than the roulette schedule ({self.total:.2f}s)",
                details={"timeout": timeout, "schedule": self.total},
            )


@dataclass(frozen=True)
class Step:
    """Point in the schedule; ``advance`` steps move the visible index."""
    offset: float
    advance: bool


def build_schedule(timing: RunTiming) -> List[Step]:
    """
    Every step of a run, in order.

    Each phase contributes an entry step at its start and one tick per
    ``tick_interval`` strictly inside it. The last step sits at
    ``spin_duration`` and is where the winner gets drawn.
    """
    steps: List[Step] = []
    start = 0.0
    for phase in timing.phases:
        steps.append(Step(start, advance=False))
        k = 1
        while k * phase.tick_interval < phase.duration - _EPSILON:
            steps.append(Step(start + k * phase.tick_interval, advance=True))
            k += 1
        start += phase.duration
    steps.append(Step(start, advance=False))
    return steps


def phase_at(timing: RunTiming, elapsed: float) -> RunState:
    """State of a run ``elapsed`` seconds after it started."""
    if elapsed < 0:
        return RunState.IDLE
    boundary = 0.0
    for phase in timing.phases:
        boundary += phase.duration
        if elapsed < boundary - _EPSILON:
            return phase.state
    return RunState.RESULT


@dataclass(frozen=True)
class RunCompleted:
    title: str
    index: int


TickListener = Callable[[int, RunState], None]
CompleteListener = Callable[[RunCompleted], None]


class SelectionEngine:
    """
    Drives at most one roulette run at a time.

    Listeners in ``tick_listeners`` get ``(visible_index, state)`` on every
    tick; listeners in ``complete_listeners`` get the RunCompleted event once
    per finished run. Cancelling the run (or closing the engine) stops both.
    """

    def __init__(self, timing: Optional[RunTiming] = None, rng: Optional[random.Random] = None):
        self.timing = timing or RunTiming()
        self.rng = rng or random.Random()
        self.state = RunState.IDLE
        self.visible_index = 0
        self.chosen_index: Optional[int] = None
        self.tick_listeners: List[TickListener] = []
        self.complete_listeners: List[CompleteListener] = []
        self._task: Optional["asyncio.Task[RunCompleted]"] = None
        self._closed = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def request_run(self, books: Sequence[Book]) -> "asyncio.Task[RunCompleted]":
        """
        Start a run over a snapshot of ``books``.

        Must be called from a coroutine. Nothing changes when the request is
        rejected.

        Raises:
            RunInProgressError: another run is active
            ValidationError: fewer than two books, or the engine is closed
        """
        loop = asyncio.get_running_loop()
        if self._closed:
            raise ValidationError("The roulette has been shut down")
        if self.is_running:
            raise RunInProgressError("The roulette is already running")
        if len(books) < 2:
            raise ValidationError(
                "Add at least 2 books to run the roulette",
                details={"books": len(books)},
            )

        snapshot = list(books)
        self.chosen_index = None
        self.visible_index = 0
        self.state = RunState.SPINNING
        logger.info(f"Roulette started over {len(snapshot)} books")
        self._task = loop.create_task(self._drive(snapshot))
        return self._task

    async def _drive(self, books: List[Book]) -> RunCompleted:
        try:
            return await self._spin(books)
        except asyncio.CancelledError:
            # also reached when an outer wait_for times out the run
            self.state = RunState.IDLE
            self.chosen_index = None
            raise

    async def _spin(self, books: List[Book]) -> RunCompleted:
        loop = asyncio.get_running_loop()
        started = loop.time()

        for step in build_schedule(self.timing):
            await asyncio.sleep(max(0.0, started + step.offset - loop.time()))
            self.state = phase_at(self.timing, step.offset)
            if step.advance:
                self.visible_index = (self.visible_index + 1) % len(books)
                self._emit_tick()

        # state is RESULT here: the schedule always ends at spin_duration
        self.chosen_index = self.rng.randrange(len(books))
        self.visible_index = self.chosen_index
        self._emit_tick()

        await asyncio.sleep(self.timing.settle_delay)

        result = RunCompleted(title=books[self.chosen_index].title, index=self.chosen_index)
        logger.info(f"Roulette picked {result.title!r}")
        for listener in list(self.complete_listeners):
            listener(result)
        return result

    def _emit_tick(self) -> None:
        for listener in list(self.tick_listeners):
            listener(self.visible_index, self.state)

    def cancel(self) -> bool:
        """
        Abandon the active run. Returns False when nothing was running.

        The task is cancelled at its current sleep, so no tick or completion
        fires afterwards.
        """
        if not self.is_running:
            return False
        self._task.cancel()
        self.state = RunState.IDLE
        self.chosen_index = None
        logger.info("Roulette run cancelled")
        return True

    async def close(self) -> None:
        """Cancel any active run, wait for it to unwind, and refuse new runs."""
        self._closed = True
        task = self._task
        if self.cancel():
            await asyncio.wait({task})
