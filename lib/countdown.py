import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR


@dataclass(frozen=True)
class Countdown:
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    is_live: bool = False

    def badge(self) -> str:
        return f"{self.days}d {self.hours}h {self.minutes}m"


def compute_countdown(target: datetime, now: Optional[datetime] = None) -> Countdown:
    """Time left until ``target``; ``is_live`` once it has been reached."""
    now = now or datetime.now(target.tzinfo)
    difference = (target - now) // timedelta(milliseconds=1)
    if difference <= 0:
        return Countdown(is_live=True)

    return Countdown(
        days=difference // MS_PER_DAY,
        hours=(difference % MS_PER_DAY) // MS_PER_HOUR,
        minutes=(difference % MS_PER_HOUR) // MS_PER_MINUTE,
        seconds=(difference % MS_PER_MINUTE) // MS_PER_SECOND,
    )


class CountdownTimer:
    """Recomputes the countdown every ``interval`` seconds while running."""

    def __init__(self, target: datetime, on_tick: Callable[[Countdown], None], interval: float = 1.0,
                 clock: Callable[[], datetime] = None):
        self.target = target
        self.on_tick = on_tick
        self.interval = interval
        self.clock = clock or (lambda: datetime.now(target.tzinfo))
        self.current = Countdown()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def tick(self) -> Countdown:
        self.current = compute_countdown(self.target, self.clock())
        self.on_tick(self.current)
        return self.current

    async def _run(self) -> None:
        # First value lands after one interval
        while True:
            await asyncio.sleep(self.interval)
            self.tick()
