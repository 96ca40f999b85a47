"""
Run trigger: invokes a run once at startup and then at minute 0 of every
Nth hour (the "0 */N * * *" schedule).
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from location_sync.observability.logger import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_fire_time(now: datetime, every_hours: int) -> datetime:
    """
    Next minute-0 instant strictly after `now` whose hour is divisible by
    `every_hours`.

    Examples:
        >>> next_fire_time(datetime(2024, 1, 1, 13, 5), 2)
        datetime.datetime(2024, 1, 1, 14, 0)
        >>> next_fire_time(datetime(2024, 1, 1, 14, 0), 2)
        datetime.datetime(2024, 1, 1, 16, 0)
    """
    if every_hours < 1:
        raise ValueError(f"every_hours must be positive, got {every_hours}")

    candidate = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    while candidate.hour % every_hours != 0:
        candidate += timedelta(hours=1)
    return candidate


class RunTrigger:
    """
    Blocking schedule loop for a zero-argument run callable.

    Exceptions escaping the callable are logged and the schedule continues.
    stop() wakes the loop; a run already executing finishes first.
    """

    def __init__(
        self,
        run_callable: Callable[[], object],
        every_hours: int = 2,
        run_at_startup: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.run_callable = run_callable
        self.every_hours = every_hours
        self.run_at_startup = run_at_startup
        self.clock = clock
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        self._stop_event.set()

    def run_forever(self) -> None:
        """Run until stop() is called."""
        if self.run_at_startup and not self.stopped:
            self._fire()

        while not self.stopped:
            now = self.clock()
            fire_at = next_fire_time(now, self.every_hours)
            delay = (fire_at - now).total_seconds()
            logger.info(
                f"Next run scheduled at {fire_at.isoformat()}",
                extra={"next_run_at": fire_at.isoformat(), "delay_seconds": round(delay, 1)},
            )

            if self._stop_event.wait(timeout=delay):
                break
            self._fire()

        logger.info("Run trigger stopped")

    def _fire(self) -> None:
        try:
            self.run_callable()
        except Exception:
            logger.exception("Scheduled run raised; continuing with the schedule")
