"""
Repeating advert timer.

AdvertScheduler owns one RepeatingTimer at a time. A timer fires its action
every `period` seconds, the first time after one full period (never
immediately). Restarting on a config change cancels the current timer and
starts a new one with the new period.

Ticks from one scheduler never overlap: every timer it creates shares the
scheduler's tick lock, so a cancelled timer that is still finishing its last
tick holds off the first tick of its replacement.
"""

import logging
import math
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TickAction = Callable[[], None]


def _validate_period(period: float) -> float:
    if period is None or not math.isfinite(period) or period <= 0:
        raise ValueError(f"Timer period must be a finite number > 0 seconds, got {period}")
    return float(period)


class RepeatingTimer(threading.Thread):
    """
    Thread that runs an action at a fixed period until cancelled.

    Uses absolute time scheduling to avoid drift. If a tick overruns, the next
    tick is scheduled one period after it finished rather than firing a burst
    of catch-up ticks.

    Exceptions raised by the action are logged and the timer keeps running.
    """

    def __init__(
        self,
        period: float,
        action: TickAction,
        tick_lock: Optional[threading.Lock] = None,
        name: str = "AdvertTimer",
    ) -> None:
        """
        Initialize timer.

        Args:
            period: Seconds between ticks (also the delay before the first tick)
            action: Called once per tick
            tick_lock: Lock held while the action runs
            name: Thread name

        Raises:
            ValueError: If period is not a finite positive number
        """
        super().__init__(name=name, daemon=True)
        self.period = _validate_period(period)
        self.action = action
        self.tick_lock = tick_lock or threading.Lock()
        self.tick_count = 0
        self._cancel_event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self) -> None:
        logger.debug(f"[TIMER] {self.name} started (period={self.period}s)")
        next_tick = time.monotonic() + self.period

        try:
            while True:
                sleep_time = next_tick - time.monotonic()
                if sleep_time > 0 and self._cancel_event.wait(timeout=sleep_time):
                    break

                with self.tick_lock:
                    # Cancelled while waiting for the previous timer's tick
                    if self._cancel_event.is_set():
                        break
                    self._run_action()

                next_tick += self.period
                now = time.monotonic()
                if next_tick <= now:
                    logger.warning(
                        f"[TIMER] {self.name} behind schedule: "
                        f"{(now - next_tick):.3f}s behind. Resyncing."
                    )
                    next_tick = now + self.period
        finally:
            logger.debug(f"[TIMER] {self.name} stopped after {self.tick_count} ticks")

    def _run_action(self) -> None:
        self.tick_count += 1
        try:
            self.action()
        except Exception as e:
            logger.error(f"[TIMER] Tick {self.tick_count} failed: {e}", exc_info=True)

    def cancel(self, wait: bool = False, timeout: float = 2.0) -> None:
        """
        Stop future ticks. A tick already running is allowed to finish.

        Args:
            wait: Join the thread after signalling
            timeout: Maximum time to wait when joining (seconds)
        """
        self._cancel_event.set()
        if wait and self.is_alive() and self is not threading.current_thread():
            self.join(timeout=timeout)
            if self.is_alive():
                logger.warning(f"[TIMER] {self.name} did not stop within timeout")


class AdvertScheduler:
    """
    Owns the repeating advert timer and restarts it on config changes.

    cancel() also forgets the tick action, so a config change that arrives
    after shutdown cannot bring the timer back; only start() can.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._timer: Optional[RepeatingTimer] = None
        self._action: Optional[TickAction] = None
        self._generation = 0

    @property
    def timer(self) -> Optional[RepeatingTimer]:
        with self._lock:
            return self._timer

    @property
    def running(self) -> bool:
        timer = self.timer
        return timer is not None and not timer.cancelled and timer.is_alive()

    def start(self, period: float, action: TickAction) -> RepeatingTimer:
        """
        Start the repeating timer, replacing any running one.

        Args:
            period: Seconds between ticks
            action: Tick action

        Returns:
            The timer handle (call cancel() on it to stop)

        Raises:
            ValueError: If period is not a finite positive number
        """
        period = _validate_period(period)
        with self._lock:
            timer = self._replace_timer(period, action)
        logger.info(f"[TIMER] Advert timer started (interval={period}s)")
        return timer

    def restart(self, period: float) -> RepeatingTimer:
        """
        Cancel the current timer and start a new one with the same action.

        Raises:
            ValueError: If period is not a finite positive number
            RuntimeError: If the scheduler is not started (never started, or cancelled)
        """
        period = _validate_period(period)
        with self._lock:
            if self._action is None:
                raise RuntimeError("Scheduler is not running; call start() first")
            timer = self._replace_timer(period, self._action)
        logger.info(f"[TIMER] Advert timer restarted (interval={period}s)")
        return timer

    def _replace_timer(self, period: float, action: TickAction) -> RepeatingTimer:
        # Caller holds self._lock
        previous = self._timer
        self._generation += 1
        timer = RepeatingTimer(
            period,
            action,
            tick_lock=self._tick_lock,
            name=f"AdvertTimer-{self._generation}",
        )
        self._timer = timer
        self._action = action
        if previous is not None:
            previous.cancel()
        timer.start()
        return timer

    def cancel(self, wait: bool = False, timeout: float = 2.0) -> None:
        """Stop the current timer and refuse further restarts until start()."""
        with self._lock:
            timer, self._timer = self._timer, None
            self._action = None
        if timer is not None:
            timer.cancel(wait=wait, timeout=timeout)
            logger.info("[TIMER] Advert timer cancelled")
