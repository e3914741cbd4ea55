"""Smooth local playback clock reconciled with an external position reporter.

Players report their position irregularly (every 200 ms to 1 s). The
clock advances on its own between reports and reconciles with each report:

* drift below the threshold: the sync reference is re-anchored and the
  displayed time is left alone
* drift at or above the threshold: the displayed time snaps to the report

Play/pause changes, seeks and track changes always snap.
"""

import asyncio
import time
from enum import Enum
from typing import Callable, Optional

from ..config import CLOCK_SYNC_INTERVAL, CLOCK_TICK_INTERVAL, DRIFT_THRESHOLD
from ..exceptions import ValidationError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ClockState(str, Enum):
    """Whether the clock is advancing."""

    IDLE = "idle"
    RUNNING = "running"


class PlaybackClock:
    """Locally interpolated track position in seconds."""

    def __init__(
        self,
        tick_interval: float = CLOCK_TICK_INTERVAL,
        sync_interval: float = CLOCK_SYNC_INTERVAL,
        drift_threshold: float = DRIFT_THRESHOLD,
        time_fn: Callable[[], float] = time.monotonic,
    ):
        if tick_interval <= 0 or sync_interval <= 0 or drift_threshold <= 0:
            raise ValidationError("Clock intervals and drift threshold must be positive")
        self.tick_interval = tick_interval
        self.sync_interval = sync_interval
        self.drift_threshold = drift_threshold
        self._time = time_fn

        self.state = ClockState.IDLE
        self.playback_rate = 1.0
        self.hard_corrections = 0

        now = self._time()
        self._current = 0.0
        self._last_tick = now
        # last reported position and when it arrived
        self._ref_position = 0.0
        self._ref_instant = now
        self._last_sync = now

    # ----------------------
    # Reading
    # ----------------------
    @property
    def current_time(self) -> float:
        """Displayed position as of the last tick or correction."""
        return self._current

    @property
    def is_running(self) -> bool:
        return self.state is ClockState.RUNNING

    def expected_reported_position(self, now: Optional[float] = None) -> float:
        """Where the reporter should be now, extrapolated from its last report."""
        if not self.is_running:
            return self._ref_position
        now = self._time() if now is None else now
        return self._ref_position + (now - self._ref_instant) * self.playback_rate

    # ----------------------
    # Advancing
    # ----------------------
    def _advance(self, now: float) -> float:
        if self.is_running:
            self._current += max(0.0, now - self._last_tick) * self.playback_rate
        self._last_tick = now
        return self._current

    def tick(self) -> float:
        """Advance by the real time elapsed since the previous tick."""
        now = self._time()
        self._advance(now)
        if self.is_running and now - self._last_sync >= self.sync_interval:
            self._reconcile(self.expected_reported_position(now), now)
        return self._current

    def maybe_periodic_sync(self) -> Optional[float]:
        """Reconcile against the extrapolated report if a sync is due.

        Returns the measured drift, or None when no sync was due.
        """
        now = self._time()
        if not self.is_running or now - self._last_sync < self.sync_interval:
            return None
        self._advance(now)
        return self._reconcile(self.expected_reported_position(now), now)

    # ----------------------
    # External signals
    # ----------------------
    def sync_external(self, position: float) -> float:
        """Take a fresh position report; returns the drift it revealed."""
        now = self._time()
        self._advance(now)
        self._ref_position = position
        self._ref_instant = now
        return self._reconcile(position, now)

    def on_play_state_change(self, is_playing: bool, position: Optional[float] = None) -> None:
        """Start or stop the clock, snapping to ``position`` when given."""
        now = self._time()
        self._advance(now)
        new_state = ClockState.RUNNING if is_playing else ClockState.IDLE
        if new_state is not self.state:
            logger.debug(f"Clock {self.state.value} -> {new_state.value}")
        self.state = new_state
        self._snap(self._current if position is None else position, now)

    def on_discontinuity(self, position: float) -> None:
        """Seek or track change: jump straight to ``position``."""
        now = self._time()
        self._last_tick = now
        logger.debug(f"Clock discontinuity at {position:.2f}s")
        self._snap(position, now)

    def set_playback_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValidationError(f"Playback rate must be positive, got {rate}")
        # time so far counts at the old rate
        now = self._time()
        self._advance(now)
        self._ref_position = self.expected_reported_position(now)
        self._ref_instant = now
        self.playback_rate = rate

    # ----------------------
    # Corrections
    # ----------------------
    def _snap(self, position: float, now: float) -> None:
        self._current = position
        self._last_tick = now
        self._ref_position = position
        self._ref_instant = now
        self._last_sync = now

    def _reconcile(self, reported: float, now: float) -> float:
        drift = abs(self._current - reported)
        self._last_sync = now
        if drift >= self.drift_threshold:
            self.hard_corrections += 1
            logger.debug(
                f"Clock drift {drift:.2f}s >= {self.drift_threshold:.2f}s, "
                f"snapping {self._current:.2f}s -> {reported:.2f}s"
            )
            self._snap(reported, now)
        return drift

    # ----------------------
    # Loop
    # ----------------------
    async def run(
        self,
        stop: Optional[asyncio.Event] = None,
        on_tick: Optional[Callable[[float], None]] = None,
    ) -> None:
        """Tick every ``tick_interval`` seconds until ``stop`` is set."""
        stop = stop or asyncio.Event()
        while not stop.is_set():
            position = self.tick()
            if on_tick is not None and self.is_running:
                on_tick(position)
            await asyncio.sleep(self.tick_interval)
