"""Dark mode monitor: periodic schedule re-evaluation with change notifications.

- Re-evaluates the configured schedule every ``interval_seconds``
- Notifies subscribers only when the dark/light decision flips
- Can be woken early (e.g. by a config change listener)
- ``stop()`` releases the worker thread and is safe to call repeatedly
"""
from __future__ import annotations

import datetime as _dt
import logging
import threading
from typing import Callable, List, Optional

from ..constants import DARK_MODE_CHECK_INTERVAL_SECONDS
from .schedule import DarkModeSchedule, ScheduleConfig, should_use_dark_mode

_logger = logging.getLogger("dark_mode_monitor")

STATE_IDLE = "idle"
STATE_POLLING = "polling"

DarkModeListener = Callable[[bool], None]


def should_autostart(schedule: DarkModeSchedule) -> bool:
    """Only automatic schedules need the monitor after boot."""
    return schedule in (DarkModeSchedule.TIME_BASED, DarkModeSchedule.SUNRISE_SUNSET)


class DarkModeMonitor:
    def __init__(
        self,
        config_provider: Callable[[], ScheduleConfig],
        interval_seconds: float = DARK_MODE_CHECK_INTERVAL_SECONDS,
        *,
        clock: Optional[Callable[[], _dt.datetime]] = None,
        emit_initial: bool = False,
    ):
        self._config_provider = config_provider
        self._interval = max(0.01, float(interval_seconds))
        self._clock = clock
        self._emit_initial = emit_initial
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._listeners: List[DarkModeListener] = []
        self._last_state: Optional[bool] = None
        self._last_change: Optional[_dt.datetime] = None

    @property
    def state(self) -> str:
        with self._lock:
            running = self._thread is not None and self._thread.is_alive()
        return STATE_POLLING if running else STATE_IDLE

    @property
    def current_state(self) -> Optional[bool]:
        return self._last_state

    @property
    def last_change(self) -> Optional[_dt.datetime]:
        return self._last_change

    def subscribe(self, listener: DarkModeListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: DarkModeListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            # Each activation owns its events so a late stop() can't reach the next one
            self._stop_event = threading.Event()
            self._wake_event = threading.Event()
            # New activation, new baseline
            self._last_state = None
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(self._stop_event, self._wake_event),
                name="DarkModeMonitor",
                daemon=True,
            )
            self._thread.start()
        _logger.info("🌓 DarkModeMonitor started (interval %ss)", self._interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
            if thread is None:
                return
            self._stop_event.set()
            self._wake_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
        _logger.info("🛑 DarkModeMonitor stopped")

    def wake(self) -> None:
        with self._lock:
            wake_event = self._wake_event
        wake_event.set()

    def on_config_changed(self, _config) -> None:
        """Config change listener hook: re-evaluate right away."""
        self.wake()

    def _now(self) -> Optional[_dt.datetime]:
        return self._clock() if self._clock is not None else None

    def evaluate_once(self) -> Optional[bool]:
        """Evaluate the schedule and notify on change.

        Returns:
            The new state, or None if the configuration could not be read
        """
        try:
            config = self._config_provider()
            is_dark = should_use_dark_mode(config, self._now())
        except Exception as exc:
            _logger.warning("Dark mode evaluation failed: %s", exc)
            return None

        with self._lock:
            previous = self._last_state
            self._last_state = is_dark
            if previous is None:
                notify = self._emit_initial
            else:
                notify = previous != is_dark
            listeners = list(self._listeners) if notify else []
            if notify:
                self._last_change = _dt.datetime.now(tz=_dt.timezone.utc)

        if previous is None:
            _logger.debug("Dark mode baseline established: %s", is_dark)
        elif notify:
            _logger.info("🌗 Dark mode changed: %s -> %s", previous, is_dark)

        for listener in listeners:
            try:
                listener(is_dark)
            except Exception as exc:
                _logger.error("❌ Error in dark mode listener %s: %s", getattr(listener, "__name__", listener), exc)
        return is_dark

    def _run_loop(self, stop_event: threading.Event, wake_event: threading.Event) -> None:
        while not stop_event.is_set():
            wake_event.clear()
            self.evaluate_once()
            wake_event.wait(timeout=self._interval)
