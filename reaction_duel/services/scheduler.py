import heapq
import itertools
import logging
import time

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, delay: float):
        self.delay = delay
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class BackgroundScheduler:
    """Run callbacks after a delay on Socket.IO background tasks.

    Uses ``socketio.sleep`` so the wait cooperates with whichever async mode
    the server runs under (threading, eventlet or gevent).
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def time(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback, *args) -> TimerHandle:
        handle = TimerHandle(delay)

        def _runner():
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            try:
                callback(*args)
            except Exception:
                logger.exception(f"[timer-error] callback={getattr(callback, '__name__', callback)} args={args}")

        self.socketio.start_background_task(_runner)
        return handle


class ManualScheduler:
    """Deterministic scheduler driven by a virtual clock.

    Used when the app runs with TESTING enabled: nothing fires until
    ``advance`` is called. ``time`` returns the virtual clock
    so timestamps taken by the engine line up with it.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback, *args) -> TimerHandle:
        handle = TimerHandle(delay)
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle, callback, args))
        return handle

    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[2].cancelled)

    def next_delay(self):
        """Seconds until the next live timer fires, or None when idle."""
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0] - self.now

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that falls due. Returns the number fired."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback, args = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            if handle.cancelled:
                continue
            callback(*args)
            fired += 1
        self.now = target
        return fired

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
