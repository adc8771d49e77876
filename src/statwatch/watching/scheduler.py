"""Single-flight tick scheduling on an asyncio event loop.

The next tick is armed only after the current one has finished, so at most
one tick is ever in flight. The scheduler can run on the caller's event
loop or on a private loop hosted by a daemon thread (LoopThread).
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable

from statwatch.logging import get_logger

log = get_logger("watching.scheduler")


class KeepAlive:
    """Keeps the interpreter from exiting while held.

    Holding starts a non-daemon thread that just waits to be released; the
    interpreter joins non-daemon threads at shutdown. Can be toggled any
    number of times.
    """

    def __init__(self, name: str = "statwatch-keepalive") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._release: threading.Event | None = None

    @property
    def held(self) -> bool:
        return self._release is not None

    def hold(self) -> None:
        with self._lock:
            if self._release is not None:
                return
            release = threading.Event()
            threading.Thread(target=release.wait, name=self._name, daemon=False).start()
            self._release = release

    def release(self) -> None:
        with self._lock:
            if self._release is None:
                return
            self._release.set()
            self._release = None


class LoopThread:
    """An event loop running forever on a daemon thread."""

    def __init__(self, name: str = "statwatch-loop") -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._running = threading.Event()

    def start(self) -> None:
        """Start the thread and return once its loop is running."""
        self._thread.start()
        self._running.wait()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.call_soon(self._running.set)
        try:
            self.loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self.loop.run_until_complete(self.loop.shutdown_asyncgens())
            self.loop.run_until_complete(self.loop.shutdown_default_executor())
            self.loop.close()

    def stop(self) -> None:
        if not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self.loop.stop)

    def join(self, timeout: float | None = None) -> None:
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()


class TickScheduler:
    """Runs ``callback`` every ``interval`` seconds, never overlapping.

    The callback is expected to handle its own errors; anything that
    escapes is logged and does not stop the schedule.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval: float,
        loop: asyncio.AbstractEventLoop,
        *,
        persistent: bool = False,
        on_stopped: Callable[[], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self._callback = callback
        self._interval = interval
        self._loop = loop
        self._on_stopped = on_stopped
        self._keepalive = KeepAlive()
        self._persistent = persistent

        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._started = False
        self._stopped = False
        self._drained = threading.Event()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    @property
    def keeps_alive(self) -> bool:
        return self._keepalive.held

    def _on_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _call(self, func: Callable[[], None]) -> None:
        """Run ``func`` on the scheduler's loop, from whatever thread we are on."""
        if self._on_loop():
            func()
        elif self._loop.is_closed():
            log.debug("Event loop already closed, running %s inline", func.__name__)
            func()
        else:
            self._loop.call_soon_threadsafe(func)

    def start(self) -> None:
        """Arm the first tick, one interval from now."""
        if self._started or self._stopped:
            return
        self._started = True
        if self._persistent:
            self._keepalive.hold()
        self._call(self._arm)

    def ref(self) -> None:
        """Keep the interpreter alive while this scheduler is running."""
        self._persistent = True
        if not self._stopped:
            self._keepalive.hold()

    def unref(self) -> None:
        """Let the interpreter exit even though ticks are still scheduled."""
        self._persistent = False
        self._keepalive.release()

    def _arm(self) -> None:
        if self._stopped or self._handle is not None:
            return
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._stopped:
            return
        self._task = self._loop.create_task(self._run())

    async def _run(self) -> None:
        try:
            await self._callback()
        except Exception as e:
            log.error("Unhandled error in scheduled tick: %s", e, exc_info=e)
        finally:
            self._task = None
            if self._stopped:
                self._finish()
            else:
                self._arm()

    def stop(self) -> None:
        """Stop scheduling further ticks. Idempotent.

        Does not wait for a tick that is already running; use ``wait()``.
        """
        if self._stopped:
            return
        self._stopped = True
        self._keepalive.release()
        self._call(self._cancel_pending)

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._task is None:
            self._finish()

    def _finish(self) -> None:
        if self._drained.is_set():
            return
        self._drained.set()
        log.debug("Scheduler drained")
        if self._on_stopped is not None:
            self._on_stopped()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stopped and no tick is running. Returns False on timeout."""
        return self._drained.wait(timeout)

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Async variant of ``wait()``."""
        if self._drained.is_set():
            return True
        return await asyncio.to_thread(self._drained.wait, timeout)
