import asyncio
import logging

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Trailing-edge debounce on an asyncio loop.

    Every trigger() cancels the pending call and schedules a new one, so a
    burst of triggers produces a single call `delay_s` after the last one,
    with the last trigger's arguments.
    """

    def __init__(self, delay_s, callback, loop=None):
        self.delay_s = float(delay_s)
        self.callback = callback
        self._loop = loop
        self._handle = None
        self._tasks = set()

    @property
    def pending(self):
        return self._handle is not None

    @property
    def running(self):
        return len(self._tasks)

    def trigger(self, *args):
        loop = self._loop or asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay_s, self._fire, loop, args)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, loop, args):
        self._handle = None
        logger.debug("Debounced call after %.2fs quiet period", self.delay_s)
        result = self.callback(*args)
        if asyncio.iscoroutine(result):
            task = loop.create_task(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            logger.error("Debounced call failed", exc_info=err)
