"""Debounced autosave for in-progress application drafts.

Each edit session owns one ``AutosaveDebouncer``. Edits are merged into the
session's full answer set; every edit cancels the pending flush and schedules
a new one after the quiet period, so only the state at the end of a burst of
typing is written. A flush transmits the full answer set, never a diff.
"""

import asyncio
import inspect
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from sqlalchemy.exc import OperationalError
import structlog

from .config import settings
from .error_handling import AlreadySubmittedError, NoActiveCycleError, PortalError

logger = structlog.get_logger(__name__)

FlushCallable = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


class AutosaveDebouncer:
    """Cancelable delayed flush of buffered draft edits."""

    def __init__(self, flush: FlushCallable, delay: Optional[float] = None):
        """
        Args:
            flush: Receives the full answer set; sync callables run in a worker thread
            delay: Quiet period in seconds (``autosave_debounce_seconds`` by default)
        """
        self._flush_callable = flush
        self.delay = settings.autosave_debounce_seconds if delay is None else delay
        self.answers: Dict[str, Any] = {}
        self.dirty = False
        self.closed = False
        self.saved_locally = False
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[Exception] = None
        self.flush_count = 0
        self._version = 0
        self._task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """Whether a flush is scheduled and has not started yet."""
        return self._task is not None and not self._task.done()

    def push(self, changes: Mapping[str, Any]) -> None:
        """Merge field edits and restart the quiet-period timer.

        Must be called from a running event loop.
        """
        if self.closed:
            logger.debug("Autosave closed, edit kept locally only", fields=list(changes))
            self.answers.update(changes)
            return

        self.answers.update(changes)
        self.dirty = True
        self._version += 1
        self._cancel_pending()
        self._task = asyncio.get_running_loop().create_task(self._flush_after_delay())

    async def flush_now(self) -> bool:
        """Cancel the timer and write immediately (e.g. before submit or unload)."""
        self._cancel_pending()
        return await self._flush()

    async def aclose(self) -> None:
        """Drop any scheduled flush without writing it."""
        self._cancel_pending()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _flush_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        # Past the quiet period the write is in flight; a new edit schedules
        # another flush instead of cancelling this one.
        current = asyncio.current_task()
        if self._task is current:
            self._task = None
            self._inflight = current
        try:
            await self._flush()
        finally:
            if self._inflight is current:
                self._inflight = None

    async def drain(self) -> None:
        """Wait until the scheduled flush (if any) and any in-flight write finish."""
        for task in (self._task, self._inflight):
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    async def _flush(self) -> bool:
        if not self.dirty or self.closed:
            return False

        snapshot = dict(self.answers)
        version = self._version

        try:
            if inspect.iscoroutinefunction(self._flush_callable):
                await self._flush_callable(snapshot)
            else:
                await asyncio.to_thread(self._flush_callable, snapshot)
        except (NoActiveCycleError, OperationalError) as e:
            # Soft failure: keep the buffer, a later edit or flush_now syncs it.
            self.saved_locally = True
            self.last_error = e
            logger.warning("Draft autosave deferred, saved locally", error=str(e))
            return False
        except AlreadySubmittedError as e:
            self.closed = True
            self.last_error = e
            logger.info("Draft autosave stopped, application already submitted")
            return False
        except PortalError as e:
            self.saved_locally = True
            self.last_error = e
            logger.warning("Draft autosave rejected", error=str(e), code=e.code)
            return False

        self.flush_count += 1
        self.last_saved_at = datetime.utcnow()
        self.last_error = None
        self.saved_locally = False
        # Edits that arrived while the write was in flight stay dirty.
        if version == self._version:
            self.dirty = False
        return True
