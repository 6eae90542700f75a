"""
Debounced, serialized auto-save for one record.

Edits accumulate in ``pending_changes``; a persist runs after ``debounce``
seconds without further edits. At most one persist is in flight at a time:
edits that arrive meanwhile are queued and flushed as soon as the in-flight
persist finishes, whether it succeeded or failed. Failures leave the pending
edits in place and are only retried by the next debounce cycle or an
explicit ``force_save``.

The coordinator is bound to the running asyncio loop and is not thread-safe;
call it from coroutines on that loop only.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

from app.config import settings
from app.modules.autosave.schemas import AutoSaveSnapshot, AutoSaveStatus

logger = logging.getLogger(__name__)

Persist = Callable[[Dict[str, Any]], Awaitable[Any]]


class _Undefined:
    """Marks a field as "no change". ``None``, ``0``, ``False`` and ``""`` are real edits."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


def clean_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in changes.items() if value is not UNDEFINED}


class AutoSaveCoordinator:
    def __init__(
        self,
        persist: Persist,
        debounce: Optional[float] = None,
        saved_display: Optional[float] = None,
        on_save_success: Optional[Callable[[], None]] = None,
        on_save_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._persist = persist
        self.debounce = settings.autosave_debounce_seconds if debounce is None else debounce
        self.saved_display = settings.autosave_saved_display_seconds if saved_display is None else saved_display
        self._on_save_success = on_save_success
        self._on_save_error = on_save_error

        self.status = AutoSaveStatus.IDLE
        self.last_saved: Optional[datetime] = None
        self.error: Optional[str] = None

        self._pending: Dict[str, Any] = {}
        self._queued: Dict[str, Any] = {}
        self._is_saving = False
        self._status_version = 0
        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._idle_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._settled = asyncio.Event()
        self._settled.set()
        self._disposed = False

    # -- public API -------------------------------------------------------

    @property
    def pending_changes(self) -> Dict[str, Any]:
        return dict(self._pending)

    @property
    def has_pending_changes(self) -> bool:
        return bool(clean_changes(self._pending))

    @property
    def is_saving(self) -> bool:
        return self.status == AutoSaveStatus.SAVING

    @property
    def in_flight(self) -> bool:
        return self._is_saving

    def save_field(self, name: str, value: Any) -> None:
        self.save_fields({name: value})

    def save_fields(self, fields: Mapping[str, Any]) -> None:
        if self._disposed:
            raise RuntimeError("auto-save coordinator has been disposed")
        self._pending = {**self._pending, **fields}
        self._schedule(dict(self._pending))

    async def force_save(self) -> None:
        """Persist pending edits now; returns once nothing is in flight."""
        self._cancel_debounce()
        if self.has_pending_changes:
            await self._perform_save(dict(self._pending))
        if self._is_saving:
            await self._settled.wait()

    def before_unload(self) -> bool:
        """True when leaving now would drop unsaved edits."""
        return self.has_pending_changes

    def snapshot(self) -> AutoSaveSnapshot:
        return AutoSaveSnapshot(
            status=self.status,
            last_saved=self.last_saved,
            error=self.error,
            pending_changes=clean_changes(self._pending),
            has_pending_changes=self.has_pending_changes,
            is_saving=self.is_saving,
        )

    def dispose(self) -> None:
        self._disposed = True
        self._cancel_debounce()
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    # -- internals --------------------------------------------------------

    def _schedule(self, changes: Dict[str, Any]) -> None:
        self._cancel_debounce()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self.debounce, self._on_debounce_elapsed, changes)

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _on_debounce_elapsed(self, changes: Dict[str, Any]) -> None:
        self._debounce_handle = None
        task = asyncio.get_running_loop().create_task(self._perform_save(changes))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _set_status(self, status: AutoSaveStatus) -> None:
        self.status = status
        self._status_version += 1

    async def _perform_save(self, changes: Mapping[str, Any]) -> None:
        if self._disposed:
            return
        cleaned = clean_changes(changes)
        if not cleaned:
            return

        if self._is_saving:
            self._queued = {**self._queued, **cleaned}
            return

        self._is_saving = True
        self._settled.clear()
        self._set_status(AutoSaveStatus.SAVING)
        self.error = None

        try:
            await self._persist(dict(cleaned))
        except Exception as e:
            if not self._disposed:
                self._set_status(AutoSaveStatus.ERROR)
                self.error = str(e) or type(e).__name__
                logger.warning(f"Auto-save failed: {self.error}")
                if self._on_save_error is not None:
                    self._on_save_error(e)
        else:
            if not self._disposed:
                self._set_status(AutoSaveStatus.SAVED)
                self.last_saved = datetime.now(timezone.utc)
                self._clear_persisted(cleaned)
                if self._on_save_success is not None:
                    self._on_save_success()
                self._schedule_idle_revert()
        finally:
            self._is_saving = False
            if self._queued and not self._disposed:
                queued, self._queued = self._queued, {}
                await self._perform_save(queued)
            if not self._is_saving:
                self._settled.set()

    def _clear_persisted(self, persisted: Mapping[str, Any]) -> None:
        # Keep edits made to the same field while the persist was in flight
        self._pending = {
            key: value
            for key, value in self._pending.items()
            if value is not UNDEFINED and (key not in persisted or persisted[key] != value)
        }

    def _schedule_idle_revert(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
        version = self._status_version
        loop = asyncio.get_running_loop()
        self._idle_handle = loop.call_later(self.saved_display, self._revert_to_idle, version)

    def _revert_to_idle(self, version: int) -> None:
        self._idle_handle = None
        if not self._disposed and self._status_version == version and self.status == AutoSaveStatus.SAVED:
            self._set_status(AutoSaveStatus.IDLE)
