"""Thread-safe registry of open editor sessions: (user_id, table, record_id) -> coordinator."""
import threading
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from app.modules.autosave.coordinator import AutoSaveCoordinator

logger = logging.getLogger(__name__)

SessionKey = Tuple[str, str, str]

_lock = threading.Lock()
_registry: Dict[SessionKey, AutoSaveCoordinator] = {}
_last_active: Dict[SessionKey, float] = {}


def get_or_create(key: SessionKey, factory: Callable[[], AutoSaveCoordinator]) -> AutoSaveCoordinator:
    with _lock:
        coordinator = _registry.get(key)
        if coordinator is None:
            coordinator = factory()
            _registry[key] = coordinator
            logger.debug(f"Opened editor session {key}")
        _last_active[key] = time.monotonic()
        return coordinator


def get(key: SessionKey) -> Optional[AutoSaveCoordinator]:
    with _lock:
        coordinator = _registry.get(key)
        if coordinator is not None:
            _last_active[key] = time.monotonic()
        return coordinator


def close(key: SessionKey) -> bool:
    """Dispose and forget the session. Returns True if one was open."""
    with _lock:
        coordinator = _registry.pop(key, None)
        _last_active.pop(key, None)
    if coordinator is None:
        return False
    coordinator.dispose()
    logger.debug(f"Closed editor session {key}")
    return True


def size() -> int:
    with _lock:
        return len(_registry)


def _take_idle(max_idle_seconds: float, now: float) -> List[Tuple[SessionKey, AutoSaveCoordinator]]:
    with _lock:
        idle = [
            key for key, seen in _last_active.items()
            if now - seen >= max_idle_seconds and not _registry[key].in_flight
        ]
        for key in idle:
            _last_active.pop(key)
        return [(key, _registry.pop(key)) for key in idle]


async def evict_idle(max_idle_seconds: float, now: Optional[float] = None) -> List[SessionKey]:
    """Close sessions with no activity for ``max_idle_seconds``.

    Pending edits get one last save before the session is disposed; whatever
    still fails to save is logged and dropped.
    """
    taken = _take_idle(max_idle_seconds, time.monotonic() if now is None else now)
    for key, coordinator in taken:
        if coordinator.has_pending_changes:
            await coordinator.force_save()
            if coordinator.has_pending_changes:
                logger.warning(
                    f"Evicted idle editor session {key} with unsaved fields {sorted(coordinator.pending_changes)}"
                )
        coordinator.dispose()
        logger.info(f"Evicted idle editor session {key}")
    return [key for key, _ in taken]


def clear() -> None:
    with _lock:
        sessions = list(_registry.values())
        _registry.clear()
        _last_active.clear()
    for coordinator in sessions:
        coordinator.dispose()
