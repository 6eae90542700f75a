import asyncio
import logging
from app.config import settings
from app.modules.autosave import registry

logger = logging.getLogger(__name__)


async def sweep_idle_sessions() -> int:
    """Evict editor sessions whose browser went away without closing them."""
    try:
        evicted = await registry.evict_idle(settings.autosave_session_idle_seconds)
    except Exception as e:
        logger.error(f"Error evicting idle editor sessions: {str(e)}")
        return 0
    if evicted:
        logger.info(f"Evicted {len(evicted)} idle editor session(s)")
    return len(evicted)


async def session_sweeper_loop():
    """Background task that periodically evicts idle editor sessions"""
    while True:
        await asyncio.sleep(settings.autosave_sweep_interval_seconds)
        await sweep_idle_sessions()
