# app/services/notify.py
import asyncio
import logging
from typing import Any, Dict, Optional

from ..controllers import notification_controller

logger = logging.getLogger(__name__)

_pending: set = set()


async def _create_quietly(user_id: str, type: str, title: str, message: str,
                          data: Dict[str, Any], clearable: bool) -> None:
    try:
        await notification_controller.create_notification(
            user_id, type, title, message, data, clearable
        )
    except Exception:
        # the goal transition is already persisted; a lost notice must not undo it
        logger.warning("could not create %s notification for %s", type, user_id, exc_info=True)


def notify_user_bg(
    user_id: Optional[str],
    type: str,
    title: str,
    message: str = "",
    data: Optional[Dict[str, Any]] = None,
    clearable: bool = True,
) -> None:
    """
    Fire-and-forget notification so the route returns fast.
    Safe to call from controllers after DB writes succeed.
    """
    if not user_id:
        return
    coro = _create_quietly(user_id, type, title, message, data or {}, clearable)
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No running loop (scripts). Run it inline.
        asyncio.run(coro)
        return
    task = loop.create_task(coro)
    _pending.add(task)
    task.add_done_callback(_pending.discard)
