"""
Change notifications for connected clients.

Mutations call :func:`notify_change` inside their transaction; the
broadcast and cache invalidation run only after the commit succeeds so
clients never refetch rows that were rolled back.
"""
from __future__ import annotations

import logging
from typing import Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

UPDATES_GROUP = "updates"
DASHBOARD_CACHE_KEY = "dashboard:summary"
ENTITIES = ("inventory", "requests", "orders", "releases", "dashboard")


def invalidate_cached_views() -> None:
    cache.delete(DASHBOARD_CACHE_KEY)


def broadcast(entity: str, ids: Iterable[int] = ()) -> None:
    now = timezone.now()
    event = {
        "type": "broadcast.refresh",
        "entity": entity,
        "ids": list(ids)[:50],
        "version": int(now.timestamp()),
        "ts": now.isoformat(),
    }
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)
    except Exception:
        # transaction already committed
        logger.warning("Broadcast failed", exc_info=True, extra={"entity": entity})


def notify_change(entity: str, ids: Iterable[int] = ()) -> None:
    ids = list(ids)

    def _after_commit():
        invalidate_cached_views()
        broadcast(entity, ids)

    transaction.on_commit(_after_commit)
