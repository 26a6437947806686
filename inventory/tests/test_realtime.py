import json

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.core.cache import cache

from inventory.realtime.consumers import UpdatesConsumer
from inventory.services.realtime import DASHBOARD_CACHE_KEY, UPDATES_GROUP, notify_change


def _event(entity, ids=()):
    return {"type": "broadcast.refresh", "entity": entity, "ids": list(ids), "version": 1, "ts": "now"}


@pytest.mark.django_db
def test_consumer_filters_by_subscription():
    async def scenario():
        ws = WebsocketCommunicator(UpdatesConsumer.as_asgi(), "/ws/updates/")
        connected, _ = await ws.connect()
        assert connected
        welcome = json.loads(await ws.receive_from())
        assert welcome["type"] == "welcome" and "inventory" in welcome["entities"]

        await ws.send_to(text_data=json.dumps({"type": "subscribe", "entities": ["requests"]}))
        assert json.loads(await ws.receive_from())["entities"] == ["requests"]

        layer = get_channel_layer()
        await layer.group_send(UPDATES_GROUP, _event("inventory", [1]))
        await layer.group_send(UPDATES_GROUP, _event("requests", [7]))
        msg = json.loads(await ws.receive_from())
        assert msg["entity"] == "requests" and msg["ids"] == [7]
        assert await ws.receive_nothing()

        await ws.send_to(text_data=json.dumps({"type": "ping"}))
        assert json.loads(await ws.receive_from()) == {"type": "pong"}
        await ws.send_to(text_data="not json")
        assert json.loads(await ws.receive_from())["message"] == "invalid_json"
        await ws.send_to(text_data=json.dumps({"type": "subscribe", "entities": ["patients"]}))
        assert json.loads(await ws.receive_from())["code"] == 4002
        await ws.disconnect()

    async_to_sync(scenario)()


@pytest.mark.django_db
def test_notify_change_waits_for_commit(django_capture_on_commit_callbacks):
    cache.set(DASHBOARD_CACHE_KEY, {"totalItems": 99})
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        notify_change("inventory", [1, 2])
    assert cache.get(DASHBOARD_CACHE_KEY) == {"totalItems": 99}
    assert len(callbacks) == 1
    callbacks[0]()
    assert cache.get(DASHBOARD_CACHE_KEY) is None
