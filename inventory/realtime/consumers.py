import json

from channels.generic.websocket import AsyncWebsocketConsumer

from inventory.services.realtime import ENTITIES, UPDATES_GROUP


async def _ws_error(ws, code: int, message: str):
    await ws.send(json.dumps({"type": "error", "code": code, "message": message}))


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes refresh hints to clients; payloads carry ids only, never row data.

    A client may narrow what it hears with
    ``{"type": "subscribe", "entities": ["inventory", "requests"]}``.
    """
    GROUP = UPDATES_GROUP

    async def connect(self):
        self.entities = set(ENTITIES)
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "entities": sorted(self.entities)}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict):
            await _ws_error(self, 4001, "invalid_payload")
            return

        kind = data.get("type")
        if kind == "ping":
            await self.send(json.dumps({"type": "pong"}))
        elif kind == "subscribe":
            wanted = data.get("entities") or list(ENTITIES)
            if not isinstance(wanted, list) or not set(wanted) <= set(ENTITIES):
                await _ws_error(self, 4002, "unknown_entity")
                return
            self.entities = set(wanted)
            await self.send(json.dumps({"type": "subscribed", "entities": sorted(self.entities)}))
        else:
            await _ws_error(self, 4003, "unsupported_type")

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "entity": str, "ids": [...], "version": int, "ts": "..."}
        if event.get("entity") in self.entities:
            await self.send(json.dumps(event))
