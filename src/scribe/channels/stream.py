"""
Stream Chat transport for Scribe.

Uses the async server-side SDK for everything the agent sends. Inbound
"message.new" events arrive as webhook payloads and are handed to
``dispatch``, which runs the subscribed handlers in background tasks so the
webhook request can return immediately.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from stream_chat import StreamChatAsync

from scribe.channels.base import ChatTransport, MessageEvent, SentMessage, StatusSignal
from scribe.logger import get_logger

logger = get_logger(__name__)


class StreamChatTransport(ChatTransport):
    """
    Transport bound to one Stream Chat channel.

    Config keys: api_key, api_secret, channel_type, channel_id, user_id,
    user_name.
    """

    def __init__(self, config: Dict[str, Any], client: Optional[Any] = None):
        super().__init__("stream", config)
        self.channel_type = config.get("channel_type", "messaging")
        self.channel_id = config["channel_id"]
        self.client = client or StreamChatAsync(
            api_key=config["api_key"], api_secret=config["api_secret"]
        )
        self.channel = self.client.channel(self.channel_type, self.channel_id)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def cid(self) -> str:
        return f"{self.channel_type}:{self.channel_id}"

    async def connect(self):
        """Register the agent user and make it a member of the channel."""
        await self.client.upsert_user(
            {"id": self.user_id, "name": self.config.get("user_name", self.user_id)}
        )
        await self.channel.add_members([self.user_id])
        logger.info(f"Agent {self.user_id} joined channel {self.cid}")

    def dispatch(self, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        """
        Route a webhook payload to the subscribed handlers.

        Returns the scheduled task, or None when the payload is not a new
        message for this channel.
        """
        if payload.get("type") != "message.new":
            return None
        if payload.get("cid") and payload["cid"] != self.cid:
            return None

        message = payload.get("message") or {}
        user = message.get("user") or payload.get("user") or {}
        event = MessageEvent(
            text=message.get("text") or "",
            ai_generated=bool(message.get("ai_generated", False)),
            message_id=message.get("id"),
            user_id=user.get("id"),
            cid=payload.get("cid", self.cid),
            raw_data=payload,
        )

        task = asyncio.create_task(self._invoke_handlers(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def send_message(self, text: str, ai_generated: bool = True) -> SentMessage:
        response = await self.channel.send_message(
            {"text": text, "ai_generated": ai_generated}, self.user_id
        )
        message = response["message"]
        return SentMessage(id=message["id"], cid=message.get("cid", self.cid))

    async def update_message_text(self, message_id: str, text: str):
        await self.client.update_message_partial(
            message_id, {"set": {"text": text}}, self.user_id
        )

    async def send_status(self, cid: str, message_id: str, signal: StatusSignal):
        if signal is StatusSignal.CLEAR:
            event = {"type": "ai_indicator.clear", "cid": cid, "message_id": message_id}
        else:
            event = {
                "type": "ai_indicator.update",
                "ai_state": signal.value,
                "cid": cid,
                "message_id": message_id,
            }
        await self.channel.send_event(event, self.user_id)

    def verify_webhook(self, body: bytes, signature: str) -> bool:
        return self.client.verify_webhook(body, signature)

    async def close(self):
        """Cancel in-flight handler tasks, then close the SDK client."""
        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

        await self.client.close()
        logger.info(f"Stream transport for {self.cid} closed.")
