"""Shared pytest fixtures and fakes."""

import asyncio
import itertools
from typing import List, Optional

import pytest

from scribe.channels.base import ChatTransport, MessageEvent, SentMessage, StatusSignal
from scribe.config import AgentConfig
from scribe.llm import CompletionStreamer


class FakeTransport(ChatTransport):
    """Records everything the agent sends to the channel."""

    def __init__(self, user_id="ai-bot", cid="messaging:test-channel"):
        super().__init__("fake", {"user_id": user_id})
        self.cid = cid
        self.sent: List[dict] = []
        self.updates: List[tuple] = []
        self.statuses: List[tuple] = []
        self.closed = False
        self.connected = False
        self.fail_send_after: Optional[int] = None
        self._ids = itertools.count(1)

    async def connect(self):
        self.connected = True

    async def send_message(self, text, ai_generated=True):
        await asyncio.sleep(0)  # network round trip
        if self.fail_send_after is not None and len(self.sent) >= self.fail_send_after:
            raise RuntimeError("channel unavailable")
        message = SentMessage(id=f"msg-{next(self._ids)}", cid=self.cid)
        self.sent.append({"id": message.id, "text": text, "ai_generated": ai_generated})
        return message

    async def update_message_text(self, message_id, text):
        self.updates.append((message_id, text))

    async def send_status(self, cid, message_id, signal):
        self.statuses.append((cid, message_id, signal))

    async def close(self):
        self.closed = True

    @property
    def signals(self) -> List[StatusSignal]:
        return [signal for _, _, signal in self.statuses]


class ScriptedStreamer(CompletionStreamer):
    """CompletionStreamer whose provider stream is a fixed list of deltas."""

    def __init__(self, deltas=("Hello", ", ", "world"), error=None, gate=None, **kwargs):
        kwargs.setdefault("model", "test-model")
        kwargs.setdefault("timeout", 0)
        super().__init__(**kwargs)
        self.deltas = list(deltas)
        self.error = error
        self.gate: Optional[asyncio.Event] = gate
        self.calls: List[list] = []

    async def stream_deltas(self, messages):
        self.calls.append(messages)
        if self.gate is not None:
            await self.gate.wait()
        for delta in self.deltas:
            yield delta
        if self.error is not None:
            raise self.error


class FakeSearchClient:
    def __init__(self, payload='{"answer": "Sunny, 21C"}'):
        self.payload = payload
        self.queries: List[str] = []

    async def search(self, query):
        self.queries.append(query)
        return self.payload


def make_event(text="Hello there", ai_generated=False, user_id="alice"):
    return MessageEvent(text=text, ai_generated=ai_generated, user_id=user_id, message_id="in-1")


@pytest.fixture
def agent_config():
    return AgentConfig(llm_api_key="test-key", max_turns=4, generation_timeout=0)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def streamer():
    return ScriptedStreamer()


@pytest.fixture
def search_client():
    return FakeSearchClient()
