"""Tests for the turn-handling pipeline."""

import asyncio
import json

import httpx
import pytest

from conftest import FakeSearchClient, FakeTransport, ScriptedStreamer, make_event
from scribe.channels.base import StatusSignal
from scribe.core.turn_controller import TurnController, TurnState
from scribe.session.state import AgentSession
from scribe.session.transcript import TranscriptBuffer
from scribe.tools.web_search import WebSearchClient


def make_controller(transport=None, streamer=None, search_client=None, max_turns=20):
    session = AgentSession(TranscriptBuffer("sys", max_turns=max_turns))
    return TurnController(
        session,
        transport or FakeTransport(),
        streamer or ScriptedStreamer(),
        search_client or FakeSearchClient(),
    )


class TestEntryConditions:
    @pytest.mark.asyncio
    async def test_ignores_ai_generated_messages(self):
        controller = make_controller()
        assert not await controller.handle(make_event(ai_generated=True))
        assert controller.transport.sent == []

    @pytest.mark.asyncio
    async def test_ignores_messages_from_agent_user(self):
        controller = make_controller()
        assert not await controller.handle(make_event(user_id="ai-bot"))
        assert controller.transport.sent == []

    @pytest.mark.asyncio
    async def test_ignores_empty_text(self):
        controller = make_controller()
        assert not await controller.handle(make_event(text=""))
        assert len(controller.session.transcript) == 1

    @pytest.mark.asyncio
    async def test_accepts_whitespace_only_text(self):
        controller = make_controller()
        assert await controller.handle(make_event(text="   "))
        assert controller.session.transcript.turns[1].content == "   "

    @pytest.mark.asyncio
    async def test_rejects_messages_while_generating(self):
        gate = asyncio.Event()
        controller = make_controller(streamer=ScriptedStreamer(gate=gate))

        first = asyncio.create_task(controller.handle(make_event("Write a haiku")))
        await asyncio.sleep(0)
        assert controller.session.generating

        rejected = await asyncio.gather(
            *(controller.handle(make_event(f"follow-up {i}")) for i in range(5))
        )
        gate.set()
        assert await first

        assert rejected == [False] * 5
        placeholders = [m for m in controller.transport.sent if m["text"] == ""]
        assert len(placeholders) == 1
        assert not controller.session.generating

    @pytest.mark.asyncio
    async def test_flag_is_set_before_first_await(self):
        controller = make_controller()
        task = asyncio.create_task(controller.handle(make_event("Write a haiku")))
        second = asyncio.create_task(controller.handle(make_event("Another one")))

        assert await task
        assert not await second


class TestPlainTurn:
    @pytest.mark.asyncio
    async def test_turn_without_search(self):
        transport = FakeTransport()
        search = FakeSearchClient()
        controller = make_controller(transport=transport, search_client=search)

        assert await controller.handle(make_event("Polish this paragraph for me."))

        assert transport.sent == [{"id": "msg-1", "text": "", "ai_generated": True}]
        assert transport.signals == [
            StatusSignal.THINKING,
            StatusSignal.GENERATING,
            StatusSignal.CLEAR,
        ]
        assert transport.updates[-1] == ("msg-1", "Hello, world")
        assert search.queries == []
        assert [t.role for t in controller.session.transcript] == ["system", "user", "assistant"]
        assert controller.session.transcript.turns[-1].content == "Hello, world"
        assert controller.state is TurnState.IDLE

    @pytest.mark.asyncio
    async def test_prefix_excludes_new_user_turn(self):
        streamer = ScriptedStreamer()
        controller = make_controller(streamer=streamer)

        await controller.handle(make_event("First draft."))
        await controller.handle(make_event("Second draft."))

        assert streamer.calls[1] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "First draft."},
            {"role": "assistant", "content": "Hello, world"},
            {"role": "user", "content": "Second draft."},
        ]

    @pytest.mark.asyncio
    async def test_transcript_stays_bounded(self):
        controller = make_controller(max_turns=4)
        for i in range(10):
            await controller.handle(make_event(f"Draft number {i}."))

        turns = controller.session.transcript.turns
        assert len(turns) <= 5
        assert turns[0].content == "sys"
        assert turns[-1].role == "assistant"

    @pytest.mark.asyncio
    async def test_records_interaction_time(self):
        controller = make_controller()
        controller.session.last_interaction = 0.0
        await controller.handle(make_event("Hello there."))
        assert controller.session.last_interaction > 0.0


class TestSearchTurn:
    @pytest.mark.asyncio
    async def test_search_augments_prompt_but_not_transcript(self):
        transport = FakeTransport()
        search = FakeSearchClient(payload='{"answer": "Sunny, 21C"}')
        streamer = ScriptedStreamer(deltas=["It is ", "sunny."])
        controller = make_controller(transport=transport, streamer=streamer, search_client=search)

        assert await controller.handle(make_event("current weather in Paris?"))

        assert search.queries == ["current weather in Paris?"]
        assert transport.signals == [
            StatusSignal.THINKING,
            StatusSignal.SEARCHING,
            StatusSignal.GENERATING,
            StatusSignal.CLEAR,
        ]
        final_message = streamer.calls[0][-1]
        assert final_message["role"] == "user"
        assert final_message["content"] == (
            "User query: current weather in Paris?\n\n"
            'Web search results: {"answer": "Sunny, 21C"}\n\n'
            "Please provide a comprehensive answer based on the search results above."
        )

        turns = controller.session.transcript.turns
        assert turns[1].content == "current weather in Paris?"
        assert turns[2].content == "It is sunny."

    @pytest.mark.asyncio
    async def test_search_http_500_degrades_gracefully(self):
        def handler(request):
            return httpx.Response(500, text="internal error")

        search = WebSearchClient(api_key="tv-key", transport=httpx.MockTransport(handler))
        streamer = ScriptedStreamer(deltas=["Best effort answer."])
        controller = make_controller(streamer=streamer, search_client=search)

        assert await controller.handle(make_event("latest news on solar panels"))

        prompt = streamer.calls[0][-1]["content"]
        payload = json.loads(prompt.split("Web search results: ", 1)[1].split("\n\n", 1)[0])
        assert payload["error"] == "Search failed with status: 500"
        assert controller.session.transcript.turns[-1].content == "Best effort answer."
        assert controller.transport.signals[-1] is StatusSignal.CLEAR


class TestFailures:
    @pytest.mark.asyncio
    async def test_stream_failure_reports_error_and_releases_lock(self):
        transport = FakeTransport()
        streamer = ScriptedStreamer(deltas=["Half a"], error=RuntimeError("stream reset"))
        controller = make_controller(transport=transport, streamer=streamer)

        assert await controller.handle(make_event("Rewrite my intro."))

        assert transport.sent[-1] == {"id": "msg-2", "text": "Error: stream reset", "ai_generated": True}
        assert transport.signals[-1] is StatusSignal.CLEAR
        assert not controller.session.generating
        assert controller.state is TurnState.IDLE
        # the user turn stays, no assistant turn is recorded
        assert [t.role for t in controller.session.transcript] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_placeholder_failure_does_not_escape(self):
        transport = FakeTransport()
        transport.fail_send_after = 0
        controller = make_controller(transport=transport)

        assert await controller.handle(make_event("Rewrite my intro."))

        assert transport.statuses == []
        assert not controller.session.generating

    @pytest.mark.asyncio
    async def test_next_message_accepted_after_failure(self):
        streamer = ScriptedStreamer(error=RuntimeError("boom"))
        controller = make_controller(streamer=streamer)
        await controller.handle(make_event("One."))

        streamer.error = None
        assert await controller.handle(make_event("Two."))
        assert controller.session.transcript.turns[-1].role == "assistant"
