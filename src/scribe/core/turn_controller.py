"""
Turn Controller: runs one inbound chat message through search, generation and
transcript bookkeeping.

    IDLE -> DECIDING -> (SEARCHING) -> GENERATING -> IDLE
                 \___________\______________\__-> ERROR -> IDLE
"""

from enum import Enum
from functools import partial
from typing import Optional

from scribe.channels.base import ChatTransport, MessageEvent, SentMessage, StatusSignal
from scribe.llm import CompletionStreamer
from scribe.logger import get_logger
from scribe.prompts import build_search_prompt
from scribe.session.state import AgentSession
from scribe.tools.web_search import WebSearchClient, should_search

logger = get_logger(__name__)

DEFAULT_ERROR_TEXT = "An error occurred while generating the response"


class TurnState(str, Enum):
    IDLE = "idle"
    DECIDING = "deciding"
    SEARCHING = "searching"
    GENERATING = "generating"
    ERROR = "error"


class TurnController:
    """Encapsulates the lifecycle of a single conversation turn."""

    def __init__(
        self,
        session: AgentSession,
        transport: ChatTransport,
        streamer: CompletionStreamer,
        search_client: WebSearchClient,
    ):
        self.session = session
        self.transport = transport
        self.streamer = streamer
        self.search_client = search_client
        self.state = TurnState.IDLE

    def _accept(self, event: MessageEvent) -> bool:
        """
        Check the entry conditions and claim the session.

        Synchronous on purpose: there must be no await between reading and
        setting ``generating``.
        """
        if self.session.generating:
            logger.info("Already generating, ignoring message")
            return False
        if event.ai_generated or (
            event.user_id and event.user_id == self.transport.user_id
        ):
            return False
        if not event.text:
            return False

        self.session.touch()
        self.session.generating = True
        self.state = TurnState.DECIDING
        return True

    async def handle(self, event: MessageEvent) -> bool:
        """
        Process an inbound message event.

        Returns:
            True if the event was accepted as a new turn
        """
        if not self._accept(event):
            return False

        try:
            await self._run_turn(event.text)
        finally:
            self.session.generating = False
            self.state = TurnState.IDLE
        return True

    async def _run_turn(self, message: str):
        transcript = self.session.transcript
        transcript.append("user", message)

        anchor: Optional[SentMessage] = None
        try:
            anchor = await self.transport.send_message("", ai_generated=True)
            await self._signal(anchor, StatusSignal.THINKING)

            prompt = message
            if should_search(message):
                self.state = TurnState.SEARCHING
                await self._signal(anchor, StatusSignal.SEARCHING)
                search_results = await self.search_client.search(message)
                prompt = build_search_prompt(message, search_results)

            self.state = TurnState.GENERATING
            await self._signal(anchor, StatusSignal.GENERATING)

            reply = await self.streamer.generate(
                transcript.to_messages(exclude_last=True),
                prompt,
                on_update=partial(self.transport.update_message_text, anchor.id),
            )

            transcript.append("assistant", reply)
            await self._signal(anchor, StatusSignal.CLEAR)
            logger.info(f"Turn completed on {anchor.cid} ({len(reply)} chars)")

        except Exception as e:
            self.state = TurnState.ERROR
            logger.error(f"Error generating response: {e}")
            await self._report_error(e, anchor)

    async def _signal(self, anchor: SentMessage, signal: StatusSignal):
        await self.transport.send_status(anchor.cid, anchor.id, signal)

    async def _report_error(self, error: Exception, anchor: Optional[SentMessage]):
        """Tell the channel what went wrong and clear the indicator."""
        try:
            await self.transport.send_message(
                f"Error: {str(error) or DEFAULT_ERROR_TEXT}", ai_generated=True
            )
        except Exception as e:
            logger.error(f"Failed to send error message: {e}")

        if anchor is None:
            return
        try:
            await self._signal(anchor, StatusSignal.CLEAR)
        except Exception as e:
            logger.error(f"Failed to clear AI indicator: {e}")
