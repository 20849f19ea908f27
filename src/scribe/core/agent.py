"""
Writing Agent: owns one channel's session and wires the turn pipeline to the
chat transport.
"""

import time
from typing import Optional

from scribe.channels.base import ChatTransport, MessageEvent
from scribe.config import AgentConfig
from scribe.core.turn_controller import TurnController
from scribe.errors import ConfigurationError
from scribe.llm import CompletionStreamer
from scribe.logger import get_logger
from scribe.prompts import build_system_prompt
from scribe.session.state import AgentSession
from scribe.session.transcript import TranscriptBuffer
from scribe.tools.web_search import WebSearchClient

logger = get_logger(__name__)


class WritingAgent:
    """
    AI writing assistant for a single chat channel.

    Streamer and search client can be injected; otherwise they are built from
    the config during ``initialize``.
    """

    def __init__(
        self,
        transport: ChatTransport,
        config: AgentConfig,
        streamer: Optional[CompletionStreamer] = None,
        search_client: Optional[WebSearchClient] = None,
    ):
        self.transport = transport
        self.config = config
        self._streamer = streamer
        self._search_client = search_client
        self.session: Optional[AgentSession] = None
        self.controller: Optional[TurnController] = None
        self._subscribed = False
        self._created_at = time.time()

    @property
    def user_id(self) -> Optional[str]:
        return self.transport.user_id

    @property
    def initialized(self) -> bool:
        return self.controller is not None

    def get_last_interaction(self) -> float:
        """Epoch seconds of the last accepted message (creation time before any)."""
        if self.session is None:
            return self._created_at
        return self.session.last_interaction

    async def initialize(self):
        """
        Validate credentials, reset the conversation and subscribe to messages.

        Raises:
            ConfigurationError: If no LLM API key is configured
        """
        if not self.config.llm_api_key:
            raise ConfigurationError("LLM API key is required (set GEMINI_API_KEY)")

        streamer = self._streamer or CompletionStreamer.from_config(self.config)
        search_client = self._search_client or WebSearchClient.from_config(self.config)

        self.session = AgentSession(
            TranscriptBuffer(build_system_prompt(), max_turns=self.config.max_turns)
        )
        self.controller = TurnController(
            self.session, self.transport, streamer, search_client
        )

        if self._subscribed:
            self.transport.off_message(self.handle_message)
        self.transport.on_message(self.handle_message)
        self._subscribed = True
        logger.info(f"Writing agent {self.user_id} initialized")

    async def handle_message(self, event: MessageEvent):
        if self.controller is None:
            logger.info("Agent not initialized, ignoring message")
            return
        await self.controller.handle(event)

    async def dispose(self):
        """Unsubscribe and close the transport session. Safe after a failed init."""
        try:
            self.transport.off_message(self.handle_message)
        except Exception as e:
            logger.debug(f"Unsubscribe during dispose failed: {e}")
        self._subscribed = False
        self.controller = None

        await self.transport.close()
        logger.info(f"Writing agent {self.user_id} disposed")
