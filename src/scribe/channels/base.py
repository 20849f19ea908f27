"""
Base classes and data models for chat transports.

A transport owns the connection to a single chat channel: it delivers new
messages to subscribed handlers and carries the agent's replies, partial
message updates and AI status indicators back to the channel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from scribe.logger import get_logger

logger = get_logger(__name__)


class StatusSignal(str, Enum):
    """AI indicator states shown in the channel while a turn runs."""

    THINKING = "AI_STATE_THINKING"
    SEARCHING = "AI_STATE_EXTERNAL_SOURCES"
    GENERATING = "AI_STATE_GENERATING"
    CLEAR = "CLEAR"


@dataclass
class MessageEvent:
    """A "new message" event delivered by the transport."""

    text: str
    ai_generated: bool = False
    message_id: Optional[str] = None
    user_id: Optional[str] = None
    cid: Optional[str] = None
    raw_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SentMessage:
    """Identity of a message the agent sent."""

    id: str
    cid: str


MessageHandler = Callable[[MessageEvent], Awaitable[None]]


class ChatTransport(ABC):
    """
    Abstract base class for chat transports.
    """

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None):
        self.name = name
        self.config = config or {}
        self._handlers: List[MessageHandler] = []

    @property
    def user_id(self) -> Optional[str]:
        """The chat identity the agent speaks as."""
        return self.config.get("user_id")

    def on_message(self, handler: MessageHandler):
        """Subscribe a handler to new-message events."""
        self._handlers.append(handler)

    def off_message(self, handler: MessageHandler):
        """
        Unsubscribe a handler.

        Raises:
            ValueError: If the handler was not subscribed
        """
        self._handlers.remove(handler)

    @property
    def handlers(self) -> List[MessageHandler]:
        return list(self._handlers)

    async def _invoke_handlers(self, event: MessageEvent):
        """Run every subscribed handler; one failing handler does not stop the rest."""
        for handler in self.handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Message handler failed on {self.name}: {e}")

    async def connect(self):
        """Prepare the channel for the agent. No-op by default."""

    @abstractmethod
    async def send_message(self, text: str, ai_generated: bool = True) -> SentMessage:
        """Post a new message and return its identity."""

    @abstractmethod
    async def update_message_text(self, message_id: str, text: str):
        """Replace the text of an existing message."""

    @abstractmethod
    async def send_status(self, cid: str, message_id: str, signal: StatusSignal):
        """Show (or clear, for StatusSignal.CLEAR) the AI indicator on a message."""

    @abstractmethod
    async def close(self):
        """Release the underlying client session."""
