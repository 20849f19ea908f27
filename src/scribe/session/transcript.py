"""
In-memory conversation transcript.

Holds the system prompt followed by user/assistant turns. The system turn is
pinned; once the buffer grows past ``max_turns + 1`` entries the oldest
non-system turns are dropped so that the system turn plus the most recent
``max_turns - 1`` turns remain.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ConversationTurn:
    """A single message in the LLM context."""

    role: Role
    content: str

    def to_message(self) -> Dict[str, str]:
        return asdict(self)


class TranscriptBuffer:
    """Sliding-window conversation history with a pinned system turn."""

    def __init__(self, system_prompt: str, max_turns: int = 20):
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self._turns: List[ConversationTurn] = [ConversationTurn("system", system_prompt)]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(self._turns)

    @property
    def system_turn(self) -> ConversationTurn:
        return self._turns[0]

    @property
    def turns(self) -> List[ConversationTurn]:
        """Snapshot of all turns, system turn first."""
        return list(self._turns)

    def append(self, role: Role, content: str) -> ConversationTurn:
        """Append a turn and evict old ones if the window overflowed."""
        if role == "system":
            raise ValueError("Only the initial turn may have the system role")
        turn = ConversationTurn(role, content)
        self._turns.append(turn)
        self._evict()
        return turn

    def _evict(self):
        if len(self._turns) <= self.max_turns + 1:
            return
        keep = self.max_turns - 1
        # In-place truncation keeps index 0 (system) and the newest `keep`
        del self._turns[1 : len(self._turns) - keep]

    def to_messages(self, exclude_last: bool = False) -> List[Dict[str, str]]:
        """
        Render turns as chat-completion messages.

        Args:
            exclude_last: Drop the most recent turn (never the system turn)
        """
        turns = self._turns
        if exclude_last and len(turns) > 1:
            turns = turns[:-1]
        return [turn.to_message() for turn in turns]
