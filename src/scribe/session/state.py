"""
Per-channel agent session state.
"""

import time
from dataclasses import dataclass, field

from scribe.session.transcript import TranscriptBuffer


@dataclass
class AgentSession:
    """
    Mutable state owned by one agent.

    ``generating`` is the only concurrency guard: it must be checked and set
    without an intervening await.
    """

    transcript: TranscriptBuffer
    last_interaction: float = field(default_factory=time.time)
    generating: bool = False

    def touch(self):
        self.last_interaction = time.time()
