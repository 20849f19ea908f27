"""
Agent session lifecycle management.

Provides the idle policy the agent manager uses to dispose agents nobody is
talking to anymore, plus the canonical key agents are registered under.
"""

import time
from dataclasses import dataclass
from typing import Optional, Tuple

from scribe.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SessionPolicy:
    """Configurable disposal policy."""

    idle_timeout_minutes: int = 30  # 0 = disabled


class SessionLifecycle:
    """Checks whether an agent session should be disposed based on policy."""

    def __init__(self, policy: Optional[SessionPolicy] = None):
        self.policy = policy or SessionPolicy()

    def should_dispose(
        self, last_interaction: float, now: Optional[float] = None
    ) -> Tuple[bool, str]:
        """
        Check if a session has been idle past the timeout.

        Args:
            last_interaction: Epoch seconds of the last accepted message
            now: Epoch seconds to compare against (defaults to time.time())

        Returns:
            (should_dispose, reason) tuple
        """
        if not self.policy.idle_timeout_minutes:
            return False, ""

        now = time.time() if now is None else now
        idle = now - last_interaction
        if idle > self.policy.idle_timeout_minutes * 60:
            return (
                True,
                f"idle {int(idle // 60)}m (limit: {self.policy.idle_timeout_minutes}m)",
            )
        return False, ""

    @staticmethod
    def get_session_key(channel_type: str, channel_id: str) -> str:
        """Canonical key for a channel, matching Stream's cid format."""
        return f"{channel_type}:{channel_id}"
