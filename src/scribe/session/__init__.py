"""
Session state for Scribe agents.

- transcript: bounded, in-memory conversation history
- state: per-channel session (transcript, last interaction, generating flag)
- lifecycle: idle-timeout policy used by the agent manager
"""

from scribe.session.state import AgentSession
from scribe.session.transcript import ConversationTurn, TranscriptBuffer

__all__ = ["AgentSession", "ConversationTurn", "TranscriptBuffer"]
