"""
Runtime configuration for Scribe.

Every credential and tunable lives on ``AgentConfig``. Only ``from_env`` looks
at the process environment; agents and clients receive the config object.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
TAVILY_SEARCH_URL = "https://api.tavily.com/search"


class AgentConfig(BaseModel):
    """Settings shared by the agent, its clients and the HTTP host."""

    # LLM
    llm_api_key: Optional[str] = None
    llm_base_url: str = GEMINI_OPENAI_BASE_URL
    llm_model: str = "openai/gemini-2.0-flash"
    temperature: float = 0.7
    generation_timeout: float = 120.0  # seconds, 0 = disabled

    # Conversation memory and streaming
    max_turns: int = 20
    update_interval: float = 1.0  # seconds between partial message updates

    # Web search
    search_api_key: Optional[str] = None
    search_url: str = TAVILY_SEARCH_URL
    search_depth: str = "advanced"
    search_max_results: int = 5
    search_timeout: float = 30.0

    # Stream Chat
    stream_api_key: Optional[str] = None
    stream_api_secret: Optional[str] = None
    agent_user_id: str = "ai-writing-assistant"
    agent_user_name: str = "AI Writing Assistant"

    # Agent manager
    idle_timeout_minutes: int = 30  # 0 = never dispose idle agents
    sweep_interval_seconds: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AgentConfig":
        """
        Build a config from environment variables.

        Credentials use the provider names (GEMINI_API_KEY, TAVILY_API_KEY,
        STREAM_API_KEY, STREAM_API_SECRET); tunables use SCRIBE_* overrides.
        """
        env = os.environ if environ is None else environ
        values = {
            "llm_api_key": env.get("GEMINI_API_KEY"),
            "search_api_key": env.get("TAVILY_API_KEY"),
            "stream_api_key": env.get("STREAM_API_KEY"),
            "stream_api_secret": env.get("STREAM_API_SECRET"),
        }

        overrides = {
            "SCRIBE_LLM_MODEL": "llm_model",
            "SCRIBE_LLM_BASE_URL": "llm_base_url",
            "SCRIBE_MAX_TURNS": "max_turns",
            "SCRIBE_UPDATE_INTERVAL": "update_interval",
            "SCRIBE_GENERATION_TIMEOUT": "generation_timeout",
            "SCRIBE_AGENT_USER_ID": "agent_user_id",
            "SCRIBE_IDLE_TIMEOUT_MINUTES": "idle_timeout_minutes",
        }
        for env_key, field_name in overrides.items():
            if env.get(env_key):
                values[field_name] = env[env_key]

        # Empty strings count as "not configured"
        values = {k: (v or None) if k.endswith(("_key", "_secret")) else v for k, v in values.items()}
        return cls(**values)
