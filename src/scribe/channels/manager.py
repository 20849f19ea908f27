"""
Manager for per-channel writing agents.
Responsible for the agent registry, webhook routing and idle disposal.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from scribe.channels.base import ChatTransport
from scribe.config import AgentConfig
from scribe.core.agent import WritingAgent
from scribe.errors import ConfigurationError
from scribe.logger import get_logger
from scribe.session.lifecycle import SessionLifecycle, SessionPolicy

logger = get_logger(__name__)

TransportFactory = Callable[[str, str], ChatTransport]


def stream_transport_factory(config: AgentConfig) -> TransportFactory:
    """Build StreamChatTransport instances from the Stream credentials in config."""
    if not config.stream_api_key or not config.stream_api_secret:
        raise ConfigurationError(
            "Stream credentials are required (set STREAM_API_KEY and STREAM_API_SECRET)"
        )

    def factory(channel_type: str, channel_id: str) -> ChatTransport:
        from scribe.channels.stream import StreamChatTransport

        return StreamChatTransport(
            {
                "api_key": config.stream_api_key,
                "api_secret": config.stream_api_secret,
                "channel_type": channel_type,
                "channel_id": channel_id,
                "user_id": config.agent_user_id,
                "user_name": config.agent_user_name,
            }
        )

    return factory


class AgentManager:
    """
    Central registry of running agents, keyed by channel cid.
    """

    def __init__(
        self,
        config: AgentConfig,
        transport_factory: Optional[TransportFactory] = None,
        lifecycle: Optional[SessionLifecycle] = None,
    ):
        self.config = config
        self._transport_factory = transport_factory
        self.lifecycle = lifecycle or SessionLifecycle(
            SessionPolicy(idle_timeout_minutes=config.idle_timeout_minutes)
        )
        self.agents: Dict[str, WritingAgent] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def transport_factory(self) -> TransportFactory:
        if self._transport_factory is None:
            self._transport_factory = stream_transport_factory(self.config)
        return self._transport_factory

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def _release_lock(self, key: str):
        """Forget a channel's lock once nothing holds it."""
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    def get_agent(self, cid: str) -> Optional[WritingAgent]:
        return self.agents.get(cid)

    def list_agents(self) -> List[Dict[str, Any]]:
        agents = []
        for cid, agent in self.agents.items():
            channel_type, channel_id = cid.split(":", 1)
            agents.append(
                {
                    "channel_type": channel_type,
                    "channel_id": channel_id,
                    "user_id": agent.user_id,
                    "last_interaction": agent.get_last_interaction(),
                }
            )
        return agents

    async def start_agent(
        self, channel_type: str, channel_id: str
    ) -> Tuple[WritingAgent, bool]:
        """
        Start an agent for a channel unless one is already running.

        Returns:
            (agent, created) tuple

        Raises:
            ConfigurationError: If credentials are missing
        """
        key = SessionLifecycle.get_session_key(channel_type, channel_id)
        try:
            async with self._get_lock(key):
                existing = self.agents.get(key)
                if existing:
                    return existing, False

                transport = self.transport_factory(channel_type, channel_id)
                agent = WritingAgent(transport, self.config)
                try:
                    await transport.connect()
                    await agent.initialize()
                except Exception as e:
                    logger.error(f"Failed to start agent for {key}: {e}")
                    await self._dispose(key, agent)
                    raise

                self.agents[key] = agent
                logger.info(f"Started agent for {key}")
                return agent, True
        finally:
            if key not in self.agents:
                self._release_lock(key)

    async def stop_agent(self, channel_type: str, channel_id: str) -> bool:
        key = SessionLifecycle.get_session_key(channel_type, channel_id)
        async with self._get_lock(key):
            agent = self.agents.pop(key, None)
            if agent:
                await self._dispose(key, agent)
        self._release_lock(key)
        return agent is not None

    async def _dispose(self, key: str, agent: WritingAgent):
        try:
            await agent.dispose()
        except Exception as e:
            logger.error(f"Error disposing agent for {key}: {e}")

    def dispatch(self, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Hand a webhook payload to the agent that owns its channel."""
        agent = self.agents.get(payload.get("cid", ""))
        if not agent:
            return None
        dispatch = getattr(agent.transport, "dispatch", None)
        if dispatch is None:
            return None
        return dispatch(payload)

    async def sweep_idle(self, now: Optional[float] = None) -> List[str]:
        """Dispose agents idle past the policy timeout; returns their cids."""
        disposed = []
        for key, agent in list(self.agents.items()):
            should_dispose, reason = self.lifecycle.should_dispose(
                agent.get_last_interaction(), now=now
            )
            if not should_dispose:
                continue
            logger.info(f"Disposing agent for {key}: {reason}")
            self.agents.pop(key, None)
            await self._dispose(key, agent)
            self._release_lock(key)
            disposed.append(key)
        return disposed

    async def start(self):
        """Start the idle sweep loop."""
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            f"AgentManager started (sweep every {self.config.sweep_interval_seconds:g}s)"
        )

    async def stop(self):
        """Stop the sweep loop and dispose every agent."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        agents, self.agents = self.agents, {}
        self._locks.clear()
        if agents:
            await asyncio.gather(
                *(self._dispose(key, agent) for key, agent in agents.items())
            )
        logger.info("AgentManager stopped.")

    async def _run_loop(self):
        while self._running:
            try:
                await asyncio.sleep(self.config.sweep_interval_seconds)
                await self.sweep_idle()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Idle sweep error: {e}")
