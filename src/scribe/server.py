"""
Starlette-based web server hosting Scribe writing agents.
"""

import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.routing import Route

from scribe.channels.manager import AgentManager
from scribe.config import AgentConfig
from scribe.logger import get_logger, setup_logging
from scribe.routes.agent_routes import list_agents, start_agent, stop_agent
from scribe.routes.health_routes import health_check
from scribe.routes.webhook_routes import stream_webhook

logger = get_logger(__name__)


def create_app(
    config: Optional[AgentConfig] = None,
    agent_manager: Optional[AgentManager] = None,
) -> Starlette:
    """Build the HTTP app around an agent manager."""
    config = config or AgentConfig.from_env()
    manager = agent_manager or AgentManager(config)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info("Application startup - starting agent manager")
        await manager.start()
        try:
            yield
        finally:
            logger.info("Application shutdown - disposing agents")
            await manager.stop()

    app = Starlette(
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Route("/agents", list_agents, methods=["GET"]),
            Route("/agents/start", start_agent, methods=["POST"]),
            Route("/agents/stop", stop_agent, methods=["POST"]),
            Route("/webhook", stream_webhook, methods=["POST"]),
        ],
        lifespan=lifespan,
    )
    app.state.agent_manager = manager
    return app


def main():
    import uvicorn

    load_dotenv()

    if "--debug" in sys.argv:
        os.environ["LOG_LEVEL"] = "DEBUG"
    log_level = os.getenv("LOG_LEVEL", "INFO")
    setup_logging(level=log_level, log_file=os.getenv("LOG_FILE"))

    host = os.getenv("SCRIBE_HOST", "0.0.0.0")
    port = int(os.getenv("SCRIBE_PORT", "3000"))

    app = create_app()
    logger.info(f"Starting Scribe server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
