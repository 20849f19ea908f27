"""
Agent management routes.

- GET /agents: list running agents
- POST /agents/start: start an agent for a channel
- POST /agents/stop: dispose a channel's agent
"""

import json

from starlette.requests import Request
from starlette.responses import JSONResponse

from scribe.errors import ConfigurationError
from scribe.logger import get_logger

logger = get_logger(__name__)


async def _read_channel(request: Request):
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = {}
    if not isinstance(data, dict):
        data = {}
    return data.get("channel_id"), data.get("channel_type") or "messaging"


async def list_agents(request: Request) -> JSONResponse:
    return JSONResponse({"agents": request.app.state.agent_manager.list_agents()})


async def start_agent(request: Request) -> JSONResponse:
    channel_id, channel_type = await _read_channel(request)
    if not channel_id:
        return JSONResponse({"error": "Missing required field: channel_id"}, status_code=400)

    manager = request.app.state.agent_manager
    try:
        agent, created = await manager.start_agent(channel_type, channel_id)
    except ConfigurationError as e:
        return JSONResponse({"error": str(e)}, status_code=500)
    except Exception as e:
        logger.error(f"Failed to start agent for {channel_type}:{channel_id}: {e}")
        return JSONResponse(
            {"error": "Failed to start AI agent", "reason": str(e)}, status_code=500
        )

    return JSONResponse(
        {
            "message": "AI agent started" if created else "AI agent already running",
            "cid": f"{channel_type}:{channel_id}",
            "user_id": agent.user_id,
        }
    )


async def stop_agent(request: Request) -> JSONResponse:
    channel_id, channel_type = await _read_channel(request)
    if not channel_id:
        return JSONResponse({"error": "Missing required field: channel_id"}, status_code=400)

    stopped = await request.app.state.agent_manager.stop_agent(channel_type, channel_id)
    if not stopped:
        return JSONResponse({"error": "No AI agent running for channel"}, status_code=404)
    return JSONResponse({"message": "AI agent stopped", "cid": f"{channel_type}:{channel_id}"})
