"""
Stream Chat webhook receiver.

Events for channels without a running agent are acknowledged and dropped.
Events for a live agent must carry a valid X-Signature.
"""

import json

from starlette.requests import Request
from starlette.responses import JSONResponse

from scribe.logger import get_logger

logger = get_logger(__name__)


async def stream_webhook(request: Request) -> JSONResponse:
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse({"error": "Invalid JSON payload"}, status_code=400)

    manager = request.app.state.agent_manager
    agent = manager.get_agent(payload.get("cid", "")) if isinstance(payload, dict) else None
    if agent is None:
        return JSONResponse({"status": "ignored"})

    verify = getattr(agent.transport, "verify_webhook", None)
    signature = request.headers.get("x-signature", "")
    if verify is not None and not verify(body, signature):
        logger.warning(f"Rejected webhook with invalid signature for {payload.get('cid')}")
        return JSONResponse({"error": "Invalid signature"}, status_code=401)

    task = manager.dispatch(payload)
    return JSONResponse({"status": "dispatched" if task else "ignored"})
