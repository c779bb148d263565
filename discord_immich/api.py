"""
FastAPI application.

Provides HTTP endpoints for health checks and a quick view of whether the
Immich server is reachable with the configured API key. The bot process and
this web server share the same asyncio event loop (wired together in main.py).
"""

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from discord_immich.services.immich import ImmichClient, ImmichError

log = logging.getLogger(__name__)


def create_app(immich_client: ImmichClient):
    app = FastAPI(title="Discord Immich Bridge", docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/status")
    async def status():
        try:
            ping = await immich_client.ping_server()
            user = await immich_client.get_current_user()
        except ImmichError as e:
            log.warning("immich status check failed: %s", e)
            return JSONResponse({"status": "error", "error": str(e)}, status_code=503)

        return {
            "status": "ok",
            "immich": {
                "endpoint": immich_client.endpoint,
                "device_id": immich_client.device_id,
                "ping": ping.res if ping else None,
                "user": user.email if user else None,
            },
        }

    return app
