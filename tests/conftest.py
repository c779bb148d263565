"""Pytest configuration and fixtures for the bridge tests."""

import asyncio
import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

API_KEY = "test-api-key"


class FakeImmich:
    """
    In-process stand-in for an Immich server and the Discord CDN.

    Uploads are recorded, and a repeated deviceAssetId is answered with
    "duplicate" the way Immich does. Set ``next_response`` to force the next
    API reply, or ``delay`` to stall every API call.
    """

    def __init__(self):
        self.url = ""
        self.uploads: list[dict] = []
        self.cdn_files: dict[str, bytes] = {}
        self.next_response: tuple[int, str] | None = None
        self.delay = 0.0

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/server/ping", self._ping)
        app.router.add_get("/api/users/me", self._me)
        app.router.add_post("/api/assets", self._upload)
        app.router.add_get("/cdn/{name}", self._cdn)
        return app

    def cdn_url(self, name: str) -> str:
        return f"{self.url}/cdn/{name}"

    async def _guard(self, request: web.Request) -> web.Response | None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if request.headers.get("X-API-Key") != API_KEY:
            return web.json_response({"message": "Invalid API key", "statusCode": 401}, status=401)
        if self.next_response is not None:
            status, body = self.next_response
            self.next_response = None
            return web.Response(status=status, text=body, content_type="application/json")
        return None

    async def _ping(self, request: web.Request) -> web.Response:
        return await self._guard(request) or web.json_response({"res": "pong"})

    async def _me(self, request: web.Request) -> web.Response:
        return await self._guard(request) or web.json_response(
            {"id": "user-1", "email": "owner@example.com", "name": "Owner", "isAdmin": True}
        )

    async def _upload(self, request: web.Request) -> web.Response:
        form = await request.post()
        asset = form["assetData"]
        upload = {
            "filename": asset.filename,
            "content": asset.file.read(),
            "accept": request.headers.get("Accept"),
            **{key: form[key] for key in ("deviceAssetId", "deviceId", "fileCreatedAt", "fileModifiedAt")},
        }
        self.uploads.append(upload)

        forced = await self._guard(request)
        if forced is not None:
            return forced

        seen = [u for u in self.uploads[:-1] if u["deviceAssetId"] == upload["deviceAssetId"]]
        status = "duplicate" if seen else "created"
        return web.json_response(
            {"id": f"asset-{len(self.uploads)}", "status": status}, status=200 if seen else 201
        )

    async def _cdn(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if name not in self.cdn_files:
            raise web.HTTPNotFound()
        return web.Response(body=self.cdn_files[name], content_type="application/octet-stream")


@pytest_asyncio.fixture
async def fake_immich():
    fake = FakeImmich()
    server = TestServer(fake.app())
    await server.start_server()
    fake.url = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


@pytest.fixture
def server_error_body():
    return json.dumps({"message": ["bad request"], "error": "Bad Request", "statusCode": 400})


@pytest.fixture
def api_key():
    return API_KEY
