"""
Thin async client for the Immich REST API.

Only the endpoints the bridge needs are covered:
  GET  /api/server/ping  — reachability probe
  GET  /api/users/me     — identifies the owner of the API key
  POST /api/assets       — multipart upload of a single asset

Every call opens its own aiohttp session bounded by a fixed timeout, so the
client keeps no state beyond its endpoint, API key and device ID and can be
shared freely between concurrent interactions.
"""

import asyncio
import logging
import os
import socket
from datetime import datetime, timezone
from typing import TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError, field_validator

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

ResponseT = TypeVar("ResponseT", bound=BaseModel)


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class PingResponse(BaseModel):
    res: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str


class AssetUploadResponse(BaseModel):
    id: str
    # "created", "duplicate", "replaced", ...
    status: str
    message: str = ""


class ServerErrorResponse(BaseModel):
    message: list[str] = []

    @field_validator("message", mode="before")
    @classmethod
    def _as_list(cls, value):
        # Immich sends a bare string for most errors and a list for validation errors
        if isinstance(value, str):
            return [value]
        return value


# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------

class ImmichError(Exception):
    pass


class ImmichServerError(ImmichError):
    """Non-2xx response carrying Immich's error envelope."""

    def __init__(self, status: int, reason: str | None, messages: list[str]):
        self.status = status
        self.reason = reason
        self.messages = messages
        super().__init__(f"{status} {reason or ''}: {'; '.join(messages)}")


class ImmichDecodeError(ImmichError):
    pass


class ImmichTimeoutError(ImmichError):
    pass


class ImmichConnectionError(ImmichError):
    pass


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------

class ImmichClient:
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        device_id: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.endpoint = endpoint.rstrip("/") + "/api"
        self.api_key = api_key
        self.device_id = device_id or socket.gethostname()
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "X-API-Key": self.api_key}

    async def ping_server(self) -> PingResponse | None:
        return await self._request("GET", "/server/ping", PingResponse)

    async def get_current_user(self) -> UserResponse | None:
        return await self._request("GET", "/users/me", UserResponse)

    async def upload_asset(
        self, path: str, created_at: datetime, modified_at: datetime
    ) -> AssetUploadResponse | None:
        """
        Upload a local file as a new asset.

        The deviceAssetId is derived from the file name and size, so uploading
        the same file twice lets Immich answer "duplicate" instead of storing
        a second copy.
        """
        name = os.path.basename(path)
        size = os.path.getsize(path)

        with open(path, "rb") as fh:
            form = aiohttp.FormData()
            form.add_field("assetData", fh, filename=name, content_type="application/octet-stream")
            form.add_field("deviceAssetId", device_asset_id(name, size))
            form.add_field("deviceId", self.device_id)
            form.add_field("fileCreatedAt", format_timestamp(created_at))
            form.add_field("fileModifiedAt", format_timestamp(modified_at))

            log.debug("uploading %s (%d bytes) to %s", name, size, self.endpoint)
            return await self._request("POST", "/assets", AssetUploadResponse, data=form)

    async def _request(self, method: str, path: str, model: type[ResponseT], **kwargs) -> ResponseT | None:
        url = self.endpoint + path
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, url, headers=self.headers, **kwargs) as resp:
                    return await _parse_response(resp, model)
        except asyncio.TimeoutError as e:
            raise ImmichTimeoutError(
                f"{method} {url} timed out after {self.timeout.total}s"
            ) from e
        except aiohttp.ClientError as e:
            raise ImmichConnectionError(f"{method} {url} failed: {e}") from e


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

async def _parse_response(resp: aiohttp.ClientResponse, model: type[ResponseT]) -> ResponseT | None:
    """Decode an Immich response into ``model``, or raise the matching ImmichError."""
    body = await resp.read()

    if resp.status >= 400:
        try:
            error = ServerErrorResponse.model_validate_json(body)
        except ValidationError as e:
            raise ImmichDecodeError(f"can't decode server error ({resp.status} {resp.reason})") from e
        raise ImmichServerError(resp.status, resp.reason, error.message)

    if resp.status == 204:
        return None

    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        raise ImmichDecodeError(f"can't decode {model.__name__}") from e


def device_asset_id(filename: str, size: int) -> str:
    return f"{filename}-{size}"


def format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC, second precision. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
