"""
Moves one Discord attachment into Immich.

The attachment is streamed from the Discord CDN into a staging file, since
the multipart upload needs a file-backed source, then uploaded and deleted.
Each transfer gets its own staging directory under the cache path, so two
interactions carrying attachments with the same name never share a file.
"""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import aiohttp

from discord_immich.services.immich import ImmichClient, ImmichError

log = logging.getLogger(__name__)

INTERNAL_ERROR_STATUS = "internal error"
CHUNK_SIZE = 64 * 1024


class TransferError(Exception):
    """A transfer stage failed; the underlying error is chained as __cause__."""


@dataclass(frozen=True)
class TransferResult:
    filename: str
    status: str
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def line(self) -> str:
        return f"{self.filename}: {self.status}\n"


class Transferrer(Protocol):
    async def transfer(self, filename: str, url: str, timestamp: datetime) -> TransferResult:
        ...


class ImmichTransferrer:
    def __init__(self, client: ImmichClient, cache_path: str):
        self.client = client
        self.cache_path = cache_path

    async def transfer(self, filename: str, url: str, timestamp: datetime) -> TransferResult:
        """
        Download ``url`` and upload it to Immich as ``filename``.

        Never raises for I/O, network or Immich failures: those come back as
        an "internal error" result carrying the error for logging. The
        staging file is gone by the time this returns, whatever the outcome.
        """
        try:
            with tempfile.TemporaryDirectory(dir=self.cache_path, prefix="staging-") as staging_dir:
                path = os.path.join(staging_dir, os.path.basename(filename))
                await self._download(url, path)
                try:
                    asset = await self.client.upload_asset(path, timestamp, timestamp)
                except ImmichError as e:
                    raise TransferError("failed to upload asset") from e
        except TransferError as e:
            return TransferResult(filename, INTERNAL_ERROR_STATUS, error=e)
        except OSError as e:
            # Staging directory could not be created or removed
            return TransferResult(filename, INTERNAL_ERROR_STATUS, error=e)

        if asset is None:
            return TransferResult(
                filename, INTERNAL_ERROR_STATUS, error=TransferError("empty upload response")
            )
        return TransferResult(filename, asset.status)

    async def _download(self, url: str, path: str):
        try:
            out = open(path, "wb")
        except OSError as e:
            raise TransferError("failed to create file") from e

        with out:
            try:
                async with aiohttp.ClientSession() as session:
                    async with session.get(url) as resp:
                        resp.raise_for_status()
                        # Disk writes run off the event loop; videos can be large
                        async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                            await asyncio.to_thread(out.write, chunk)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransferError("failed http get") from e
            except OSError as e:
                raise TransferError("failed to write attachment") from e

        log.debug("staged %s (%d bytes)", path, os.path.getsize(path))
