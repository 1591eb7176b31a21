"""HTTP client for the temporary pre-upload blob staging service.

Clients that cannot stream large files through the API first PUT them to the
staging service and hand the resulting URL to /upload or /shared-upload. The
server fetches the bytes, forwards them to the blob store and deletes the
staged copy.
"""

import asyncio
from urllib.parse import quote, unquote, urlsplit

import aiohttp

from common.logging_config import get_logger
from server import config
from server.exceptions import InvalidInputError, RemoteTransientError

logger = get_logger(__name__)


class StagingClient:
    def __init__(self, base_url: str = None, timeout_seconds: int = None):
        self._base_url = (base_url if base_url is not None else config.STAGING_BASE_URL).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(
            total=timeout_seconds if timeout_seconds is not None else config.STAGING_TIMEOUT_SECONDS
        )

    async def stage_upload(self, data: bytes, name: str) -> str:
        """
        Store bytes on the staging service.

        Returns:
            URL the bytes can be fetched from

        Raises:
            RemoteTransientError: If the staging service is not configured or rejects the upload
        """
        if not self._base_url:
            raise RemoteTransientError("Staging service is not configured")

        target = f"{self._base_url}/{quote(name)}"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.put(target, data=data, timeout=self._timeout) as resp:
                    if resp.status not in (200, 201):
                        raise RemoteTransientError(f"Staging service returned status {resp.status}")
                    body = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteTransientError(f"Failed to stage upload: {e}") from e

        url = body.get("url")
        if not url:
            raise RemoteTransientError("Staging service did not return a URL")

        logger.debug(f"Staged {name} ({len(data)} bytes)")
        return url

    def _require_staged_url(self, url: str) -> None:
        if not self._base_url or not url or not url.startswith(self._base_url + "/"):
            raise InvalidInputError(f"Invalid staged URL: {url}")
        if ".." in unquote(urlsplit(url).path).split("/"):
            raise InvalidInputError(f"Invalid staged URL: {url}")

    async def fetch(self, url: str) -> bytes:
        """
        Download staged bytes.

        Raises:
            InvalidInputError: If the URL does not point into the staging service
            RemoteTransientError: If the download fails
        """
        self._require_staged_url(url)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, timeout=self._timeout) as resp:
                    if resp.status != 200:
                        raise RemoteTransientError(
                            f"Failed to download staged file: {resp.status} {resp.reason}"
                        )
                    data = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteTransientError(f"Failed to download staged file: {e}") from e

        logger.debug(f"Fetched staged file ({len(data)} bytes)")
        return data

    async def delete_staged(self, url: str) -> None:
        """Best-effort removal of a staged copy. Foreign URLs are rejected."""
        self._require_staged_url(url)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.delete(url, timeout=self._timeout) as resp:
                    if resp.status >= 400:
                        logger.warning(f"Staging cleanup returned status {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Failed to delete staged file: {e}")
