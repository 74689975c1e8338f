# backlog_sync/api.py

import asyncio
import json

import aiohttp

from .exceptions import BacklogAPIError, InvalidResponseError, NetworkError
from .logger import logger
from .utils import redact_uri


class BacklogAPI:
    def __init__(self, settings, session=None):
        self.settings = settings
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()

    def build_uri(self, endpoint, params=None):
        """
        Build an authenticated Backlog API URI.

        :param endpoint: API path, e.g. '/api/v2/issues'
        :param params: Optional pre-encoded query string, e.g. 'projectId[]=123'
        :return: https://<space>.<host><endpoint>?apiKey=<key>[&<params>]
        """
        uri = (
            f"https://{self.settings.space_id}.{self.settings.host}{endpoint}"
            f"?apiKey={self.settings.api_key}"
        )
        if params:
            uri = f"{uri}&{params}"
        return uri

    def attachment_uri(self, issue_key, attachment_id):
        return self.build_uri(f"/api/v2/issues/{issue_key}/attachments/{attachment_id}")

    async def _get_json(self, uri):
        logger.debug(f"GET {redact_uri(uri)}")
        try:
            async with self.session.get(uri) as response:
                status = response.status
                raw = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Request failed: {e}, url='{redact_uri(uri)}'")

        body = raw.decode("utf-8", errors="replace")

        if status >= 400:
            raise BacklogAPIError(
                f"HTTP Error: {status}, url='{redact_uri(uri)}'",
                status_code=status,
                response=body,
            )

        try:
            return json.loads(raw)
        except ValueError:
            raise InvalidResponseError(
                f"Invalid JSON response from '{redact_uri(uri)}'",
                status_code=status,
                response=body,
            )

    async def get_issue_count(self, project_id):
        uri = self.build_uri("/api/v2/issues/count", f"projectId[]={project_id}")
        data = await self._get_json(uri)
        count = data.get("count") if isinstance(data, dict) else None
        if not isinstance(count, int) or isinstance(count, bool):
            raise InvalidResponseError(
                "Response has no integer 'count'", response=json.dumps(data)
            )
        return count

    async def get_issues(self, project_id, offset, count):
        uri = self.build_uri(
            "/api/v2/issues",
            f"projectId[]={project_id}&count={count}&offset={offset}",
        )
        data = await self._get_json(uri)
        if not isinstance(data, list):
            raise InvalidResponseError(
                "Issue list response is not a JSON array", response=json.dumps(data)
            )
        return data

    async def get_issue_attachments(self, issue_key):
        uri = self.build_uri(f"/api/v2/issues/{issue_key}/attachments")
        data = await self._get_json(uri)
        if not isinstance(data, list):
            raise InvalidResponseError(
                "Attachment list response is not a JSON array",
                response=json.dumps(data),
            )
        return data

    async def download_file(self, uri, destination):
        """
        Stream a binary response body into ``destination``.

        :raises BacklogAPIError: on an HTTP error status
        :raises NetworkError: when the transfer breaks off
        """
        logger.debug(f"GET {redact_uri(uri)} -> {destination}")
        try:
            async with self.session.get(uri) as response:
                if response.status >= 400:
                    body = await response.text(errors="replace")
                    raise BacklogAPIError(
                        f"HTTP Error: {response.status}, url='{redact_uri(uri)}'",
                        status_code=response.status,
                        response=body,
                    )
                written = 0
                with open(destination, "wb") as f:
                    async for chunk in response.content.iter_chunked(
                        self.settings.chunk_size
                    ):
                        f.write(chunk)
                        written += len(chunk)
                return written
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"File download failed: {e}, url='{redact_uri(uri)}'")
