# backlog_sync/fetchers/downloader.py

import os

from ..api import BacklogAPI
from ..exceptions import BacklogAPIError, DownloadError
from ..logger import logger
from ..models import DownloadStatus

PARTIAL_SUFFIX = ".part"


class Downloader:
    def __init__(self, backlog_api: BacklogAPI):
        self.backlog_api = backlog_api

    async def download(self, remote_uri, local_path):
        """
        Download an attachment unless it is already on disk.

        The body is written to a sibling ``.part`` file and renamed into
        place only once the transfer finished, so a file at ``local_path``
        is always complete.

        :param remote_uri: Authenticated attachment URI
        :param local_path: Target file path
        :return: DownloadStatus.SKIPPED or DownloadStatus.DOWNLOADED
        :raises DownloadError: when the transfer fails
        """
        if os.path.isfile(local_path):
            logger.debug(f"Already present: {local_path}")
            return DownloadStatus.SKIPPED

        partial_path = local_path + PARTIAL_SUFFIX

        try:
            os.makedirs(os.path.dirname(local_path), exist_ok=True)
            size = await self.backlog_api.download_file(remote_uri, partial_path)
        except (BacklogAPIError, OSError) as e:
            self._discard(partial_path)
            logger.error(f"Download of {local_path} failed: {e}")
            raise DownloadError(f"Failed to download {local_path}: {e}", path=local_path)
        except BaseException:
            self._discard(partial_path)
            raise

        os.replace(partial_path, local_path)
        logger.info(f"Downloaded {local_path} ({size} bytes)")
        return DownloadStatus.DOWNLOADED

    @staticmethod
    def _discard(path):
        if os.path.exists(path):
            os.remove(path)
