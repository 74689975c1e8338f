# backlog_sync/fetchers/attachment_fetcher.py

from ..api import BacklogAPI
from ..exceptions import InvalidResponseError
from ..logger import logger
from ..models import Attachment


class AttachmentFetcher:
    def __init__(self, backlog_api: BacklogAPI):
        self.backlog_api = backlog_api

    async def list_attachments(self, issue_key):
        """
        Fetch the attachment metadata of one issue.

        :param issue_key: Key of the Backlog issue, e.g. 'PROJ-123'
        :return: List of Attachment objects, empty when the issue has none
        :raises BacklogAPIError: when the list cannot be fetched or parsed
        """
        records = await self.backlog_api.get_issue_attachments(issue_key)
        try:
            attachments = [Attachment.from_api(record) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidResponseError(
                f"Malformed attachment record for {issue_key}: {e}",
                response=str(records),
            )
        logger.debug(f"{issue_key} has {len(attachments)} attachments")
        return attachments
