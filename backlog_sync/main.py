# backlog_sync/main.py

from .api import BacklogAPI
from .exceptions import BacklogAPIError, DownloadError, InvalidResponseError
from .fetchers.attachment_fetcher import AttachmentFetcher
from .fetchers.downloader import Downloader
from .fetchers.issue_enumerator import IssueEnumerator
from .logger import logger
from .models import DownloadStatus, SyncSummary
from .utils import build_download_path, emit_error, emit_status, progress_bar


class SyncOrchestrator:
    def __init__(self, backlog_api: BacklogAPI, show_progress=False):
        self.backlog_api = backlog_api
        self.settings = backlog_api.settings
        self.issue_enumerator = IssueEnumerator(self.backlog_api)
        self.attachment_fetcher = AttachmentFetcher(self.backlog_api)
        self.downloader = Downloader(self.backlog_api)
        self.show_progress = show_progress

    async def sync_projects(self, project_ids):
        summary = SyncSummary()
        for project_id in project_ids:
            summary.merge(await self.sync_project(project_id))
        return summary

    async def sync_project(self, project_id):
        """
        Mirror the attachments of every issue in a project to disk.

        Errors are reported per issue or per attachment and never stop the
        traversal.

        :param project_id: Backlog project ID
        :return: SyncSummary for this project
        """
        logger.info(f"Syncing attachments for project {project_id}")
        summary = SyncSummary()

        with progress_bar(
            desc=f"Project {project_id}", disable=not self.show_progress
        ) as pbar:
            async for issue in self.issue_enumerator.list_issues(project_id):
                summary.issues += 1
                await self.sync_issue(issue, summary)
                pbar.update(1)

        logger.info(f"Project {project_id} done: {summary}")
        return summary

    async def sync_issue(self, issue, summary):
        try:
            attachments = await self.attachment_fetcher.list_attachments(issue.key)
        except InvalidResponseError as e:
            logger.error(f"Attachment list of {issue.key} unreadable: {e}")
            emit_error(f"Invalid JSON response for attachments of {issue.key}", e.response)
            summary.failed_issues += 1
            return
        except BacklogAPIError as e:
            logger.error(f"Could not list attachments of {issue.key}: {e}")
            emit_error(f"Failed to fetch attachments of {issue.key}: {e}", e.response)
            summary.failed_issues += 1
            return

        if not attachments:
            emit_status(f"no attachments: {issue.key} - {issue.summary}")
            return

        summary.issues_with_attachments += 1
        emit_status(f"has attachments: {issue.key} - {issue.summary}")

        for attachment in attachments:
            path = build_download_path(
                self.settings, issue.key, issue.summary, attachment.name, attachment.id
            )
            uri = self.backlog_api.attachment_uri(issue.key, attachment.id)
            try:
                status = await self.downloader.download(uri, path)
            except DownloadError as e:
                emit_error(e.message)
                summary.failed_downloads += 1
                continue

            if status is DownloadStatus.SKIPPED:
                summary.skipped += 1
            else:
                summary.downloaded += 1
            emit_status(f"{status.value}: {path}")
