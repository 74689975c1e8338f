# backlog_sync/fetchers/issue_enumerator.py

from ..api import BacklogAPI
from ..exceptions import BacklogAPIError, InvalidResponseError
from ..logger import logger
from ..models import Issue
from ..utils import emit_error


class IssueEnumerator:
    def __init__(self, backlog_api: BacklogAPI):
        self.backlog_api = backlog_api
        self.page_size = backlog_api.settings.page_size

    async def list_issues(self, project_id):
        """
        Yield every issue of a project, one listing page at a time.

        Pages run from 0 to total // page_size inclusive, so a partial last
        page is fetched and an empty project still issues one page request.
        A page that cannot be read is reported and skipped.

        :param project_id: Backlog project ID
        """
        try:
            total = await self.backlog_api.get_issue_count(project_id)
        except InvalidResponseError as e:
            logger.error(f"Issue count for project {project_id} unreadable: {e}")
            emit_error("Invalid JSON response for issue count", e.response)
            return
        except BacklogAPIError as e:
            logger.error(f"Issue count for project {project_id} failed: {e}")
            emit_error(f"Failed to fetch issue count: {e}", e.response)
            return

        page_count = total // self.page_size
        logger.info(
            f"Project {project_id} has {total} issues, "
            f"fetching {page_count + 1} pages of {self.page_size}"
        )

        for page in range(page_count + 1):
            offset = page * self.page_size
            try:
                records = await self.backlog_api.get_issues(
                    project_id, offset, self.page_size
                )
            except InvalidResponseError as e:
                logger.error(f"Issue page at offset {offset} unreadable: {e}")
                emit_error("Invalid JSON response for issues", e.response)
                continue
            except BacklogAPIError as e:
                logger.error(f"Issue page at offset {offset} failed: {e}")
                emit_error(f"Failed to fetch issues at offset {offset}: {e}", e.response)
                continue

            for record in records:
                try:
                    issue = Issue.from_api(record)
                except (KeyError, TypeError, AttributeError):
                    logger.warning(f"Skipping issue record without issueKey: {record}")
                    continue
                yield issue
