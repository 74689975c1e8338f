# backlog_sync/models.py

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


TIMESTAMP_FORMATS = ("%Y-%m-%dT%H:%M:%SZ", "%Y-%m-%dT%H:%M:%S.%fZ")


def parse_datetime(date_string):
    """Parse a Backlog timestamp, None when absent or unrecognised."""
    if not isinstance(date_string, str):
        return None
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(date_string, fmt)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class Issue:
    key: str
    summary: str

    @classmethod
    def from_api(cls, data):
        summary = data.get("summary") or ""
        return cls(
            key=data["issueKey"],
            summary=summary.replace("\n", "").replace("\r", ""),
        )


@dataclass(frozen=True)
class BacklogUser:
    id: int
    user_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_api(cls, data):
        return cls(id=data.get("id"), user_id=data.get("userId"), name=data.get("name"))


@dataclass(frozen=True)
class Attachment:
    id: int
    name: str
    size: Optional[int] = None
    created_user: Optional[BacklogUser] = None
    created: Optional[datetime] = None

    @classmethod
    def from_api(cls, data):
        created_user = data.get("createdUser")
        return cls(
            id=data["id"],
            name=data["name"],
            size=data.get("size"),
            created_user=BacklogUser.from_api(created_user) if created_user else None,
            created=parse_datetime(data.get("created")),
        )


class DownloadStatus(Enum):
    SKIPPED = "SKIP"
    DOWNLOADED = "DL"


@dataclass
class SyncSummary:
    issues: int = 0
    issues_with_attachments: int = 0
    downloaded: int = 0
    skipped: int = 0
    failed_downloads: int = 0
    failed_issues: int = 0

    def merge(self, other):
        self.issues += other.issues
        self.issues_with_attachments += other.issues_with_attachments
        self.downloaded += other.downloaded
        self.skipped += other.skipped
        self.failed_downloads += other.failed_downloads
        self.failed_issues += other.failed_issues
        return self

    def __str__(self):
        return (
            f"{self.issues} issues ({self.issues_with_attachments} with attachments), "
            f"{self.downloaded} downloaded, {self.skipped} skipped, "
            f"{self.failed_downloads} failed downloads, "
            f"{self.failed_issues} issues with errors"
        )
