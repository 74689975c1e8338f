# backlog_sync/utils.py

import os
import re
import sys

from tqdm import tqdm

UNSAFE_PATH_CHARACTERS = re.compile(r'[/\\:*?"<>|]')
API_KEY_PATTERN = re.compile(r"(apiKey=)[^&]*")


def progress_bar(iterable=None, desc=None, total=None, **kwargs):
    """
    Create a progress bar for an iterable or manual updates.

    :param iterable: Iterable to wrap with progress bar
    :param desc: Description for the progress bar
    :param total: Total number of items, None when unknown
    :param kwargs: Additional keyword arguments for tqdm
    :return: tqdm instance
    """
    return tqdm(
        iterable=iterable,
        desc=desc,
        total=total,
        ncols=100,
        unit="issue",
        file=sys.stderr,
        **kwargs,
    )


def emit_status(line):
    """Write one status line to stdout without breaking an active progress bar."""
    tqdm.write(line, file=sys.stdout)


def emit_error(message, response=None):
    tqdm.write(f"Error: {message}", file=sys.stderr)
    if response is not None:
        tqdm.write(f"Response: {response}", file=sys.stderr)


def redact_uri(uri):
    """Mask the apiKey query value so URIs can be logged."""
    return API_KEY_PATTERN.sub(r"\1***", uri)


def sanitize_summary(summary):
    return UNSAFE_PATH_CHARACTERS.sub("_", summary)


def build_download_path(settings, issue_key, issue_summary, attachment_name, attachment_id):
    """
    Local path for one attachment.

    Layout: <base_dir>/<space_id>/<issue_key>-<summary>/<attachment_id>-<name>.
    The id prefix keeps two attachments with the same name apart.
    """
    return os.path.join(
        settings.base_dir,
        settings.space_id,
        f"{issue_key}-{sanitize_summary(issue_summary)}",
        f"{attachment_id}-{attachment_name}",
    )
