# backlog_sync/exceptions.py


class BacklogSyncError(Exception):
    """Base exception for Backlog attachment sync errors."""

    pass


class ConfigurationError(BacklogSyncError):
    """Exception raised for errors in the configuration."""

    pass


class MissingArgumentError(ConfigurationError):
    """Exception raised when a required credential or identifier is absent."""

    pass


class BacklogAPIError(BacklogSyncError):
    """Exception raised for errors in the Backlog API."""

    def __init__(self, message, status_code=None, response=None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class InvalidResponseError(BacklogAPIError):
    """Exception raised when a response body is not the JSON shape expected."""

    pass


class NetworkError(BacklogAPIError):
    """Exception raised when the transport fails before a response is read."""

    pass


class DownloadError(BacklogSyncError):
    """Exception raised when an attachment transfer does not complete."""

    def __init__(self, message, path=None):
        self.message = message
        self.path = path
        super().__init__(self.message)
