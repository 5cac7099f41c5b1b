"""Custom exception classes for the upload pipeline."""


class ThunderspearError(Exception):
    """
    Base exception class for all upload pipeline errors.
    """
    pass


class RateLimitedError(ThunderspearError):
    """
    Raised when the remote answers 429 and asks the caller to wait.
    """

    def __init__(self, retry_after: float):
        super().__init__(f"Rate limited, retry after {retry_after}s")
        self.retry_after = retry_after


class RateLimitExhaustedError(ThunderspearError):
    """
    Raised when an operation stays rate limited past the configured attempt cap.
    """
    pass


class UnexpectedResponseError(ThunderspearError):
    """
    Raised when the remote answers with anything other than success or 429.
    """

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"Unexpected status code: {status_code}")
        self.status_code = status_code
        self.body = body


class UploadIOError(ThunderspearError, OSError):
    """
    Raised when a local file cannot be opened, stat-ed or read.
    """
    pass


class UploadCancelledError(ThunderspearError):
    """
    Raised inside a segment task once its upload has been cancelled.
    """
    pass


class CatalogError(ThunderspearError):
    """
    Raised when the catalog document cannot be written.
    """
    pass


class MissingCredentialsError(ThunderspearError):
    """
    Raised when an upload or download is attempted without a token or channel.
    """
    pass
