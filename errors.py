"""Exception taxonomy for share-link and storage operations."""


GENERIC_SHARE_MESSAGE = "File not found or has expired"


class ShareError(Exception):
    """
    Base class for every error the API layer turns into a response.
    """
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFound(ShareError):
    """
    Raised when a record does not exist or its bytes are missing on disk.
    """
    status_code = 404


class Expired(ShareError):
    """
    Raised when a share is read after its expiry time.
    """
    status_code = 410


class Forbidden(ShareError):
    """
    Raised when a non-owner attempts an owner-only action.
    """
    status_code = 403


class ValidationError(ShareError):
    """
    Raised on bad input: missing file, bad email, size limits, bad paging.
    """
    status_code = 400


class StorageError(ShareError):
    """
    Raised when the record store or blob store fails an I/O operation.
    """
    status_code = 500


class MailDeliveryError(ShareError):
    """
    Raised when the mail relay rejects or cannot deliver a message.
    """
    status_code = 502
