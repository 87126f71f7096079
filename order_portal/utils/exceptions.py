class ServiceError(Exception):
    status = 400

    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NoFileProvided(ServiceError):
    status = 400

    def __init__(self, message="No file uploaded"):
        super().__init__(code="NO_FILE_PROVIDED", message=message)


class UploadFailed(ServiceError):
    """Raised when the object-storage provider rejects or cannot receive a file."""

    status = 502

    def __init__(self, reason, code="UPLOAD_FAILED"):
        self.reason = reason
        super().__init__(code=code, message=f"Upload failed: {reason}", details={"reason": reason})


class UploadTimeout(UploadFailed):
    status = 504

    def __init__(self, reason="storage provider did not respond in time"):
        super().__init__(reason, code="UPLOAD_TIMEOUT")


class StoreWriteFailed(ServiceError):
    """The database rejected a write. `reason` is for logs only and never reaches a response."""

    status = 500

    def __init__(self, message="Upload failed", reason=None):
        self.reason = reason
        super().__init__(code="STORE_WRITE_FAILED", message=message)


class StoreReadFailed(ServiceError):
    status = 500

    def __init__(self, message="Dashboard failed to load", reason=None):
        self.reason = reason
        super().__init__(code="STORE_READ_FAILED", message=message)


class OrderNotFound(ServiceError):
    status = 404

    def __init__(self, message="Order not found"):
        super().__init__(code="NOT_FOUND", message=message)


class TokenExpired(ServiceError):
    status = 410

    def __init__(self, expired_at):
        super().__init__(
            code="TOKEN_EXPIRED",
            message="This order link has expired",
            details={"token_expiry": expired_at}
        )


class InvalidFeedback(ServiceError):
    status = 422

    def __init__(self, message="Feedback message is required"):
        super().__init__(code="VALIDATION_ERROR", message=message)


class InvalidStatusTransition(ServiceError):
    status = 409

    def __init__(self, current, event):
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            message=f"Cannot apply '{event}' to an order in status '{current}'",
            details={"status": current, "event": event}
        )
