"""Exception hierarchy for the audit sink."""


class AuditSinkError(Exception):
    """Base class for audit sink failures."""


class LogDirectoryError(AuditSinkError):
    """The log directory could not be created. Fatal at startup."""


class LogFileError(AuditSinkError):
    """The active log file could not be opened or rotated."""


class LogWriteError(AuditSinkError):
    """An entry could not be written or flushed to disk."""


class AuditClientError(AuditSinkError):
    """The sink rejected a submission or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
