from typing import Any, Dict, Optional


class LoaderException(Exception):
    """
    Base class for every error the loader raises on purpose.

    Carries a stable error code and the process exit code the command line
    entry point should return when the error reaches the top level.
    """
    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        exit_code: int = 1,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.exit_code = exit_code
        self.details = details
        super().__init__(self.message)

# =========================================================
# 1. STARTUP ERRORS
# =========================================================

class ConfigurationError(LoaderException):
    """Missing or invalid settings. Raised before any I/O."""
    def __init__(self, message: str = "Invalid configuration", details: dict = None):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            exit_code=2,
            details=details
        )

class InputFileError(LoaderException):
    """The CSV file does not exist or cannot be read."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(
            message=message,
            code="INPUT_FILE_ERROR",
            exit_code=3,
            details=details
        )

# =========================================================
# 2. PIPELINE ERRORS
# =========================================================

class RecordDecodeError(LoaderException):
    """A row could not be decoded and strict decoding was requested."""
    def __init__(self, failure):
        self.failure = failure
        super().__init__(
            message=f"Line {failure.line}: {failure.reason}",
            code="RECORD_DECODE_ERROR",
            exit_code=4,
            details={"line": failure.line, "row": list(failure.raw)}
        )

class DatabaseConnectionError(LoaderException):
    """
    The database could not be reached, or the connection dropped mid-run.
    Aborts the remaining inserts.
    """
    def __init__(self, message: str):
        super().__init__(
            message=f"Database connection error: {message}",
            code="DATABASE_CONNECTION_ERROR",
            exit_code=5
        )

class TableCreationError(LoaderException):
    """The database refused to create the target table (permissions, bad name...)."""
    def __init__(self, table: str, message: str):
        super().__init__(
            message=f"Cannot create table '{table}': {message}",
            code="TABLE_CREATION_ERROR",
            exit_code=7,
            details={"table": table}
        )

class RecordInsertError(LoaderException):
    """
    One insert failed (constraint violation, bad column...).
    Rows committed before it stay in the table.
    """
    def __init__(self, index: int, record, message: str):
        self.index = index
        self.record = record
        super().__init__(
            message=f"Insert of record #{index} failed: {message}",
            code="RECORD_INSERT_ERROR",
            exit_code=6,
            details={"index": index, "record": record.model_dump()}
        )
