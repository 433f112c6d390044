# student_loader/core/handlers.py
import logging

from student_loader.core.exceptions import LoaderException

logger = logging.getLogger(__name__)


# 1. Errors the loader raises on purpose
def loader_exception_handler(exc: LoaderException) -> int:
    logger.error("[%s] %s", exc.code, exc.message)
    if exc.details:
        logger.error("Details: %s", exc.details)
    return exc.exit_code


# 2. Anything else (driver bug, programming error...)
def general_exception_handler(exc: Exception) -> int:
    logger.critical(f"Unhandled Exception: {exc}", exc_info=exc)
    return 1


def handle_exception(exc: Exception) -> int:
    """Log ``exc`` and return the process exit code for it."""
    if isinstance(exc, LoaderException):
        return loader_exception_handler(exc)
    return general_exception_handler(exc)
