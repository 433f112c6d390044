"""Command line entry point: load the students CSV into the database.

Usage:
    python -m student_loader.main [--csv-path data/students.csv] [--delimiter ,]
                                  [--database-url sqlite:///students.db] [--strict]
"""

import argparse
import logging
import sys
from typing import List, Optional

from student_loader.core.config import Settings, get_settings
from student_loader.core.handlers import handle_exception
from student_loader.core.logging import setup_logging
from student_loader.services.student.decoder import read_students
from student_loader.services.student.store import StudentStore

logger = logging.getLogger(__name__)


def run(settings: Settings) -> int:
    """Decode the configured CSV file, insert its records and return the count."""
    logger.info("Loader configuration: %s", settings.describe())

    records = read_students(
        settings.CSV_PATH,
        delimiter=settings.CSV_DELIMITER,
        strict=settings.CSV_STRICT,
        encoding=settings.CSV_ENCODING,
    )

    with StudentStore(settings) as store:
        if settings.CREATE_TABLE:
            store.create_table()
        inserted = store.insert_all(records)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Table '%s' now holds %d rows", store.table.name, store.count())

    return inserted


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load student records from a CSV file into the database")
    parser.add_argument("--csv-path", help="Path to the CSV file (default: CSV_PATH)")
    parser.add_argument("--delimiter", help="Field delimiter (default: CSV_DELIMITER or ',')")
    parser.add_argument("--database-url", help="SQLAlchemy database URL (default: DATABASE_URL)")
    parser.add_argument("--table", help="Target table (default: STUDENT_TABLE or 'students')")
    parser.add_argument("--strict", action="store_true", default=None, help="Abort on the first malformed row")
    parser.add_argument(
        "--no-create-table", dest="create_table", action="store_false", default=None,
        help="Do not create the target table when it is missing",
    )
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging("INFO")

    overrides = {
        "CSV_PATH": args.csv_path,
        "CSV_DELIMITER": args.delimiter,
        "DATABASE_URL": args.database_url,
        "STUDENT_TABLE": args.table,
        "CSV_STRICT": args.strict,
        "CREATE_TABLE": args.create_table,
        "LOG_LEVEL": args.log_level,
    }
    try:
        settings = get_settings(**{key: value for key, value in overrides.items() if value is not None})
        logging.getLogger().setLevel(settings.LOG_LEVEL)
        inserted = run(settings)
    except Exception as exc:
        return handle_exception(exc)

    print(f"Records inserted: {inserted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
