import csv
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from pydantic import ValidationError

from student_loader.core.exceptions import InputFileError, RecordDecodeError
from student_loader.schemas.student import DecodeFailure, StudentRecord

logger = logging.getLogger(__name__)

# Positional: the header row is skipped, never matched by name
FIELDS = ("name", "age", "grade", "gender")

DecodeResult = Union[StudentRecord, DecodeFailure]


def decode_students(source: Iterable[str], delimiter: str = ",") -> Iterator[DecodeResult]:
    """
    Decode a header-bearing CSV stream into records, in file order.

    Every data row yields either a StudentRecord or a DecodeFailure; blank
    lines yield nothing. An empty source (not even a header) yields nothing.
    """
    reader = csv.reader(source, delimiter=delimiter)
    if next(reader, None) is None:
        return

    for row in reader:
        if not row:
            continue
        raw = tuple(row)
        if len(row) != len(FIELDS):
            yield DecodeFailure(
                line=reader.line_num,
                raw=raw,
                reason=f"expected {len(FIELDS)} fields, got {len(row)}",
            )
            continue
        try:
            yield StudentRecord(**dict(zip(FIELDS, (cell.strip() for cell in row))))
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()
            )
            yield DecodeFailure(line=reader.line_num, raw=raw, reason=reason)


def read_students(
    path: Union[str, Path],
    delimiter: str = ",",
    strict: bool = False,
    encoding: str = "utf-8-sig",
) -> List[StudentRecord]:
    """
    Read the CSV file at ``path`` and return the records that decoded.

    Rows that fail to decode are dropped (and logged at DEBUG), unless
    ``strict`` is set, in which case the first one raises RecordDecodeError.
    """
    path = Path(path)
    if not path.is_file():
        raise InputFileError(f"Input file not found: {path}", details={"path": str(path)})

    students: List[StudentRecord] = []
    skipped = 0
    try:
        with path.open(newline="", encoding=encoding) as handle:
            for result in decode_students(handle, delimiter=delimiter):
                if isinstance(result, StudentRecord):
                    students.append(result)
                    continue
                if strict:
                    raise RecordDecodeError(result)
                skipped += 1
                logger.debug("Skipping line %d %r: %s", result.line, result.raw, result.reason)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputFileError(f"Cannot read {path}: {e}", details={"path": str(path)}) from e

    logger.info("Decoded %d records from %s (%d skipped)", len(students), path, skipped)
    return students
