"""Parallel reading of the selected files and rendering of their contents."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union

from .errors import ContentReadError
from .models import (
    DASHED_SEPARATOR,
    DEFAULT_ENCODING,
    FULL_SEPARATOR,
    ContentRecord,
    ScanEntry,
    SkipRecord,
    sort_key,
)
from .walker import default_workers

log = logging.getLogger(__name__)


class AggregateResult(NamedTuple):
    records: List[ContentRecord]
    skipped: List[SkipRecord]


def read_content(entry: ScanEntry) -> ContentRecord:
    """
    Reads one file completely as UTF-8.

    Raises:
        ContentReadError: The file is unreadable or not valid UTF-8, even
            though its sniffed prefix looked like text.
    """
    try:
        data = entry.absolute_path.read_bytes()
    except OSError as e:
        raise ContentReadError(entry.relative_path, e.strerror or str(e)) from e
    try:
        content = data.decode(DEFAULT_ENCODING)
    except UnicodeDecodeError as e:
        raise ContentReadError(
            entry.relative_path, f"invalid UTF-8 at byte {e.start}"
        ) from None
    return ContentRecord(entry.relative_path, content)


def _read_or_error(entry: ScanEntry) -> Union[ContentRecord, ContentReadError]:
    try:
        return read_content(entry)
    except ContentReadError as e:
        return e


def aggregate(
    entries: Iterable[ScanEntry], *, max_workers: Optional[int] = None
) -> AggregateResult:
    """
    Reads the given files concurrently.

    A failing file is reported in ``skipped`` and does not affect the other
    reads. Records come back in deterministic path order, whatever order
    the workers finish in.

    Args:
        entries (Iterable[ScanEntry]): The selected text files.
        max_workers (int, optional): Pool size. Defaults to CPU count + 4.

    Returns:
        AggregateResult: The records read and the files skipped.
    """
    ordered = sorted(entries, key=lambda e: sort_key(e.relative_path))
    records, skipped = [], []
    with ThreadPoolExecutor(
        max_workers=max_workers or default_workers(), thread_name_prefix="reader"
    ) as executor:
        # map() yields results in submission order.
        for entry, result in zip(ordered, executor.map(_read_or_error, ordered)):
            if isinstance(result, ContentReadError):
                log.warning("Failed to read %s: %s", entry.relative_path, result.reason)
                skipped.append(SkipRecord(entry.relative_path, result.reason, "read"))
            else:
                records.append(result)
    return AggregateResult(records, skipped)


def render_record(record: ContentRecord) -> str:
    """One file's block: blank line, path header, dashed line, content, closing line."""
    content = record.content
    if not content.endswith("\n"):
        content += "\n"
    return f"\n{record.relative_path}:\n{DASHED_SEPARATOR}\n{content}{FULL_SEPARATOR}\n"


def render_contents(records: Sequence[ContentRecord]) -> str:
    return "".join(render_record(record) for record in records)
