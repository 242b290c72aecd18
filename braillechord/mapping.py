"""
Braille mapping table loading.

The table is a CSV file of (character, pattern) rows with a header line.
It is read once at startup; a missing or unreadable file leaves the
keyboard with an empty table rather than failing.
"""

import csv
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, TextIO, Union

from .patterns import PATTERN_LENGTH

log = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / 'data'
DEFAULT_TABLE = 'braille_cursor.csv'


def default_mapping_path() -> Path:
    """Path of the bundled Unicode Braille table."""
    return DATA_DIR / DEFAULT_TABLE


class MappingTable(Mapping[str, str]):
    """Read-only pattern -> character table."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, pattern: str) -> str:
        return self._entries[pattern]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f"MappingTable({len(self)} patterns)"


def split_row(line: str) -> List[str]:
    """
    Split one line into fields.

    Each line is parsed on its own so an unbalanced quote cannot run into
    the following rows. A line that is not valid CSV, such as a bare '"'
    character, is split on commas as-is.
    """
    line = line.rstrip('\r\n')
    try:
        return next(csv.reader([line], strict=True), [])
    except csv.Error as e:
        log.debug(f"Not a CSV row ({e}), splitting on commas: {line!r}")
        return line.split(',')


def parse_rows(rows: Iterable[List[str]]) -> MappingTable:
    """Build a table from split rows, skipping the header and malformed rows."""
    entries: Dict[str, str] = {}
    for line_no, row in enumerate(rows, start=1):
        if line_no == 1:
            continue  # Header
        if len(row) < 2:
            if row:
                log.debug(f"Row {line_no}: expected 2 fields, got {len(row)}")
            continue

        char, pattern = row[0], row[1]
        if not char or len(pattern) != PATTERN_LENGTH:
            log.debug(f"Row {line_no}: skipping malformed row {row!r}")
            continue

        if pattern in entries:
            log.debug(f"Row {line_no}: {pattern} remapped {entries[pattern]!r} -> {char!r}")
        entries[pattern] = char

    return MappingTable(entries)


def parse_lines(lines: Iterable[str]) -> MappingTable:
    """Build a table from the lines of a character,pattern file."""
    return parse_rows(split_row(line) for line in lines)


def load_mapping(source: Union[str, Path, TextIO]) -> MappingTable:
    """
    Load a mapping table from a path or an open text stream.

    Never raises for an unavailable resource: the error is logged and an
    empty table is returned.
    """
    if hasattr(source, 'read'):
        name = getattr(source, 'name', '<stream>')
    else:
        name = source = Path(source)

    try:
        if isinstance(source, Path):
            with open(source, 'r', encoding='utf-8') as f:
                table = parse_lines(f)
        else:
            table = parse_lines(source)
    except (OSError, ValueError) as e:
        # ValueError covers UnicodeDecodeError and reads from a closed stream
        log.error(f"Could not load Braille table {name}: {e}")
        return MappingTable()

    log.info(f"Loaded {len(table)} Braille patterns from {name}")
    return table
