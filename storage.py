"""Flat-file persistence for the catalog.

One record per line, fields joined by a single delimiter character::

    id|title|author|quantity

The file is UTF-8 and lines end at ``\n``. There is no quoting or escaping. A
title or author containing the delimiter or a newline is written as-is and will
fail to load back; ``save_library`` logs a warning when that happens.
"""
import logging
import os
from typing import Optional, Tuple

from book import Book
from config import settings
from library import Library, LibraryError

logger = logging.getLogger(__name__)

FIELD_COUNT = 4


class ParseError(LibraryError, ValueError):
    """Raised when a persisted line cannot be turned back into a book."""

    def __init__(self, message: str, path: Optional[str] = None, line_number: Optional[int] = None,
                 line: Optional[str] = None) -> None:
        location = f"{path}:{line_number}: " if path and line_number else ""
        super().__init__(f"{location}{message}")
        self.path = path
        self.line_number = line_number
        self.line = line


def _resolve_delimiter(delimiter: Optional[str]) -> str:
    delimiter = settings.field_delimiter if delimiter is None else delimiter
    if len(delimiter) != 1:
        raise ValueError(f"Field delimiter must be a single character, got {delimiter!r}")
    return delimiter


def format_record(book: Book, delimiter: str = "|") -> str:
    """Serialize a book to one line, without the trailing newline."""
    return delimiter.join([str(book.book_id), book.title, book.author, str(book.quantity)])


def parse_record(line: str, delimiter: str = "|") -> Book:
    """Parse one line (without its terminator) back into a book."""
    fields = line.split(delimiter)
    if len(fields) != FIELD_COUNT:
        raise ParseError(f"expected {FIELD_COUNT} fields, found {len(fields)}", line=line)
    raw_id, title, author, raw_quantity = fields
    try:
        book_id = int(raw_id)
    except ValueError:
        raise ParseError(f"book id is not an integer: {raw_id!r}", line=line) from None
    try:
        quantity = int(raw_quantity)
    except ValueError:
        raise ParseError(f"quantity is not an integer: {raw_quantity!r}", line=line) from None
    return Book(book_id, title, author, quantity)


def load_library(path: str, *, delimiter: Optional[str] = None,
                 skip_malformed: Optional[bool] = None) -> Library:
    """Build a Library from the data file at ``path``.

    A missing file yields an empty library. Lines end at ``\\n``; a trailing
    ``\\r`` is dropped so CRLF files load too. Blank lines are ignored. A
    malformed line (including one that is not valid UTF-8) raises ParseError
    unless ``skip_malformed`` is set, in which case it is logged and skipped.
    When an id appears twice the later line wins.
    """
    delimiter = _resolve_delimiter(delimiter)
    if skip_malformed is None:
        skip_malformed = settings.skip_malformed_lines

    library = Library()
    if not os.path.exists(path):
        logger.info(f"Data file {path} not found, starting with an empty catalog")
        return library

    skipped = 0
    with open(path, "rb") as f:
        for line_number, raw in enumerate(f, 1):
            raw = raw.rstrip(b"\n")
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            try:
                line = _decode_line(raw)
                if not line.strip():
                    continue
                book = parse_record(line, delimiter)
            except ParseError as e:
                if not skip_malformed:
                    raise ParseError(str(e), path=path, line_number=line_number, line=e.line) from None
                logger.warning(f"Skipping malformed line {line_number} in {path}: {e}")
                skipped += 1
                continue
            if book.book_id in library.books:
                logger.warning(f"Duplicate book ID {book.book_id} on line {line_number} in {path}, keeping the later record")
            library.books[book.book_id] = book

    logger.info(f"Loaded {len(library)} books from {path} ({skipped} malformed lines skipped)")
    return library


def _decode_line(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"line is not valid UTF-8: {e.reason}",
                         line=raw.decode("utf-8", errors="replace")) from None


def _unsafe_fields(book: Book, delimiter: str) -> Tuple[str, ...]:
    return tuple(
        name for name, value in (("title", book.title), ("author", book.author))
        if delimiter in value or "\n" in value
    )


def save_library(path: str, library: Library, *, delimiter: Optional[str] = None) -> None:
    """Overwrite ``path`` with one line per book, ordered by id.

    The whole file is encoded before it is opened, so a record that cannot be
    written as UTF-8 raises UnicodeEncodeError and leaves the old file as it was.
    """
    delimiter = _resolve_delimiter(delimiter)
    books = library.list_books()
    lines = []
    for book in books:
        unsafe = _unsafe_fields(book, delimiter)
        if unsafe:
            logger.warning(
                f"Book ID {book.book_id} has {', '.join(unsafe)} containing {delimiter!r} or a newline; "
                f"this record will not load back correctly"
            )
        lines.append(format_record(book, delimiter) + "\n")
    data = "".join(lines).encode("utf-8")

    with open(path, "wb") as f:
        f.write(data)
    logger.info(f"Saved {len(books)} books to {path}")
