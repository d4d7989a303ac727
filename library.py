import logging
from typing import Dict, List, Optional, Any, Iterable

from book import Book

logger = logging.getLogger(__name__)


class LibraryError(Exception):
    """Base class for catalog errors."""


class DuplicateIdError(LibraryError, ValueError):
    """Raised when adding a book whose id is already in the catalog."""

    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book ID {book_id} already exists.")
        self.book_id = book_id


class NotFoundError(LibraryError, LookupError):
    """Raised when an operation references an id that is not in the catalog."""

    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book ID {book_id} not found.")
        self.book_id = book_id


class Library:
    """Manages the in-memory collection of books keyed by id.

    Every book handed back to a caller is a copy, so callers can keep or mutate
    the result without affecting the catalog.
    """

    def __init__(self, books: Optional[Iterable[Book]] = None) -> None:
        self.books: Dict[int, Book] = {}
        for book in books or []:
            self.books[book.book_id] = book.copy()

    def __len__(self) -> int:
        return len(self.books)

    def __contains__(self, book_id: object) -> bool:
        return book_id in self.books

    # ------------------------- Core operations ------------------------- #
    def add_book(self, book_id: int, title: str, author: str, quantity: int) -> Book:
        """Insert a new book. Prevent duplicates by id."""
        if book_id in self.books:
            raise DuplicateIdError(book_id)
        book = Book(book_id, title, author, quantity)
        self.books[book_id] = book
        logger.debug(f"Book added: id={book_id}")
        return book.copy()

    def find_book(self, book_id: int) -> Optional[Book]:
        book = self.books.get(book_id)
        return book.copy() if book is not None else None

    def search_by_title(self, key: str) -> List[Book]:
        """Return every book whose title contains ``key`` (case-sensitive)."""
        return [book.copy() for book in self.books.values() if key in book.title]

    def update_quantity(self, book_id: int, quantity: int) -> Book:
        book = self.books.get(book_id)
        if book is None:
            raise NotFoundError(book_id)
        book.quantity = quantity
        logger.debug(f"Quantity updated: id={book_id}, quantity={quantity}")
        return book.copy()

    def remove_book(self, book_id: int) -> Book:
        if book_id not in self.books:
            raise NotFoundError(book_id)
        logger.debug(f"Book removed: id={book_id}")
        return self.books.pop(book_id).copy()

    def list_books(self) -> List[Book]:
        return [self.books[book_id].copy() for book_id in sorted(self.books)]

    def get_statistics(self) -> Dict[str, Any]:
        """Get catalog statistics."""
        return {
            "total_books": len(self.books),
            "unique_authors": len({book.author for book in self.books.values()}),
            "total_copies": sum(book.quantity for book in self.books.values()),
        }
