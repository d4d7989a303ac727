from __future__ import annotations


class Book:
    """Represents a single book record in the catalog."""

    def __init__(self, book_id: int, title: str, author: str, quantity: int = 0) -> None:
        self.book_id = book_id
        self.title = title
        self.author = author
        self.quantity = quantity

    def __repr__(self) -> str:
        return (
            f"Book(book_id={self.book_id!r}, title={self.title!r}, "
            f"author={self.author!r}, quantity={self.quantity!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def copy(self) -> "Book":
        return Book(self.book_id, self.title, self.author, self.quantity)

    def to_dict(self) -> dict:
        return {"id": self.book_id, "title": self.title, "author": self.author, "quantity": self.quantity}

