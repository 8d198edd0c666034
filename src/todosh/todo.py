"""Todo data model for the todosh application."""

from dataclasses import dataclass
from typing import Any

from .exceptions import InvalidIdError


@dataclass
class Todo:
    """A single row of the todo store.

    The id is positional: it always equals the record's 1-based row index
    once the store has been written back.
    """

    id: int
    text: str
    completed: bool = False

    def complete(self) -> bool:
        """Mark the todo completed. Returns False if it already was."""
        if self.completed:
            return False
        self.completed = True
        return True

    def rename(self, text: str) -> bool:
        """Replace the description. Returns False for blank or unchanged text."""
        text = text.strip()
        if not text or text == self.text:
            return False
        self.text = text
        return True


def parse_todo_id(value: Any) -> int:
    """Convert user input to a todo id.

    Raises:
        InvalidIdError: if the value is not a positive integer
    """
    if isinstance(value, bool):
        raise InvalidIdError(value)
    if isinstance(value, int):
        todo_id = value
    else:
        text = str(value).strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidIdError(value)
        todo_id = int(text)
    if todo_id < 1:
        raise InvalidIdError(value)
    return todo_id
