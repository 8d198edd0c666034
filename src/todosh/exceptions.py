"""Exceptions raised by the todosh store and configuration layers."""

from typing import Any, Iterable, Optional


class TodoshError(Exception):
    """Base class for all todosh errors."""


class ConfigError(TodoshError):
    """Raised when a configuration file cannot be read or parsed."""


class StoreAccessError(TodoshError):
    """Raised when the store file or its directory cannot be used."""

    def __init__(self, message: str, path: Optional[Any] = None):
        self.path = path
        super().__init__(message)


class MalformedRowError(TodoshError):
    """Raised when a stored row cannot be parsed into a todo."""

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Malformed row at line {line_number}: {reason}")


class InvalidIdError(TodoshError):
    """Raised when an id is not a positive integer."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid todo ID: {value!r} (expected a positive integer)")


class InvalidTextError(TodoshError):
    """Raised when a todo description is blank."""


class NotFoundError(TodoshError):
    """Raised when no todo has the requested id."""

    def __init__(self, todo_id: int):
        self.todo_id = todo_id
        super().__init__(f"No todo with ID {todo_id}")


class DuplicateIdError(TodoshError):
    """Raised when a rewrite would persist two todos with the same id."""

    def __init__(self, ids: Iterable[int]):
        self.ids = list(ids)
        super().__init__(f"Duplicate todo IDs detected: {self.ids}")
