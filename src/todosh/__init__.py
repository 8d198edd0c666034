"""todosh - A terminal todo list backed by a CSV file."""

__version__ = "1.0.0"

from .todo import Todo, parse_todo_id
from .storage import Storage, TodoCsvFormat

__all__ = ["Todo", "parse_todo_id", "Storage", "TodoCsvFormat", "__version__"]
