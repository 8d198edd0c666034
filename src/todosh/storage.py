"""Storage layer for todosh using a CSV file.

Every operation follows the same read-modify-write cycle: the whole store is
read into memory, transformed, and (for mutations other than append) written
back over the old file. The file is the only source of truth; nothing is
cached between operations.
"""

import csv
import fcntl
import io
import logging
import shutil
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .config import ConfigModel
from .exceptions import (
    DuplicateIdError,
    InvalidTextError,
    MalformedRowError,
    NotFoundError,
    StoreAccessError,
)
from .todo import Todo

logger = logging.getLogger(__name__)

HEADER = ("ID", "TASK", "COMPLETED")
BOOLEAN_VALUES = {"true": True, "false": False}


class TodoCsvFormat:
    """Handles conversion between Todo objects and CSV rows."""

    @staticmethod
    def to_row(todo: Todo) -> List[str]:
        """Convert a Todo to its three CSV fields."""
        return [str(todo.id), todo.text.strip(), "true" if todo.completed else "false"]

    @staticmethod
    def from_row(row: Sequence[str], line_number: int) -> Todo:
        """Parse CSV fields back to a Todo.

        Raises:
            MalformedRowError: if the row does not hold a positive integer id,
                a description and a true/false completion flag
        """
        if len(row) != len(HEADER):
            raise MalformedRowError(
                line_number, f"expected {len(HEADER)} fields, got {len(row)}"
            )

        raw_id, text, raw_completed = (field.strip() for field in row)

        if not (raw_id.isascii() and raw_id.isdigit()) or int(raw_id) < 1:
            raise MalformedRowError(line_number, f"invalid ID {raw_id!r}")

        completed = BOOLEAN_VALUES.get(raw_completed.lower())
        if completed is None:
            raise MalformedRowError(
                line_number, f"invalid COMPLETED value {raw_completed!r}"
            )

        return Todo(id=int(raw_id), text=text, completed=completed)

    @staticmethod
    def dumps(todos: Sequence[Todo], header: bool = True) -> str:
        """Serialize todos to CSV text, with the header row by default.

        Rows are terminated by ``\\n``. A row whose text holds a carriage
        return is fully quoted, since minimal quoting only protects the
        characters of the line terminator.
        """
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        quoted_writer = csv.writer(output, lineterminator="\n", quoting=csv.QUOTE_ALL)
        if header:
            writer.writerow(HEADER)
        for todo in todos:
            row = TodoCsvFormat.to_row(todo)
            if "\r" in row[1]:
                quoted_writer.writerow(row)
            else:
                writer.writerow(row)
        return output.getvalue()

    @staticmethod
    def loads(content: str) -> List[Todo]:
        """Parse CSV text into todos.

        Blank content is an empty store. Otherwise the first row must be the
        header; blank lines between rows are skipped.
        """
        if not content.strip():
            return []

        reader = csv.reader(io.StringIO(content, newline=""))
        todos = []
        try:
            header = next(reader)
            if tuple(field.strip() for field in header) != HEADER:
                raise MalformedRowError(
                    reader.line_num,
                    f"expected header {','.join(HEADER)}, got {','.join(header)}",
                )
            for row in reader:
                if not row:
                    continue
                todos.append(TodoCsvFormat.from_row(row, reader.line_num))
        except csv.Error as e:
            raise MalformedRowError(reader.line_num, str(e)) from e

        return todos


class Storage:
    """File-based todo store backed by a single CSV file."""

    def __init__(self, config: ConfigModel):
        self.config = config
        self.path = config.get_db_path()
        self._ensure_store()

    def _ensure_store(self):
        """Ensure the data directory exists and holds a header-only store."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                with open(self.path, "w", encoding="utf-8", newline="") as f:
                    f.write(TodoCsvFormat.dumps([]))
                logger.info("Created empty todo store at %s", self.path)
        except OSError as e:
            raise StoreAccessError(
                f"Failed to initialize store {self.path}: {e}", self.path
            ) from e

    @contextmanager
    def locked(self, shared: bool = False) -> Iterator[None]:
        """Hold an advisory lock on the store for one read-modify-write cycle."""
        if not self.config.use_lock:
            yield
            return

        lock_path = self.config.get_lock_path()
        try:
            lock_file = open(lock_path, "a")
        except OSError as e:
            raise StoreAccessError(
                f"Failed to open lock file {lock_path}: {e}", lock_path
            ) from e

        with lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_SH if shared else fcntl.LOCK_EX)
            logger.debug("Acquired %s lock on %s", "shared" if shared else "exclusive", lock_path)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def load(self) -> List[Todo]:
        """Load all todos in store order."""
        with self.locked(shared=True):
            return self._read_all()

    def list_todos(self) -> List[Todo]:
        """List todos for display. Never mutates the store."""
        return self.load()

    def append(self, text: str) -> Todo:
        """Append a new todo at the end of the store.

        Existing rows are left untouched on disk.

        Returns:
            The created todo, numbered one past the current count
        """
        text = text.strip()
        if not text:
            raise InvalidTextError("Todo text cannot be empty")

        with self.locked():
            todos = self._read_all()
            todo = Todo(id=len(todos) + 1, text=text)
            self._append_row(todo)

        logger.info("Added todo %d", todo.id)
        return todo

    def complete(self, todo_id: int) -> Optional[Todo]:
        """Mark a todo completed.

        Returns:
            The completed todo, or None if no todo has that id or it was
            already completed. Nothing is written in that case.
        """
        with self.locked():
            todos = self._read_all()
            todo = self.find_todo(todos, todo_id)
            if todo is None or not todo.complete():
                logger.debug("Complete of %d is a no-op", todo_id)
                return None
            self._write_all(todos)

        logger.info("Completed todo %d", todo_id)
        return todo

    def update(self, todo_id: int, text: str) -> Optional[Todo]:
        """Replace the description of a todo.

        Returns:
            The updated todo, or None when the new text is blank or equal to
            the current one.

        Raises:
            NotFoundError: if todo_id is outside 1..count
        """
        with self.locked():
            todos = self._read_all()
            if not 1 <= todo_id <= len(todos):
                raise NotFoundError(todo_id)
            todo = self.find_todo(todos, todo_id)
            if todo is None:
                raise NotFoundError(todo_id)
            if not todo.rename(text):
                logger.debug("Update of %d is a no-op", todo_id)
                return None
            self._write_all(todos)

        logger.info("Updated todo %d", todo_id)
        return todo

    def delete(self, todo_id: int) -> Todo:
        """Delete a todo and renumber every todo after it.

        Returns:
            The deleted todo, carrying its original id

        Raises:
            NotFoundError: if no todo has that id
        """
        with self.locked():
            todos = self._read_all()
            kept = [t for t in todos if t.id != todo_id]
            matched = [t for t in todos if t.id == todo_id]
            if not matched:
                raise NotFoundError(todo_id)
            if len(matched) > 1:
                raise DuplicateIdError([t.id for t in matched])
            self._write_all(self.renumber(kept))

        logger.info("Deleted todo %d, %d remaining", todo_id, len(kept))
        return matched[0]

    @staticmethod
    def renumber(todos: List[Todo]) -> List[Todo]:
        """Reassign ids 1, 2, 3, ... in list order."""
        for new_id, todo in enumerate(todos, start=1):
            todo.id = new_id
        return todos

    def backup(self) -> Optional[Path]:
        """Copy the store into the backup directory.

        Returns:
            Path of the backup, or None if there is no store to copy
        """
        if not self.path.exists():
            return None

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S-%f")
        backup_path = self.config.get_backup_path(timestamp)
        try:
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.path, backup_path)
        except OSError as e:
            raise StoreAccessError(
                f"Failed to back up store to {backup_path}: {e}", backup_path
            ) from e

        logger.debug("Backed up store to %s", backup_path)
        return backup_path

    @staticmethod
    def find_todo(todos: List[Todo], todo_id: int) -> Optional[Todo]:
        """Return the first todo with the given id, or None."""
        for todo in todos:
            if todo.id == todo_id:
                return todo
        return None

    def _read_all(self) -> List[Todo]:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StoreAccessError(
                f"Failed to read store {self.path}: {e}", self.path
            ) from e

        todos = TodoCsvFormat.loads(content)
        logger.debug("Loaded %d todos from %s", len(todos), self.path)
        return todos

    def _write_all(self, todos: List[Todo]) -> None:
        """Truncate the store and write every todo back in order."""
        ids = [t.id for t in todos]
        if len(ids) != len(set(ids)):
            raise DuplicateIdError(ids)

        content = TodoCsvFormat.dumps(todos)

        if self.config.backup_on_write:
            self.backup()

        try:
            with open(self.path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise StoreAccessError(
                f"Failed to write store {self.path}: {e}", self.path
            ) from e

        logger.debug("Wrote %d todos to %s", len(todos), self.path)

    def _append_row(self, todo: Todo) -> None:
        try:
            with open(self.path, "rb+") as f:
                existing = f.read()
                if not existing.strip():
                    f.seek(0)
                    f.truncate()
                    data = TodoCsvFormat.dumps([todo])
                else:
                    data = TodoCsvFormat.dumps([todo], header=False)
                    if not existing.endswith(b"\n"):
                        data = "\n" + data
                f.write(data.encode("utf-8"))
        except OSError as e:
            raise StoreAccessError(
                f"Failed to append to store {self.path}: {e}", self.path
            ) from e
