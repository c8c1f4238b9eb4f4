"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the delimited files for a database later
2. Keep time accounting and navigation decoupled from file handling
3. Use the same contract for all three entity kinds

The contract is whole-list: load everything, change it in memory,
write everything back. Records are identified by their integer id.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Optional, Protocol, Sequence, TypeVar


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ParseError(StorageError):
    """A stored record could not be decoded."""

    def __init__(self, path: Path, line_number: int, reason: str):
        self.path = path
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{path}:{line_number}: {reason}")


class Identified(Protocol):
    id: int


T = TypeVar("T", bound=Identified)


class RecordStore(ABC, Generic[T]):
    """
    Abstract interface for one entity kind's backing store.

    Any storage implementation must implement load_all and save_all;
    the id-based helpers are defined in terms of those two.
    """

    name: str = "records"

    @abstractmethod
    def load_all(self) -> list[T]:
        """
        Load every record, in stored order.

        Raises:
            ParseError: If a stored record is malformed
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def save_all(self, records: Sequence[T]) -> None:
        """
        Replace the whole store with the given records.

        Raises:
            StorageError: If the store cannot be written
        """
        pass

    def get_by_id(self, record_id: int) -> Optional[T]:
        """Return the record with this id, None if absent."""
        for record in self.load_all():
            if record.id == record_id:
                return record
        return None

    def next_id(self) -> int:
        """Next unused id: 1 for an empty store, otherwise max(id) + 1."""
        records = self.load_all()
        if not records:
            return 1
        return max(record.id for record in records) + 1

    def append(self, record: T) -> T:
        """Add a record at the end of the store."""
        records = self.load_all()
        records.append(record)
        self.save_all(records)
        return record

    def upsert_by_id(self, record: T) -> bool:
        """
        Replace the stored record that has the same id.

        Returns False (and writes nothing) when no record matches.
        """
        records = self.load_all()
        replaced = False
        updated = []
        for existing in records:
            if existing.id == record.id:
                updated.append(record)
                replaced = True
            else:
                updated.append(existing)

        if replaced:
            self.save_all(updated)
        return replaced

    def delete_by_id(self, record_id: int) -> bool:
        """Remove the record with this id. Returns True if one was removed."""
        records = self.load_all()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return False
        self.save_all(remaining)
        return True
