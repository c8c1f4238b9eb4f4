"""
Storage Services Package

Provides the abstract record store and the delimited-file implementation
used for users, projects and time cards.
"""

from punchclock.services.storage.interface import (
    ParseError,
    RecordStore,
    StorageError,
)
from punchclock.services.storage.delimited import (
    DelimitedRecordStore,
    ProjectStore,
    TimeCardStore,
    UserStore,
    create_stores,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    # Interfaces
    "RecordStore",
    # Exceptions
    "ParseError",
    "StorageError",
    # Delimited file implementation
    "DelimitedRecordStore",
    "ProjectStore",
    "TimeCardStore",
    "UserStore",
    "create_stores",
    "format_timestamp",
    "parse_timestamp",
]
