"""Key-value state store abstractions."""

import copy
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

_logger = logging.getLogger(__name__)


class Keyspace(StrEnum):
    """Independent keyspaces held by a state store."""

    IRMA = "irma"
    DIVA = "diva"


class StateStore(Protocol):
    """Storage interface for IRMA session records and DIVA proof maps.

    Writes are last-write-wins; no operation is atomic across calls.
    """

    def get(self, keyspace: Keyspace, key: str) -> object | None:
        """Return the stored record, if present."""

    def set(self, keyspace: Keyspace, key: str, record: object) -> None:
        """Store a JSON-serializable record."""

    def delete(self, keyspace: Keyspace, key: str) -> None:
        """Remove a record if present."""


@dataclass
class InMemoryStateStore(StateStore):
    """Volatile state store held by a single process."""

    _entries: dict[tuple[str, str], object]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, keyspace: Keyspace, key: str) -> object | None:
        """Return a copy of the stored record, if present."""
        _logger.debug("Reading %s entry %s", keyspace, key)
        record = self._entries.get((keyspace.value, key))
        return copy.deepcopy(record)

    def set(self, keyspace: Keyspace, key: str, record: object) -> None:
        """Store a copy of the record."""
        _logger.debug("Setting %s entry %s", keyspace, key)
        self._entries[(keyspace.value, key)] = copy.deepcopy(record)

    def delete(self, keyspace: Keyspace, key: str) -> None:
        """Remove a record if present."""
        _logger.debug("Deleting %s entry %s", keyspace, key)
        self._entries.pop((keyspace.value, key), None)
