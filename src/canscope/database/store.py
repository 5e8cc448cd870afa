"""Signal descriptor store and the reloadable library that holds it."""

from __future__ import annotations

import logging
import threading
import time
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from canscope.core.identifier import CanonicalId, RawIdentifier, normalize
from canscope.database.schema import MessageDescriptor
from canscope.errors import DescriptorError, InvalidIdentifierFormat

logger = logging.getLogger(__name__)


class SignalDescriptorStore:
    """Immutable mapping from frame identifier to :class:`MessageDescriptor`.

    Lookups accept any identifier form (decimal key, ``0x`` hex, int or
    :class:`CanonicalId`). A store never changes after construction;
    reloading builds a new one.
    """

    def __init__(self, messages: Optional[Mapping[RawIdentifier, MessageDescriptor]] = None) -> None:
        table: dict[int, MessageDescriptor] = {}
        for key, message in (messages or {}).items():
            if not isinstance(message, MessageDescriptor):
                raise DescriptorError(f"Not a MessageDescriptor for {key!r}: {message!r}")
            table[normalize(key).value] = message
        self._messages = MappingProxyType(table)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> SignalDescriptorStore:
        """Build a store from the serialized database shape.

        Keys are decimal or hex identifier strings; values hold ``name``,
        ``dlc`` and a ``signals`` mapping of attribute dicts.
        """
        messages: dict[CanonicalId, MessageDescriptor] = {}
        for key, attrs in data.items():
            try:
                identifier = normalize(key)
            except InvalidIdentifierFormat as e:
                raise DescriptorError(f"Invalid message key {key!r}: {e}") from e
            if identifier in messages:
                raise DescriptorError(f"Duplicate message identifier 0x{identifier} (key {key!r})")
            messages[identifier] = MessageDescriptor.from_dict(attrs)
        return cls(messages)

    def to_mapping(self) -> dict[str, dict[str, Any]]:
        return {f"0x{can_id:X}": message.to_dict() for can_id, message in sorted(self._messages.items())}

    def get(self, identifier: RawIdentifier) -> Optional[MessageDescriptor]:
        """Message descriptor for ``identifier``, or ``None``.

        Unparseable identifiers are treated as unknown.
        """
        try:
            key = normalize(identifier).value
        except InvalidIdentifierFormat:
            return None
        return self._messages.get(key)

    def __getitem__(self, identifier: RawIdentifier) -> MessageDescriptor:
        message = self.get(identifier)
        if message is None:
            raise KeyError(identifier)
        return message

    def __contains__(self, identifier: object) -> bool:
        return self.get(identifier) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[CanonicalId]:
        for can_id in sorted(self._messages):
            yield normalize(can_id)

    def __len__(self) -> int:
        return len(self._messages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SignalDescriptorStore):
            return NotImplemented
        return dict(self._messages) == dict(other._messages)

    def items(self) -> Iterator[tuple[CanonicalId, MessageDescriptor]]:
        for can_id in sorted(self._messages):
            yield normalize(can_id), self._messages[can_id]

    @property
    def identifiers(self) -> list[CanonicalId]:
        return list(self)

    def merged(self, other: SignalDescriptorStore) -> SignalDescriptorStore:
        """New store with ``other``'s messages replacing same-id entries."""
        combined: dict[int, MessageDescriptor] = dict(self._messages)
        combined.update(other._messages)
        return SignalDescriptorStore(combined)

    def find_signal(self, name: str) -> list[tuple[CanonicalId, MessageDescriptor]]:
        """Messages containing a signal whose name contains ``name`` (case-insensitive)."""
        needle = name.lower()
        return [
            (identifier, message)
            for identifier, message in self.items()
            if any(needle in s.name.lower() for s in message.signals)
        ]

    def __repr__(self) -> str:
        return f"SignalDescriptorStore({len(self)} messages)"


class DescriptorLibrary:
    """Named, reloadable holder of the current descriptor store.

    ``reload`` swaps in a new store, ``sync`` merges one in. Readers calling
    :attr:`store` get either the previous or the new store object.
    """

    def __init__(self, name: str, store: Optional[SignalDescriptorStore] = None) -> None:
        self.name = name
        self._store = store or SignalDescriptorStore()
        self._last_updated = time.time()
        self._lock = threading.Lock()

    @property
    def store(self) -> SignalDescriptorStore:
        return self._store

    @property
    def last_updated(self) -> float:
        return self._last_updated

    def reload(self, store: SignalDescriptorStore) -> SignalDescriptorStore:
        """Replace the store wholesale."""
        with self._lock:
            previous = self._store
            self._store = store
            self._last_updated = time.time()
        logger.info("Library %s reloaded: %d -> %d messages", self.name, len(previous), len(store))
        return store

    def sync(self, store: SignalDescriptorStore) -> SignalDescriptorStore:
        """Merge ``store`` over the current one (incoming wins per message)."""
        with self._lock:
            merged = self._store.merged(store)
            self._store = merged
            self._last_updated = time.time()
        logger.info("Library %s synced: now %d messages", self.name, len(merged))
        return merged

    def __repr__(self) -> str:
        return f"DescriptorLibrary({self.name!r}, {len(self._store)} messages)"
