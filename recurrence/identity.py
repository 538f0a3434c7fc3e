"""Synthetic ids for generated occurrences and the lookup back to their original event."""
from dataclasses import dataclass
from typing import Iterable, Optional

from recurrence.rules import CalendarEntry

SEPARATOR = '_'


@dataclass(frozen=True)
class InstanceId:
    original_id: str
    ordinal: int

    def encode(self) -> str:
        return f"{self.original_id}{SEPARATOR}{self.ordinal}"

    @classmethod
    def decode(cls, value) -> Optional['InstanceId']:
        """
        Parse ``"{original_id}_{ordinal}"``.

        The split happens on the last separator, so original ids that contain
        the separator themselves still decode. Returns None for anything that is
        not a synthetic id.
        """
        if value is None:
            return None
        original_id, sep, ordinal = str(value).rpartition(SEPARATOR)
        if not sep or not original_id or not ordinal.isdigit():
            return None
        return cls(original_id=original_id, ordinal=int(ordinal))

    def __str__(self):
        return self.encode()


def instance_id(original_id, ordinal) -> str:
    return InstanceId(str(original_id), int(ordinal)).encode()


def is_instance(entry_or_id) -> bool:
    """True for generated occurrences (or synthetic id strings), False for originals."""
    if isinstance(entry_or_id, CalendarEntry):
        return entry_or_id.original_id is not None
    return InstanceId.decode(entry_or_id) is not None


def original_id_of(entry_or_id) -> Optional[str]:
    if isinstance(entry_or_id, CalendarEntry):
        return entry_or_id.original_id
    parsed = InstanceId.decode(entry_or_id)
    return parsed.original_id if parsed else None


def resolve_original(instance, all_entries: Iterable[CalendarEntry]) -> Optional[CalendarEntry]:
    """Find the definition an occurrence was generated from; None when it is gone."""
    target = original_id_of(instance)
    if target is None:
        return None
    for entry in all_entries:
        if str(entry.id) == target:
            return entry
    return None
