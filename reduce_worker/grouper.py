"""
Grouping and key ordering for the reduce phase
"""

from typing import Dict, Iterable, List

from reduce_worker.records import KeyValue


class KeyGroups:
    """
    Values grouped by key.

    Each key maps to every value recorded under it, duplicates included,
    in the order records were added. First-seen keys are tracked in a
    separate list so no pass over the mapping is needed to enumerate them.
    """

    def __init__(self):
        self.values: Dict[str, List[str]] = {}
        self.keys: List[str] = []

    def add(self, record: KeyValue):
        values = self.values.get(record.key)
        if values is None:
            values = self.values[record.key] = []
            self.keys.append(record.key)
        values.append(record.value)

    def __getitem__(self, key: str) -> List[str]:
        return self.values[key]

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def __len__(self) -> int:
        return len(self.keys)

    def sorted_keys(self) -> List[str]:
        return sort_keys(self.keys)


def group_records(records: Iterable[KeyValue]) -> KeyGroups:
    """Consume a record stream and group its values by key"""
    groups = KeyGroups()
    for record in records:
        groups.add(record)
    return groups


def sort_keys(keys: Iterable[str]) -> List[str]:
    """Sort keys ascending by byte-wise comparison of their UTF-8 encoding.

    Code point order of Python strings is the same as UTF-8 byte order, so a
    plain sort gives the byte-wise ordering.
    """
    return sorted(keys)
