"""
Immutable search snapshot built from one record collection.

A snapshot holds:

- a word index: lowercase whitespace-separated name word -> record positions,
  plus the sorted vocabulary used for prefix range lookups
- a phone prefix index: digit prefixes of length ``prefix_min..prefix_max``
  -> record positions
- a phone suffix index: the last ``suffix_length`` digits -> record positions
- per-position normalized name, phone and phone digits for the fallback scan

Positions refer to the collection identified by ``version``; a snapshot is
never patched, only replaced.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sales_engine.errors import IndexBuildCancelled
from sales_engine.store.normalize import phone_digits
from sales_engine.store.record_store import RecordCollection


@dataclass(frozen=True)
class IndexSnapshot:
    version: int
    size: int
    words: Dict[str, List[int]] = field(repr=False)
    vocabulary: Tuple[str, ...] = field(repr=False)
    phone_prefixes: Dict[str, List[int]] = field(repr=False)
    phone_suffixes: Dict[str, List[int]] = field(repr=False)
    names: Tuple[str, ...] = field(repr=False)
    phones: Tuple[str, ...] = field(repr=False)
    digits: Tuple[str, ...] = field(repr=False)
    prefix_min: int = 3
    prefix_max: int = 6
    suffix_length: int = 4

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def phone_key_count(self) -> int:
        return len(self.phone_prefixes) + len(self.phone_suffixes)


def build_snapshot(
    collection: RecordCollection,
    prefix_min: int = 3,
    prefix_max: int = 6,
    suffix_length: int = 4,
    cancel: Optional[threading.Event] = None,
    check_interval: int = 10_000,
) -> IndexSnapshot:
    """
    Index every record of ``collection`` in one pass.

    Raises
    ------
    IndexBuildCancelled
        If ``cancel`` is set; checked every ``check_interval`` records.
    """
    words: Dict[str, List[int]] = defaultdict(list)
    prefixes: Dict[str, List[int]] = defaultdict(list)
    suffixes: Dict[str, List[int]] = defaultdict(list)
    names: List[str] = []
    phones: List[str] = []
    all_digits: List[str] = []

    for position, record in enumerate(collection.records):
        if cancel is not None and position % check_interval == 0 and cancel.is_set():
            raise IndexBuildCancelled(f"Index build cancelled at position {position}")

        name = record.customer_name.lower()
        phone = record.phone_number.lower()
        digits = phone_digits(phone)
        names.append(name)
        phones.append(phone)
        all_digits.append(digits)

        for word in set(name.split()):
            words[word].append(position)

        if len(digits) >= prefix_min:
            for length in range(prefix_min, min(len(digits), prefix_max) + 1):
                prefixes[digits[:length]].append(position)
            if len(digits) >= suffix_length:
                suffixes[digits[-suffix_length:]].append(position)

    return IndexSnapshot(
        version=collection.version,
        size=len(collection),
        words=dict(words),
        vocabulary=tuple(sorted(words)),
        phone_prefixes=dict(prefixes),
        phone_suffixes=dict(suffixes),
        names=tuple(names),
        phones=tuple(phones),
        digits=tuple(all_digits),
        prefix_min=prefix_min,
        prefix_max=prefix_max,
        suffix_length=suffix_length,
    )


__all__ = ["IndexSnapshot", "build_snapshot"]
