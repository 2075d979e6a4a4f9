"""
Search strategies and the ordered strategy list that combines them.

Every strategy answers the same question for one snapshot and one normalized
query: which record positions match, or ``UNAVAILABLE`` when the strategy cannot
answer this kind of query at all (e.g. a phone lookup for a query with fewer
than three digits). ``first_successful`` walks an ordered list and returns the
first non-empty answer, which gives layered degradation without a chain of
special cases at the call site:

    index (word prefix + phone prefix/suffix)  ->  substring scan

Soundness of every strategy:
- ``WordPrefixLookup`` returns only records with a name word starting with the
  query.
- ``PhoneDigitLookup`` returns only records whose phone digits start or end
  with the query digits; buckets are verified when the query is longer than the
  bucket key.
- ``SubstringScan`` returns only records whose name or phone contains the query.
"""

from __future__ import annotations

import abc
import bisect
import threading
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from sales_engine.errors import QueryCancelledError
from sales_engine.search.snapshot import IndexSnapshot
from sales_engine.store.normalize import phone_digits
from sales_engine.utils.logging import get_logger

log = get_logger(__name__)


class _Unavailable:
    """Sentinel: the strategy cannot answer this query."""

    _instance: Optional["_Unavailable"] = None

    def __new__(cls) -> "_Unavailable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNAVAILABLE"

    def __bool__(self) -> bool:
        return False


UNAVAILABLE = _Unavailable()

StrategyAnswer = Union[FrozenSet[int], _Unavailable]


@dataclass(frozen=True)
class NormalizedQuery:
    """Lowercased, trimmed query text and its digits-only projection."""

    text: str
    digits: str

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> Optional["NormalizedQuery"]:
        """Return None for a missing or blank query."""
        if raw is None:
            return None
        text = raw.strip().lower()
        if not text:
            return None
        return cls(text=text, digits=phone_digits(text))


@runtime_checkable
class SearchStrategy(Protocol):
    name: str

    def search(
        self,
        snapshot: IndexSnapshot,
        query: NormalizedQuery,
        cancel: Optional[threading.Event] = None,
    ) -> StrategyAnswer:
        ...


class AbstractSearchStrategy(abc.ABC):
    name: str

    @abc.abstractmethod
    def search(
        self,
        snapshot: IndexSnapshot,
        query: NormalizedQuery,
        cancel: Optional[threading.Event] = None,
    ) -> StrategyAnswer:  # pragma: no cover - interface only
        raise NotImplementedError


class WordPrefixLookup(AbstractSearchStrategy):
    """
    Name words equal to, or starting with, the query.

    The vocabulary is sorted, so every word with the query as a prefix lies in
    one contiguous range found by bisection.
    """

    name = "word_index"

    def search(self, snapshot, query, cancel=None):
        vocabulary = snapshot.vocabulary
        start = bisect.bisect_left(vocabulary, query.text)
        matched = set()
        for word in vocabulary[start:]:
            if not word.startswith(query.text):
                break
            matched.update(snapshot.words[word])
        return frozenset(matched)


class PhoneDigitLookup(AbstractSearchStrategy):
    """Phone prefix buckets and the fixed-length suffix bucket."""

    name = "phone_index"

    def search(self, snapshot, query, cancel=None):
        digits = query.digits
        if len(digits) < snapshot.prefix_min:
            return UNAVAILABLE

        matched = set()

        prefix_key = digits[: snapshot.prefix_max]
        bucket = snapshot.phone_prefixes.get(prefix_key, ())
        if len(digits) > len(prefix_key):
            matched.update(p for p in bucket if snapshot.digits[p].startswith(digits))
        else:
            matched.update(bucket)

        if len(digits) >= snapshot.suffix_length:
            suffix_key = digits[-snapshot.suffix_length :]
            bucket = snapshot.phone_suffixes.get(suffix_key, ())
            if len(digits) > snapshot.suffix_length:
                matched.update(p for p in bucket if snapshot.digits[p].endswith(digits))
            else:
                matched.update(bucket)

        return frozenset(matched)


class UnionOf(AbstractSearchStrategy):
    """
    Union of several strategies, answered as one step.

    Unavailable only when every member is unavailable.
    """

    def __init__(self, name: str, members: Sequence[SearchStrategy]) -> None:
        self.name = name
        self.members = tuple(members)

    def search(self, snapshot, query, cancel=None):
        answers = [member.search(snapshot, query, cancel) for member in self.members]
        available = [answer for answer in answers if answer is not UNAVAILABLE]
        if not available:
            return UNAVAILABLE
        return frozenset().union(*available)


class SubstringScan(AbstractSearchStrategy):
    """
    Linear "contains" scan over every name, raw phone and phone-digit string.

    Only reached when the index strategies found nothing. O(n) per query; the
    cancel event is checked every ``check_interval`` records.
    """

    name = "substring_scan"

    def __init__(self, check_interval: int = 10_000) -> None:
        self.check_interval = check_interval

    def search(self, snapshot, query, cancel=None):
        text = query.text
        digits = query.digits if len(query.digits) >= snapshot.prefix_min else None
        interval = self.check_interval
        matched: List[int] = []

        for position in range(snapshot.size):
            if cancel is not None and position % interval == 0 and cancel.is_set():
                raise QueryCancelledError(f"Substring scan cancelled at position {position}")
            if (
                text in snapshot.names[position]
                or text in snapshot.phones[position]
                or (digits is not None and digits in snapshot.digits[position])
            ):
                matched.append(position)

        return frozenset(matched)


def first_successful(
    strategies: Sequence[SearchStrategy],
    snapshot: IndexSnapshot,
    query: NormalizedQuery,
    cancel: Optional[threading.Event] = None,
) -> Tuple[FrozenSet[int], Optional[str]]:
    """
    Try each strategy in order; the first non-empty answer wins.

    Returns the positions and the winning strategy's name, or an empty set and
    None when every strategy came back empty or unavailable.
    """
    for index, strategy in enumerate(strategies):
        answer = strategy.search(snapshot, query, cancel)
        if answer is UNAVAILABLE or not answer:
            continue
        if index > 0:
            log.info(
                f"[SEARCH FALLBACK] {strategy.name}",
                extra={"query": query.text, "strategy": strategy.name, "matches": len(answer)},
            )
        return answer, strategy.name
    return frozenset(), None


def default_strategies(check_interval: int = 10_000) -> List[SearchStrategy]:
    return [
        UnionOf("index", [WordPrefixLookup(), PhoneDigitLookup()]),
        SubstringScan(check_interval=check_interval),
    ]


@dataclass(frozen=True)
class Candidates:
    """Positions matched by a text query and the strategy that produced them."""

    positions: FrozenSet[int]
    strategy: Optional[str] = None

    def __len__(self) -> int:
        return len(self.positions)

    def __contains__(self, position: object) -> bool:
        return position in self.positions

    def __iter__(self) -> Iterator[int]:
        return iter(self.positions)

    def ordered(self) -> List[int]:
        """Positions in collection (natural) order."""
        return sorted(self.positions)


class _All:
    """Sentinel: no text filtering; every record is a candidate."""

    _instance: Optional["_All"] = None

    def __new__(cls) -> "_All":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALL"


ALL = _All()

SearchResult = Union[Candidates, _All]


__all__ = [
    "ALL",
    "UNAVAILABLE",
    "AbstractSearchStrategy",
    "Candidates",
    "NormalizedQuery",
    "PhoneDigitLookup",
    "SearchResult",
    "SearchStrategy",
    "StrategyAnswer",
    "SubstringScan",
    "UnionOf",
    "WordPrefixLookup",
    "default_strategies",
    "first_successful",
]
