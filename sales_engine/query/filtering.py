"""
Single-pass structural filter evaluation.

Predicates for the active filters are compiled once per call, then every
candidate record is tested against them with short-circuit AND. No field is
re-scanned per filter, and the evaluator has no side effects.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, FrozenSet, Iterable, List, Sequence, Union

from sales_engine.domain.models import Record
from sales_engine.domain.queries import FilterField, FilterSpec

Predicate = Callable[[Record], bool]


def _member_of(attribute: str, allowed: FrozenSet[str]) -> Predicate:
    wanted = frozenset(value.lower() for value in allowed)

    def predicate(record: Record) -> bool:
        return getattr(record, attribute).lower() in wanted

    return predicate


def _tags_intersect(allowed: FrozenSet[str]) -> Predicate:
    wanted = frozenset(value.lower() for value in allowed)

    def predicate(record: Record) -> bool:
        return not wanted.isdisjoint(record.tag_set)

    return predicate


def _date_between(start: dt.date | None, end: dt.date | None) -> Predicate:
    # Undated records fail closed whenever any bound is active.
    def predicate(record: Record) -> bool:
        value = record.date
        if value is None:
            return False
        if start is not None and value < start:
            return False
        if end is not None and value > end:
            return False
        return True

    return predicate


def compile_predicates(spec: FilterSpec) -> List[Predicate]:
    """Build the predicate list for the structural part of ``spec``."""
    predicates: List[Predicate] = []

    for field, values in spec.by_field.items():
        if field is FilterField.TAGS:
            predicates.append(_tags_intersect(values))
        else:
            predicates.append(_member_of(field.record_attribute, values))

    min_age, max_age = spec.min_age, spec.max_age
    if min_age is not None:
        predicates.append(lambda record: record.age >= min_age)
    if max_age is not None:
        predicates.append(lambda record: record.age <= max_age)

    if spec.start_date is not None or spec.end_date is not None:
        predicates.append(_date_between(spec.start_date, spec.end_date))

    return predicates


class FilterEvaluator:
    """Applies a ``FilterSpec``'s structural predicates to a record sequence."""

    def apply(
        self,
        records: Union[Sequence[Record], Iterable[Record]],
        spec: FilterSpec,
    ) -> Sequence[Record]:
        """
        Return the records satisfying every active predicate, in input order.

        With no active predicate a sequence input is returned unchanged.
        """
        predicates = compile_predicates(spec)
        if not predicates:
            return records if isinstance(records, Sequence) else list(records)

        if len(predicates) == 1:
            (only,) = predicates
            return [record for record in records if only(record)]

        matched: List[Record] = []
        for record in records:
            for predicate in predicates:
                if not predicate(record):
                    break
            else:
                matched.append(record)
        return matched


__all__ = ["FilterEvaluator", "Predicate", "compile_predicates"]
