from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence

from opentelemetry import trace

from app.core.dates import parse_nominal_time
from app.schemas.actions import ACTION_STATUSES
from app.services.errors import (
    InvalidComparatorArityError,
    InvalidFilterFieldError,
    InvalidFilterFormatError,
)
from app.services.scope_tokens import DateParser

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class FilterComparator(str, Enum):
    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESSTHAN = "<"
    LESSTHAN_EQUAL = "<="


FILTER_STATUS = "status"
FILTER_NOMINAL_TIME = "nominal_time"
FILTER_FIELD_COLUMNS: dict[str, str] = {
    FILTER_STATUS: "a.statusStr",
    FILTER_NOMINAL_TIME: "a.nominalTimestamp",
}
FILTER_FIELD_ALIASES = {"nominaltime": FILTER_NOMINAL_TIME}
MULTI_VALUE_COMPARATORS = {FilterComparator.EQUALS, FilterComparator.NOT_EQUALS}
PARAM_PREFIX = "p"

_FILTER_ENTRY_RE = re.compile(r"^\s*([A-Za-z_]+)\s*(>=|<=|!=|<>|=|>|<)\s*(.*?)\s*$")
_OPERATOR_COMPARATORS = {comparator.value: comparator for comparator in FilterComparator}
_OPERATOR_COMPARATORS["<>"] = FilterComparator.NOT_EQUALS

FilterKey = tuple[str, FilterComparator]
FilterSpec = Mapping[FilterKey, Sequence[Any]]


@dataclass(frozen=True, slots=True)
class ClauseResult:
    clause: str
    params: dict[str, Any] = field(default_factory=dict)
    next_index: int = 1


def build_filter_clause(filter_spec: FilterSpec, *, start_index: int = 1) -> ClauseResult:
    """Compile ``filter_spec`` into a where-clause fragment and its bind parameters.

    Every entry contributes ``" AND <column> ..."`` in mapping order and the
    fragment ends with a single space. Placeholders are ``:p<n>`` with ``n``
    counting up from ``start_index`` across all entries; ``next_index`` on the
    result is the first unused number.
    """
    with tracer.start_as_current_span("coord.build_filter_clause") as span:
        span.set_attribute("coord.filter_entries", len(filter_spec))
        parts: list[str] = []
        params: dict[str, Any] = {}
        index = start_index
        for (field_name, comparator), values in filter_spec.items():
            index = _append_filter_entry(parts, params, field_name, comparator, values, index)
        parts.append(" ")
        logger.debug("compiled filter clause entries=%s params=%s", len(filter_spec), len(params))
        return ClauseResult(clause="".join(parts), params=params, next_index=index)


def append_filter_clause(buffer: list[str], filter_spec: FilterSpec) -> dict[str, Any]:
    result = build_filter_clause(filter_spec)
    buffer.append(result.clause)
    return dict(result.params)


def resolve_filter_column(field_name: str) -> str:
    column = FILTER_FIELD_COLUMNS.get(field_name)
    if column is None:
        raise InvalidFilterFieldError(field_name)
    return column


def parse_filter(text: str | None, *, parse_date: DateParser | None = None) -> dict[FilterKey, list[Any]]:
    """Parse ``status=RUNNING;status=KILLED;nominal_time>=2009-01-01T01:00Z`` style filters."""
    parser = parse_date or parse_nominal_time
    filter_spec: dict[FilterKey, list[Any]] = {}
    if not text:
        return filter_spec

    for entry in text.split(";"):
        if not entry.strip():
            continue
        match = _FILTER_ENTRY_RE.match(entry)
        if match is None:
            raise InvalidFilterFormatError(entry.strip(), "expected <field><operator><value>")
        raw_field, operator, raw_value = match.groups()
        if not raw_value:
            raise InvalidFilterFormatError(entry.strip(), "value cannot be empty")

        field_name = raw_field.lower()
        field_name = FILTER_FIELD_ALIASES.get(field_name, field_name)
        resolve_filter_column(field_name)
        comparator = _OPERATOR_COMPARATORS[operator]
        value = _parse_filter_value(entry.strip(), field_name, raw_value, parser)
        filter_spec.setdefault((field_name, comparator), []).append(value)
    return filter_spec


def _append_filter_entry(
    parts: list[str],
    params: dict[str, Any],
    field_name: str,
    comparator: FilterComparator | str,
    values: Sequence[Any],
    index: int,
) -> int:
    column = resolve_filter_column(field_name)
    comparator = _coerce_comparator(field_name, comparator)
    values = list(values)
    if not values:
        raise InvalidComparatorArityError(field_name, comparator, 0)

    parts.append(f" AND {column} ")
    if comparator in MULTI_VALUE_COMPARATORS:
        placeholders, index = _bind_values(params, values, index)
        keyword = "IN" if comparator is FilterComparator.EQUALS else "NOT IN"
        parts.append(f"{keyword} ({placeholders})")
        return index

    if len(values) != 1:
        raise InvalidComparatorArityError(field_name, comparator, len(values))
    placeholders, index = _bind_values(params, values, index)
    parts.append(f"{comparator.value} {placeholders}")
    return index


def _bind_values(params: dict[str, Any], values: list[Any], index: int) -> tuple[str, int]:
    names: list[str] = []
    for value in values:
        name = f"{PARAM_PREFIX}{index}"
        params[name] = value
        names.append(f":{name}")
        index += 1
    return ", ".join(names), index


def _coerce_comparator(field_name: str, comparator: FilterComparator | str) -> FilterComparator:
    if isinstance(comparator, FilterComparator):
        return comparator
    if comparator in FilterComparator.__members__:
        return FilterComparator[comparator]
    if comparator in _OPERATOR_COMPARATORS:
        return _OPERATOR_COMPARATORS[comparator]
    raise InvalidFilterFormatError(f"{field_name}{comparator}", f"unsupported comparator '{comparator}'")


def _parse_filter_value(entry: str, field_name: str, raw_value: str, parse_date: DateParser) -> Any:
    if field_name == FILTER_STATUS:
        status = raw_value.upper()
        if status not in ACTION_STATUSES:
            raise InvalidFilterFormatError(entry, f"unknown status '{raw_value}'")
        return status
    try:
        return parse_date(raw_value)
    except ValueError as exc:
        raise InvalidFilterFormatError(entry, f"could not parse '{raw_value}' as a date") from exc
