from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from app.services.errors import InvalidComparatorArityError, InvalidFilterFieldError, InvalidFilterFormatError
from app.services.filters import (
    FilterComparator,
    append_filter_clause,
    build_filter_clause,
    parse_filter,
)

NOMINAL = datetime(2009, 1, 1, 1, 0, tzinfo=timezone.utc)


def test_build_filter_clause_equals_multiple_values() -> None:
    result = build_filter_clause({("status", FilterComparator.EQUALS): ["RUNNING", "KILLED"]})

    assert result.clause == " AND a.statusStr IN (:p1, :p2) "
    assert result.params == {"p1": "RUNNING", "p2": "KILLED"}
    assert result.next_index == 3


def test_build_filter_clause_numbering_continues_across_entries() -> None:
    result = build_filter_clause(
        {
            ("status", FilterComparator.EQUALS): ["RUNNING", "KILLED"],
            ("nominal_time", FilterComparator.GREATER): [NOMINAL],
        }
    )

    assert result.clause == " AND a.statusStr IN (:p1, :p2) AND a.nominalTimestamp > :p3 "
    assert result.params == {"p1": "RUNNING", "p2": "KILLED", "p3": NOMINAL}


def test_build_filter_clause_not_equals_and_relational_signs() -> None:
    result = build_filter_clause(
        {
            ("status", FilterComparator.NOT_EQUALS): ["SUCCEEDED"],
            ("nominal_time", FilterComparator.GREATER_EQUAL): [NOMINAL],
            ("nominal_time", FilterComparator.LESSTHAN_EQUAL): [NOMINAL],
            ("nominal_time", FilterComparator.LESSTHAN): [NOMINAL],
        }
    )

    assert result.clause == (
        " AND a.statusStr NOT IN (:p1)"
        " AND a.nominalTimestamp >= :p2"
        " AND a.nominalTimestamp <= :p3"
        " AND a.nominalTimestamp < :p4 "
    )
    assert list(result.params) == ["p1", "p2", "p3", "p4"]


def test_build_filter_clause_params_match_placeholders() -> None:
    result = build_filter_clause(
        {
            ("status", FilterComparator.EQUALS): ["RUNNING", "KILLED", "FAILED"],
            ("status", FilterComparator.NOT_EQUALS): ["WAITING"],
        }
    )

    assert re.findall(r":(p\d+)", result.clause) == list(result.params)


def test_build_filter_clause_start_index_threads_counter() -> None:
    first = build_filter_clause({("status", FilterComparator.EQUALS): ["RUNNING"]})
    second = build_filter_clause(
        {("nominal_time", FilterComparator.GREATER): [NOMINAL]},
        start_index=first.next_index,
    )

    assert second.clause == " AND a.nominalTimestamp > :p2 "
    assert second.params == {"p2": NOMINAL}


def test_build_filter_clause_empty_spec() -> None:
    result = build_filter_clause({})
    assert result.clause == " "
    assert result.params == {}


def test_build_filter_clause_accepts_comparator_names_and_signs() -> None:
    result = build_filter_clause({("status", "EQUALS"): ["RUNNING"], ("nominal_time", ">"): [NOMINAL]})
    assert result.clause == " AND a.statusStr IN (:p1) AND a.nominalTimestamp > :p2 "


def test_build_filter_clause_rejects_unknown_field() -> None:
    with pytest.raises(InvalidFilterFieldError, match="'user'") as exc_info:
        build_filter_clause({("user", FilterComparator.EQUALS): ["joe"]})
    assert exc_info.value.field == "user"


def test_build_filter_clause_rejects_relational_with_two_values() -> None:
    with pytest.raises(InvalidComparatorArityError) as exc_info:
        build_filter_clause({("nominal_time", FilterComparator.GREATER): [NOMINAL, NOMINAL]})
    assert exc_info.value.field == "nominal_time"
    assert exc_info.value.comparator is FilterComparator.GREATER
    assert exc_info.value.count == 2


def test_build_filter_clause_rejects_empty_values() -> None:
    with pytest.raises(InvalidComparatorArityError, match="at least 1 value"):
        build_filter_clause({("status", FilterComparator.EQUALS): []})


def test_build_filter_clause_rejects_unknown_comparator() -> None:
    with pytest.raises(InvalidFilterFormatError, match="unsupported comparator"):
        build_filter_clause({("status", "LIKE"): ["RUN%"]})


def test_append_filter_clause_appends_to_buffer() -> None:
    buffer = ["select a.id from CoordinatorActionBean a where a.jobId = :jobId"]
    params = append_filter_clause(buffer, {("status", FilterComparator.EQUALS): ["RUNNING"]})

    assert "".join(buffer) == "select a.id from CoordinatorActionBean a where a.jobId = :jobId AND a.statusStr IN (:p1) "
    assert params == {"p1": "RUNNING"}


def test_parse_filter_groups_repeated_keys_in_order() -> None:
    spec = parse_filter("status=RUNNING;status=killed;nominaltime>=2009-01-01T01:00Z")

    assert list(spec.items()) == [
        (("status", FilterComparator.EQUALS), ["RUNNING", "KILLED"]),
        (("nominal_time", FilterComparator.GREATER_EQUAL), [NOMINAL]),
    ]
    assert build_filter_clause(spec).clause == (
        " AND a.statusStr IN (:p1, :p2) AND a.nominalTimestamp >= :p3 "
    )


def test_parse_filter_handles_not_equals_spellings() -> None:
    spec = parse_filter("status!=RUNNING; status<>KILLED ;")
    assert spec == {("status", FilterComparator.NOT_EQUALS): ["RUNNING", "KILLED"]}


def test_parse_filter_empty_text() -> None:
    assert parse_filter(None) == {}
    assert parse_filter("") == {}


def test_parse_filter_rejects_unknown_field() -> None:
    with pytest.raises(InvalidFilterFieldError, match="'frequency'"):
        parse_filter("frequency=5")


@pytest.mark.parametrize(
    ("text", "reason"),
    [
        ("status", "expected <field><operator><value>"),
        ("status=", "value cannot be empty"),
        ("status=BOGUS", "unknown status"),
        ("nominal_time>last-week", "could not parse"),
    ],
)
def test_parse_filter_rejects_malformed_entries(text: str, reason: str) -> None:
    with pytest.raises(InvalidFilterFormatError, match=reason):
        parse_filter(text)
