from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Union

from app.services.errors import InvalidScopeFormatError

DATE_RANGE_SEPARATOR = "::"
ID_RANGE_SEPARATOR = "-"
_ACTION_NUMBER_RE = re.compile(r"\+?[0-9]+")
MAX_ACTION_NUMBER = 2**31 - 1

DateParser = Callable[[str], datetime]


@dataclass(frozen=True, slots=True)
class DateRange:
    start: datetime
    end: datetime
    text: str


@dataclass(frozen=True, slots=True)
class SingleDate:
    date: datetime
    text: str


@dataclass(frozen=True, slots=True)
class IdRange:
    start: int
    end: int

    def numbers(self) -> range:
        return range(self.start, self.end + 1)


@dataclass(frozen=True, slots=True)
class SingleId:
    number: int
    text: str


DateToken = Union[DateRange, SingleDate]
IdToken = Union[IdRange, SingleId]


def split_scope(scope: str | None) -> list[str]:
    if scope is None or not scope.strip():
        raise InvalidScopeFormatError("", "scope cannot be empty")
    tokens = [chunk.strip() for chunk in scope.split(",")]
    for token in tokens:
        if not token:
            raise InvalidScopeFormatError(scope, f"scope '{scope}' contains an empty element")
    return tokens


def classify_date_token(token: str, parse_date: DateParser) -> DateToken:
    if DATE_RANGE_SEPARATOR not in token:
        return SingleDate(date=_parse_scope_date(token, parse_date), text=token)

    parts = [part.strip() for part in token.split(DATE_RANGE_SEPARATOR)]
    if len(parts) != 2 or not all(parts):
        raise InvalidScopeFormatError(
            token,
            f"format is wrong for date range '{token}', an example of correct format is "
            "2009-01-01T01:00Z::2009-05-31T23:59Z",
        )
    start = _parse_scope_date(parts[0], parse_date)
    end = _parse_scope_date(parts[1], parse_date)
    if start > end:
        raise InvalidScopeFormatError(
            token,
            f"start date of range '{token}' should be before its end date",
            code="E0308",
        )
    return DateRange(start=start, end=end, text=token)


def classify_id_token(token: str) -> IdToken:
    if DATE_RANGE_SEPARATOR in token:
        raise InvalidScopeFormatError(token, f"date range '{token}' is not allowed in an action id scope")

    if ID_RANGE_SEPARATOR not in token:
        number = _parse_action_number(token, f"format is wrong for action id '{token}'. Integer only.")
        return SingleId(number=number, text=token)

    parts = token.split(ID_RANGE_SEPARATOR)
    if len(parts) != 2:
        raise InvalidScopeFormatError(
            token,
            f"format is wrong for action's range '{token}', an example of correct format is 1-5",
        )
    start = _parse_action_number(parts[0].strip())
    end = _parse_action_number(parts[1].strip())
    if start > end:
        raise InvalidScopeFormatError(
            token,
            f"format is wrong for action's range '{token}', starting action number of the range "
            "should be less than ending action number, an example will be 1-4",
        )
    return IdRange(start=start, end=end)


def _parse_scope_date(text: str, parse_date: DateParser) -> datetime:
    try:
        return parse_date(text)
    except ValueError as exc:
        raise InvalidScopeFormatError(text, f"could not parse '{text}' as a date") from exc


def _parse_action_number(text: str, message: str | None = None) -> int:
    if not _ACTION_NUMBER_RE.fullmatch(text):
        raise InvalidScopeFormatError(text, message or f"could not parse '{text}' into an integer")
    number = int(text)
    if number > MAX_ACTION_NUMBER:
        raise InvalidScopeFormatError(text, f"action number '{text}' is out of range, maximum is {MAX_ACTION_NUMBER}")
    return number
