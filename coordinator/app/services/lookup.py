from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Protocol

from app.schemas.actions import ActionRecord
from app.services.scope_tokens import DateRange
from app.services.store import StoreNotFoundError

LookupStatus = Literal["found", "not_found", "failed"]


class ActionLookup(Protocol):
    """Read access to materialized coordinator actions.

    Implementations raise ``StoreNotFoundError`` from ``action_by_id`` for a
    missing action. Any other exception from ``action_by_id`` is reported by
    ``lookup_action`` as a failed lookup.
    """

    def action_by_id(self, action_id: str) -> ActionRecord: ...

    def action_for_nominal_time(self, job_id: str, nominal_time: datetime) -> ActionRecord | None: ...

    def actions_in_date_range(
        self, job_id: str, date_range: DateRange, *, active: bool = False
    ) -> list[ActionRecord]: ...


@dataclass(slots=True)
class LookupOutcome:
    action_id: str
    status: LookupStatus
    record: ActionRecord | None = None
    error: Exception | None = None


def lookup_action(lookup: ActionLookup, action_id: str) -> LookupOutcome:
    try:
        record = lookup.action_by_id(action_id)
    except StoreNotFoundError as exc:
        return LookupOutcome(action_id=action_id, status="not_found", error=exc)
    except Exception as exc:
        return LookupOutcome(action_id=action_id, status="failed", error=exc)
    return LookupOutcome(action_id=action_id, status="found", record=record)
