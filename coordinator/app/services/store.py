from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from app.schemas.actions import ActionRecord, ActionStatus, format_action_id
from app.services.scope_tokens import DateRange


class StoreError(Exception):
    """Base store error."""

    code = "E0603"


class StoreNotFoundError(StoreError):
    """Raised when the requested action does not exist."""

    code = "E0605"


class InMemoryActionStore:
    """Dict-backed action store implementing the action lookup contract."""

    def __init__(self, actions: Iterable[ActionRecord] = ()) -> None:
        self.actions: dict[str, ActionRecord] = {}
        for action in actions:
            self.add(action)

    def add(self, action: ActionRecord) -> ActionRecord:
        self.actions[action.id] = action
        return action

    def materialize(
        self,
        job_id: str,
        action_number: int,
        nominal_time: datetime,
        status: ActionStatus = "WAITING",
    ) -> ActionRecord:
        now = datetime.now(timezone.utc)
        return self.add(
            ActionRecord(
                id=format_action_id(job_id, action_number),
                job_id=job_id,
                action_number=action_number,
                nominal_time=nominal_time,
                status=status,
                created_at=now,
                last_modified_at=now,
            )
        )

    def action_by_id(self, action_id: str) -> ActionRecord:
        action = self.actions.get(action_id)
        if action is None:
            raise StoreNotFoundError(f"coordinator action '{action_id}' not found")
        return action

    def action_for_nominal_time(self, job_id: str, nominal_time: datetime) -> ActionRecord | None:
        return next(
            (action for action in self._job_actions(job_id) if action.nominal_time == nominal_time),
            None,
        )

    def actions_in_date_range(self, job_id: str, date_range: DateRange, *, active: bool = False) -> list[ActionRecord]:
        matched = [
            action
            for action in self._job_actions(job_id)
            if date_range.start <= action.nominal_time <= date_range.end
        ]
        if active:
            matched = [action for action in matched if action.is_active]
        return matched

    def _job_actions(self, job_id: str) -> list[ActionRecord]:
        rows = [action for action in self.actions.values() if action.job_id == job_id]
        return sorted(rows, key=lambda action: action.action_number)
