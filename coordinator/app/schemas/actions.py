from datetime import datetime, timezone
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

ActionStatus = Literal[
    "WAITING",
    "READY",
    "SUBMITTED",
    "RUNNING",
    "SUSPENDED",
    "TIMEDOUT",
    "SUCCEEDED",
    "KILLED",
    "FAILED",
    "IGNORED",
    "SKIPPED",
]
ACTION_STATUSES: frozenset[str] = frozenset(get_args(ActionStatus))
ACTIVE_ACTION_STATUSES: frozenset[str] = frozenset({"WAITING", "READY", "SUBMITTED", "RUNNING", "SUSPENDED"})


def format_action_id(job_id: str, action_number: int | str) -> str:
    return f"{job_id}@{action_number}"


class ActionRecord(BaseModel):
    id: str
    job_id: str
    action_number: int
    nominal_time: datetime
    status: ActionStatus
    external_id: str | None = None
    created_at: datetime | None = None
    last_modified_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("nominal_time", "created_at", "last_modified_at")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_id(self) -> "ActionRecord":
        if self.id != format_action_id(self.job_id, self.action_number):
            raise ValueError(f"action id {self.id!r} does not match {self.job_id}@{self.action_number}")
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ACTION_STATUSES
